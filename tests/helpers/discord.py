"""Mock transports and payload builders for the Discord adapter tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from rostersync.adapters.http_resilience import (
    ResilienceConfig,
    ResilientClient,
    SharedRateLimiter,
)

if TYPE_CHECKING:
    from collections.abc import Callable

GUILD_ID = "guild-1"
VERIFIED_ROLE_ID = "role-verified"


def make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig, SharedRateLimiter | None], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig, limiter: SharedRateLimiter | None) -> ResilientClient:
        client = ResilientClient(resilience, limiter=limiter)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url=resilience.base_url or "",
            headers=dict(resilience.default_headers or {}),
            transport=httpx.MockTransport(async_handler),
        )
        return client

    return factory


def member_payload(
    user_id: str,
    username: str,
    *,
    roles: list[str] | None = None,
    joined_at: str | None = "2024-05-01T12:00:00.000000+00:00",
) -> dict[str, object]:
    return {
        "user": {"id": user_id, "username": username, "discriminator": "0", "global_name": None},
        "roles": roles or [],
        "nick": None,
        "joined_at": joined_at,
        "deaf": False,
        "mute": False,
    }


def dispatch(event_name: str, data: dict[str, object]) -> dict[str, object]:
    return {"op": 0, "t": event_name, "s": 1, "d": data}
