"""Discord REST adapter implementing the external authority port."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from rostersync.adapters.http_resilience import (
    ResilienceConfig,
    ResilientClient,
    SharedRateLimiter,
)
from rostersync.config.discord import DiscordConfig, get_discord_config
from rostersync.domain.errors import ExternalAuthorityError
from rostersync.domain.model import RoleKind
from rostersync.domain.ports.authority import ExternalAuthority, MemberSnapshot

from .schema import ErrorResponse, GuildMember

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = getLogger(__name__)

MAX_MEMBERS_PAGE_SIZE = 1000


def _default_client_factory(
    config: ResilienceConfig,
    limiter: SharedRateLimiter | None,
) -> ResilientClient:
    return ResilientClient(config, limiter=limiter)


def member_snapshot(member: GuildMember) -> MemberSnapshot:
    """Translate a validated guild member into the domain snapshot."""

    return MemberSnapshot(
        external_id=member.user.id,
        display_name=member.user.username,
        joined_at=member.joined_at,
        role_ids=frozenset(member.roles),
    )


def _error_message(response: httpx.Response) -> str:
    try:
        payload = ErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        return response.reason_phrase or f"HTTP {response.status_code}"
    return payload.message or response.reason_phrase


@dataclass(slots=True)
class DiscordAuthority:
    """Reads guild membership and edits member roles through the Discord REST API.

    Every request made through one authority draws on the same rate budget,
    whichever thread or event loop issues it.
    """

    config: DiscordConfig = field(default_factory=get_discord_config)
    client_factory: Callable[[ResilienceConfig, SharedRateLimiter | None], ResilientClient] = (
        field(default=_default_client_factory)
    )
    page_size: int = MAX_MEMBERS_PAGE_SIZE
    limiter: SharedRateLimiter | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        ratelimit = self.config.resilience.ratelimit
        if ratelimit is not None:
            self.limiter = SharedRateLimiter(ratelimit)

    def role_id(self, kind: RoleKind) -> str:
        roles = self.config.roles
        match kind:
            case RoleKind.PLAYER:
                return roles.player
            case RoleKind.CAPTAIN:
                return roles.captain
            case RoleKind.VICE_CAPTAIN:
                return roles.vice_captain

    def fetch_membership(self, external_id: str) -> MemberSnapshot | None:
        return asyncio.run(self._fetch_membership_async(external_id))

    def list_verified_members(self) -> list[MemberSnapshot]:
        members = asyncio.run(self._list_members_async())
        verified = [
            member_snapshot(member)
            for member in members
            if member.has_role(self.config.verified_role_id) and not member.user.bot
        ]
        log.info("Fetched %s guild members, %s verified", len(members), len(verified))
        return verified

    def grant_role(self, external_id: str, kind: RoleKind) -> None:
        asyncio.run(self._change_role_async("PUT", external_id, kind))

    def revoke_role(self, external_id: str, kind: RoleKind) -> None:
        asyncio.run(self._change_role_async("DELETE", external_id, kind))

    async def _fetch_membership_async(self, external_id: str) -> MemberSnapshot | None:
        path = f"/guilds/{self.config.guild_id}/members/{external_id}"
        async with self._client() as client:
            response = await self._perform(client.get(path), "GET", path)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        self._raise_for_status(response, f"fetch member {external_id}")
        return member_snapshot(self._validate_member(response.json()))

    async def _list_members_async(self) -> list[GuildMember]:
        path = f"/guilds/{self.config.guild_id}/members"
        members: list[GuildMember] = []
        after: str | None = None
        limit = max(1, min(self.page_size, MAX_MEMBERS_PAGE_SIZE))

        async with self._client() as client:
            while True:
                params: dict[str, str | int] = {"limit": limit}
                if after is not None:
                    params["after"] = after
                response = await self._perform(client.get(path, params=params), "GET", path)
                self._raise_for_status(response, "list guild members")
                payload = response.json()
                if not isinstance(payload, list):
                    raise ExternalAuthorityError("Unexpected guild member list payload")
                page = [self._validate_member(item) for item in payload]
                members.extend(page)
                if len(page) < limit:
                    break
                # members are ordered by user id; the last id is the next cursor
                after = page[-1].user.id

        return members

    async def _change_role_async(self, method: str, external_id: str, kind: RoleKind) -> None:
        role_id = self.role_id(kind)
        path = f"/guilds/{self.config.guild_id}/members/{external_id}/roles/{role_id}"
        async with self._client() as client:
            send = client.put(path) if method == "PUT" else client.delete(path)
            response = await self._perform(send, method, path)
        verb = "grant" if method == "PUT" else "revoke"
        self._raise_for_status(response, f"{verb} {kind.value} role for {external_id}")
        log.debug("Discord accepted %s of %s role for %s", verb, kind, external_id)

    def _client(self) -> ResilientClient:
        return self.client_factory(self.config.resilience, self.limiter)

    @staticmethod
    async def _perform(send: Awaitable[httpx.Response], method: str, path: str) -> httpx.Response:
        try:
            return await send
        except httpx.HTTPError as exc:
            log.error("Discord request %s %s failed: %s", method, path, exc)
            raise ExternalAuthorityError(f"Discord request failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        message = _error_message(response)
        log.error("Discord refused to %s: %s %s", action, response.status_code, message)
        raise ExternalAuthorityError(
            f"Failed to {action}: {message}",
            status_code=response.status_code,
        )

    @staticmethod
    def _validate_member(payload: object) -> GuildMember:
        try:
            return GuildMember.model_validate(payload)
        except ValidationError as exc:
            raise ExternalAuthorityError(f"Unexpected guild member payload: {exc}") from exc


if TYPE_CHECKING:
    _authority_check: ExternalAuthority = DiscordAuthority()
