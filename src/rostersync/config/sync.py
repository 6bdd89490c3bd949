"""Reconciliation defaults."""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_int_env

DEFAULT_WORKER_COUNT = 4
DEFAULT_MEMBER_PAGE_SIZE = 1000
DEFAULT_API_PORT = 3001


@dataclass(frozen=True, slots=True)
class StoreRetryPolicy:
    """Bounded retry for transient store failures (locked database, dropped connection)."""

    total: int = 3
    backoff_factor: float = 0.2
    max_backoff_wait: float = 5.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    worker_count: int = DEFAULT_WORKER_COUNT
    member_page_size: int = DEFAULT_MEMBER_PAGE_SIZE
    store_retry: StoreRetryPolicy = field(default_factory=StoreRetryPolicy)


@dataclass(frozen=True, slots=True)
class ApiConfig:
    host: str = "0.0.0.0"  # noqa: S104
    port: int = DEFAULT_API_PORT


def get_sync_config() -> SyncConfig:
    return SyncConfig(worker_count=optional_int_env("ROSTERSYNC_WORKERS", DEFAULT_WORKER_COUNT))


def get_api_config() -> ApiConfig:
    return ApiConfig(port=optional_int_env("PORT", DEFAULT_API_PORT))
