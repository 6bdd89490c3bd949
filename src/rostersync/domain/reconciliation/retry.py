"""Bounded retry for transient store failures."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from rostersync.domain.errors import StoreError

if TYPE_CHECKING:
    from rostersync.config.sync import StoreRetryPolicy

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetrySchedule:
    total: int = 3
    backoff_factor: float = 0.2
    max_backoff_wait: float = 5.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    @classmethod
    def from_policy(cls, policy: StoreRetryPolicy) -> RetrySchedule:
        return cls(
            total=policy.total,
            backoff_factor=policy.backoff_factor,
            max_backoff_wait=policy.max_backoff_wait,
        )

    def backoff(self, attempt: int) -> float:
        return min(self.max_backoff_wait, self.backoff_factor * (2 ** (attempt - 1)))

    def call[T](self, func: Callable[[], T], *, describe: str) -> T:
        """Run ``func``, retrying transient ``StoreError``s up to ``total`` times."""

        attempt = 0
        while True:
            try:
                return func()
            except StoreError as exc:
                if not exc.transient or attempt >= self.total:
                    raise
                attempt += 1
                wait = self.backoff(attempt)
                log.warning(
                    "Transient store failure during %s (attempt %s/%s), retrying in %.2fs: %s",
                    describe,
                    attempt,
                    self.total,
                    wait,
                    exc,
                )
                self.sleep(wait)
