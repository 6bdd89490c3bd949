from __future__ import annotations

import pytest

from rostersync.config.sync import StoreRetryPolicy
from rostersync.domain.errors import StoreError
from rostersync.domain.reconciliation import RetrySchedule


def test_backoff_doubles_and_is_capped() -> None:
    schedule = RetrySchedule(total=5, backoff_factor=0.5, max_backoff_wait=1.5)

    assert [schedule.backoff(n) for n in range(1, 5)] == [0.5, 1.0, 1.5, 1.5]


def test_gives_up_after_total_attempts() -> None:
    sleeps: list[float] = []
    schedule = RetrySchedule(total=2, backoff_factor=0.1, sleep=sleeps.append)
    calls = 0

    def always_locked() -> None:
        nonlocal calls
        calls += 1
        raise StoreError("locked", transient=True)

    with pytest.raises(StoreError):
        schedule.call(always_locked, describe="test")

    assert calls == 3
    assert sleeps == [0.1, 0.2]


def test_from_policy_copies_limits() -> None:
    schedule = RetrySchedule.from_policy(StoreRetryPolicy(total=7, backoff_factor=1.0))

    assert schedule.total == 7
    assert schedule.backoff(1) == 1.0
