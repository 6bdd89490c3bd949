from __future__ import annotations

import threading

import pytest

from rostersync.domain.events import MembershipGranted, MembershipRevoked, ProfileRenamed
from rostersync.domain.model import RoleKind
from rostersync.domain.reconciliation import EventDispatcher
from tests.helpers.services import build_harness


def test_drain_handles_events_in_order_per_member() -> None:
    harness = build_harness()
    dispatcher = EventDispatcher(harness.reconciler, worker_count=3)
    dispatcher.submit_all(
        [
            MembershipGranted("u1", "alice"),
            MembershipGranted("u2", "bob"),
            ProfileRenamed("u1", "alice", "alicia"),
            MembershipRevoked("u2"),
            MembershipGranted("u3", "carol"),
        ]
    )

    report = dispatcher.drain()

    assert report.handled == 5
    assert report.failed == 0
    assert report.by_kind["MembershipGranted"] == 3
    assert dispatcher.pending() == 0
    assert harness.state.identities["u1"].display_name == "alicia"
    assert "u2" not in harness.state.identities
    assert "u3" in harness.state.identities


def test_failure_of_one_member_does_not_block_others() -> None:
    harness = build_harness()
    captain = harness.state.seed_profile("u1", "alice")
    team = harness.state.seed_team("teamA", captain_ref=captain.key, vice_captain_ref=captain.key)
    harness.state.seed_profile("u1", "alice", key=captain.key, team_ref=team.key)
    harness.authority.fail("u1", RoleKind.PLAYER)
    dispatcher = EventDispatcher(harness.reconciler)
    dispatcher.submit(MembershipGranted("u1", "alice"))
    dispatcher.submit(MembershipGranted("u2", "bob"))

    report = dispatcher.drain()

    assert report.handled == 1
    assert report.failed == 1
    failed_event, _ = report.failures[0]
    assert failed_event.external_id == "u1"
    assert report.by_kind["MembershipGranted.failed"] == 1
    assert "u2" in harness.state.identities


def test_run_drains_until_stopped() -> None:
    harness = build_harness()
    dispatcher = EventDispatcher(harness.reconciler, worker_count=2)
    stop = threading.Event()
    dispatcher.submit(MembershipGranted("u1", "alice"))

    outcome: dict[str, int] = {}

    def consume() -> None:
        outcome["handled"] = dispatcher.run(stop, poll_interval=0.01).handled

    worker = threading.Thread(target=consume)
    worker.start()
    for _ in range(500):
        if "u1" in harness.state.identities:
            break
        stop.wait(0.01)
    stop.set()
    worker.join(timeout=5)

    assert outcome["handled"] == 1


def test_drain_on_empty_queue_is_empty_report() -> None:
    dispatcher = EventDispatcher(build_harness().reconciler)

    assert dispatcher.drain().handled == 0


def test_worker_count_must_be_positive() -> None:
    with pytest.raises(ValueError, match="worker_count"):
        EventDispatcher(build_harness().reconciler, worker_count=0)
