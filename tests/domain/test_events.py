from __future__ import annotations

from rostersync.domain.events import (
    MembershipGranted,
    MembershipRevoked,
    ProfileRenamed,
    event_key,
)


def test_event_key_is_the_external_id() -> None:
    events = [
        MembershipGranted("u1", "alice"),
        MembershipRevoked("u2"),
        ProfileRenamed("u3", "a", "b"),
    ]

    assert [event_key(event) for event in events] == ["u1", "u2", "u3"]


def test_rename_reports_whether_anything_changed() -> None:
    assert ProfileRenamed("u1", "old", "new").changed
    assert not ProfileRenamed("u1", "old", "old").changed


def test_events_compare_by_value() -> None:
    assert MembershipGranted("u1", "alice") == MembershipGranted("u1", "alice", None)
