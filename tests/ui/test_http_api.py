from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from rostersync.domain.model import RoleKind
from rostersync.ui.http import create_app
from tests.helpers.services import Harness, build_harness


@pytest.fixture
def api() -> tuple[TestClient, Harness]:
    harness = build_harness()
    return TestClient(create_app(harness.commands)), harness


@pytest.mark.parametrize(
    ("path", "kind"),
    [
        ("/assign-player-role", RoleKind.PLAYER),
        ("/assign-role", RoleKind.PLAYER),
        ("/assign-captain-role", RoleKind.CAPTAIN),
        ("/assign-vice-captain-role", RoleKind.VICE_CAPTAIN),
    ],
)
def test_assign_routes_grant_the_matching_role(
    api: tuple[TestClient, Harness],
    path: str,
    kind: RoleKind,
) -> None:
    client, harness = api

    response = client.post(path, json={"discordId": "u1", "action": "add"})

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert harness.authority.calls == [("grant", "u1", kind)]


def test_remove_action_revokes(api: tuple[TestClient, Harness]) -> None:
    client, harness = api

    response = client.post("/assign-captain-role", json={"discordId": "u1", "action": "remove"})

    assert response.status_code == 200
    assert harness.authority.calls == [("revoke", "u1", RoleKind.CAPTAIN)]


def test_invalid_action_is_a_bad_request(api: tuple[TestClient, Harness]) -> None:
    client, harness = api

    response = client.post("/assign-player-role", json={"discordId": "u1", "action": "toggle"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid action. Use 'add' or 'remove'."}
    assert harness.authority.calls == []


@pytest.mark.parametrize(
    "body",
    [
        {"discordId": "u1"},
        {"discordId": "u1", "action": 5},
        {"discordId": "u1", "action": None},
        {"discordId": "u1", "action": ["add"]},
    ],
)
def test_missing_or_non_text_action_is_a_bad_request(
    api: tuple[TestClient, Harness],
    body: dict[str, object],
) -> None:
    client, harness = api

    response = client.post("/assign-captain-role", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid action. Use 'add' or 'remove'."}
    assert harness.authority.calls == []


def test_authority_failure_is_a_server_error(api: tuple[TestClient, Harness]) -> None:
    client, harness = api
    harness.authority.fail("u1", RoleKind.PLAYER)

    response = client.post("/assign-player-role", json={"discordId": "u1", "action": "add"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to update role"}


def test_root_reports_server_alive(api: tuple[TestClient, Harness]) -> None:
    client, _ = api

    response = client.get("/")

    assert response.status_code == 200
    assert response.text == "Server is alive"
