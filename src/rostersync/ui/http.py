"""FastAPI surface for operator-driven role changes."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from rostersync.domain.errors import InvalidArgument, RosterSyncError
from rostersync.domain.model import RoleKind

if TYPE_CHECKING:
    from rostersync.domain.reconciliation import RoleCommands

log = getLogger(__name__)

ALIVE_MESSAGE = "Server is alive"
ROLE_UPDATE_FAILED = "Failed to update role"


class RoleChangeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    discord_id: str = Field(alias="discordId")
    # anything other than "add" or "remove" is answered with 400, not 422
    action: object = None


def create_app(commands: RoleCommands) -> FastAPI:
    app = FastAPI(title="rostersync", description="Guild role management for the league")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def change_role(kind: RoleKind, body: RoleChangeRequest) -> JSONResponse:
        try:
            action = body.action if isinstance(body.action, str) else ""
            commands.assign_role(body.discord_id, kind, action)
        except InvalidArgument as exc:
            return JSONResponse(status_code=400, content={"error": str(exc)})
        except RosterSyncError:
            log.exception("Role update failed for %s", body.discord_id)
            return JSONResponse(status_code=500, content={"error": ROLE_UPDATE_FAILED})
        return JSONResponse(content={"success": True})

    # plain ``def`` handlers run in the threadpool; the authority blocks on HTTP
    @app.post("/assign-role")
    @app.post("/assign-player-role")
    def assign_player_role(body: RoleChangeRequest) -> JSONResponse:
        return change_role(RoleKind.PLAYER, body)

    @app.post("/assign-captain-role")
    def assign_captain_role(body: RoleChangeRequest) -> JSONResponse:
        return change_role(RoleKind.CAPTAIN, body)

    @app.post("/assign-vice-captain-role")
    def assign_vice_captain_role(body: RoleChangeRequest) -> JSONResponse:
        return change_role(RoleKind.VICE_CAPTAIN, body)

    @app.get("/", response_class=PlainTextResponse)
    def alive() -> str:
        return ALIVE_MESSAGE

    return app
