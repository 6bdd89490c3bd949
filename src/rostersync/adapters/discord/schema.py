"""Pydantic models describing the Discord REST and gateway payloads we consume."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DiscordBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DiscordUser(DiscordBaseModel):
    id: str
    username: str
    discriminator: str | None = None
    global_name: str | None = None
    bot: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_snowflake(cls, value: object) -> object:
        # snowflakes arrive as strings, but recorded fixtures sometimes carry ints
        if isinstance(value, int):
            return str(value)
        return value


class GuildMember(DiscordBaseModel):
    user: DiscordUser
    roles: list[str] = Field(default_factory=list)
    nick: str | None = None
    joined_at: datetime | None = None

    @property
    def external_id(self) -> str:
        return self.user.id

    def has_role(self, role_id: str) -> bool:
        return role_id in self.roles


class GuildMemberRemove(DiscordBaseModel):
    guild_id: str | None = None
    user: DiscordUser


class ErrorResponse(DiscordBaseModel):
    code: int = 0
    message: str = ""


GatewayEventName = Literal[
    "GUILD_MEMBER_ADD",
    "GUILD_MEMBER_UPDATE",
    "GUILD_MEMBER_REMOVE",
    "USER_UPDATE",
]


class GatewayDispatch(DiscordBaseModel):
    """A single gateway dispatch frame (``op`` 0) as recorded from the websocket."""

    t: str
    d: dict[str, object]
    s: int | None = None
    op: int = 0
