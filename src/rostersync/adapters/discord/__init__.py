"""Public interface for the Discord adapter."""

from __future__ import annotations

from .client import DiscordAuthority, member_snapshot
from .gateway import GatewayTranslator
from .schema import DiscordUser, GatewayDispatch, GuildMember, GuildMemberRemove

__all__ = [
    "DiscordAuthority",
    "DiscordUser",
    "GatewayDispatch",
    "GatewayTranslator",
    "GuildMember",
    "GuildMemberRemove",
    "member_snapshot",
]
