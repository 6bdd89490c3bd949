from __future__ import annotations

import pytest

from rostersync.config import DiscordConfig, GuildRoleIds, default_discord_resilience
from tests.helpers.discord import GUILD_ID, VERIFIED_ROLE_ID


@pytest.fixture
def discord_config() -> DiscordConfig:
    return DiscordConfig(
        bot_token="token",
        guild_id=GUILD_ID,
        verified_role_id=VERIFIED_ROLE_ID,
        roles=GuildRoleIds(player="role-player", captain="role-captain", vice_captain="role-vice"),
        resilience=default_discord_resilience("token"),
    )
