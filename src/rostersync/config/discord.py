"""Discord guild configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DISCORD_API_BASE_URL = "https://discord.com/api/v10"
DISCORD_TIMEOUT_SECONDS = 10.0
DISCORD_USER_AGENT = "DiscordBot (https://github.com/rostersync/rostersync, 0.1)"


@dataclass(frozen=True, slots=True)
class GuildRoleIds:
    """Discord role ids granted for each league role."""

    player: str
    captain: str
    vice_captain: str


@dataclass(frozen=True, slots=True)
class DiscordConfig:
    bot_token: str
    guild_id: str
    verified_role_id: str
    roles: GuildRoleIds
    resilience: ResilienceConfig


def default_discord_resilience(bot_token: str) -> ResilienceConfig:
    return ResilienceConfig(
        name="discord",
        base_url=DISCORD_API_BASE_URL,
        timeout_seconds=DISCORD_TIMEOUT_SECONDS,
        # Discord's global bucket is 50 req/s per bot; stay below it
        ratelimit=RateLimit(max_calls=40, per_seconds=1.0),
        retry=RetryPolicy(total=4),
        default_headers={
            "Authorization": f"Bot {bot_token}",
            "User-Agent": DISCORD_USER_AGENT,
        },
    )


def get_discord_config(*, resilience: ResilienceConfig | None = None) -> DiscordConfig:
    values = require_env_vars(
        (
            "BOT_TOKEN",
            "GUILD_ID",
            "VERIFIED_ROLE_ID",
            "PLAYER_ROLE_ID",
            "CAPTAIN_ROLE_ID",
            "VICE_CAPTAIN_ROLE_ID",
        )
    )
    bot_token = values["BOT_TOKEN"]
    return DiscordConfig(
        bot_token=bot_token,
        guild_id=values["GUILD_ID"],
        verified_role_id=values["VERIFIED_ROLE_ID"],
        roles=GuildRoleIds(
            player=values["PLAYER_ROLE_ID"],
            captain=values["CAPTAIN_ROLE_ID"],
            vice_captain=values["VICE_CAPTAIN_ROLE_ID"],
        ),
        resilience=resilience or default_discord_resilience(bot_token),
    )
