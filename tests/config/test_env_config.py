from __future__ import annotations

import pytest

from rostersync.config import (
    ConfigurationError,
    MissingConfigurationError,
    get_api_config,
    get_discord_config,
    get_sync_config,
    require_env_var,
    require_env_vars,
)

DISCORD_ENV = {
    "BOT_TOKEN": "secret",
    "GUILD_ID": "guild",
    "VERIFIED_ROLE_ID": "verified",
    "PLAYER_ROLE_ID": "player",
    "CAPTAIN_ROLE_ID": "captain",
    "VICE_CAPTAIN_ROLE_ID": "vice",
}


def test_require_env_vars_returns_stripped_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", " value ")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_A", raising=False)
    monkeypatch.setenv("MISSING_B", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_discord_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name, value in DISCORD_ENV.items():
        monkeypatch.setenv(name, value)

    config = get_discord_config()

    assert config.guild_id == "guild"
    assert config.verified_role_id == "verified"
    assert (config.roles.player, config.roles.captain, config.roles.vice_captain) == (
        "player",
        "captain",
        "vice",
    )
    assert config.resilience.default_headers is not None
    assert config.resilience.default_headers["Authorization"] == "Bot secret"
    assert config.resilience.ratelimit is not None


def test_discord_config_requires_bot_token(monkeypatch: pytest.MonkeyPatch) -> None:
    for name, value in DISCORD_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.delenv("BOT_TOKEN")

    with pytest.raises(MissingConfigurationError, match="BOT_TOKEN"):
        get_discord_config()


def test_api_port_defaults_and_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PORT", raising=False)
    assert get_api_config().port == 3001

    monkeypatch.setenv("PORT", "8080")
    assert get_api_config().port == 8080

    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ConfigurationError, match="PORT"):
        get_api_config()


def test_worker_count_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROSTERSYNC_WORKERS", "8")

    assert get_sync_config().worker_count == 8
