# tests/test_settings.py
import pytest

from role_gate.core.settings import Settings


def test_defaults_match_documented_values(test_settings: Settings) -> None:
    assert test_settings.port == 3000
    assert test_settings.code_ttl_seconds == 180
    assert test_settings.code_length == 5
    assert test_settings.rate_limit_max_requests == 3
    assert test_settings.rate_limit_window_seconds == 60


def test_allowed_origins_accepts_comma_separated_list(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example,")

    loaded = Settings()  # type: ignore[call-arg]

    assert loaded.cors_origins == ["https://a.example", "https://b.example"]


def test_public_config_excludes_credentials(test_settings: Settings) -> None:
    public = test_settings.public_config

    assert "bot_token" not in public
    assert "guild_id" not in public
    assert public["code_ttl_seconds"] == 180
