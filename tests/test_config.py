"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from config.loader import ConfigLoader


@pytest.fixture()
def loader(tmp_path) -> ConfigLoader:
    return ConfigLoader(env_path=str(tmp_path / "missing.env"))


class TestConfigLoader:
    def test_default_when_unset(self, loader, monkeypatch) -> None:
        monkeypatch.delenv("OAUTH_CALLBACK_PORT", raising=False)
        assert loader.get("OAUTH_CALLBACK_PORT", 1455) == 1455

    def test_int_coercion(self, loader, monkeypatch) -> None:
        monkeypatch.setenv("OAUTH_CALLBACK_PORT", "8080")
        assert loader.get("OAUTH_CALLBACK_PORT", 1455) == 8080

    def test_float_coercion(self, loader, monkeypatch) -> None:
        monkeypatch.setenv("OAUTH_LOGIN_TIMEOUT", "2.5")
        assert loader.get("OAUTH_LOGIN_TIMEOUT", 300.0) == 2.5

    @pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("YES", True), ("no", False)])
    def test_bool_coercion(self, loader, monkeypatch, raw, expected) -> None:
        monkeypatch.setenv("CODEX_LOGIN_FLAG", raw)
        assert loader.get("CODEX_LOGIN_FLAG", False) is expected

    def test_unparsable_number_falls_back(self, loader, monkeypatch) -> None:
        monkeypatch.setenv("OAUTH_CALLBACK_PORT", "not-a-port")
        assert loader.get("OAUTH_CALLBACK_PORT", 1455) == 1455

    def test_string_passthrough(self, loader, monkeypatch) -> None:
        monkeypatch.setenv("CODEX_OAUTH_ISSUER", "https://auth.example.com")
        assert loader.get("CODEX_OAUTH_ISSUER", "https://auth.openai.com") == "https://auth.example.com"

    @pytest.mark.parametrize("raw", ["70000", "-1"])
    def test_port_out_of_range_falls_back(self, loader, monkeypatch, raw) -> None:
        monkeypatch.setenv("OAUTH_CALLBACK_PORT", raw)
        assert loader.get_port("OAUTH_CALLBACK_PORT", 1455) == 1455

    def test_port_zero_is_allowed(self, loader, monkeypatch) -> None:
        monkeypatch.setenv("OAUTH_CALLBACK_PORT", "0")
        assert loader.get_port("OAUTH_CALLBACK_PORT", 1455) == 0

    def test_seconds(self, loader, monkeypatch) -> None:
        monkeypatch.setenv("OAUTH_LOGIN_TIMEOUT", "45")
        assert loader.get_seconds("OAUTH_LOGIN_TIMEOUT", 300.0) == 45.0

    @pytest.mark.parametrize("raw", ["0", "-2", "1", "1.5", "soon"])
    def test_poll_interval_must_be_sub_second(self, loader, monkeypatch, raw) -> None:
        monkeypatch.setenv("OAUTH_POLL_INTERVAL", raw)
        assert loader.get_seconds("OAUTH_POLL_INTERVAL", 0.5, upper=1.0) == 0.5

    def test_missing_env_file_is_reported(self, loader) -> None:
        assert loader.env_loaded is False

    def test_env_file_does_not_override_environment(self, tmp_path, monkeypatch) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("CODEX_LOGIN_TEST_ISSUER=https://from-file\nCODEX_LOGIN_TEST_PORT=9000\n")
        monkeypatch.setenv("CODEX_LOGIN_TEST_ISSUER", "https://from-env")
        monkeypatch.delenv("CODEX_LOGIN_TEST_PORT", raising=False)

        loader = ConfigLoader(env_path=str(env_file))
        try:
            assert loader.get("CODEX_LOGIN_TEST_ISSUER", "x") == "https://from-env"
            assert loader.get("CODEX_LOGIN_TEST_PORT", 1455) == 9000
            assert loader.env_loaded is True
        finally:
            monkeypatch.delenv("CODEX_LOGIN_TEST_PORT", raising=False)
