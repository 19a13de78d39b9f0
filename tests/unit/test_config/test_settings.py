"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from ccbridge.config.settings import (
    ProtocolConfig,
    ServerConfig,
    Settings,
    load_settings,
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run from an empty directory with no PORT/CCBRIDGE_ variables."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("CCBRIDGE_SERVER__PORT", raising=False)


class TestSettings:
    def test_default_settings(self) -> None:
        settings = Settings()
        assert settings.server.port == 3000
        assert settings.server.websocket_path == "/"
        assert settings.protocol.confirmation_token == "true"
        assert settings.protocol.verify_label is False
        assert settings.console.prompt == "Command> "

    def test_protocol_defaults(self) -> None:
        config = ProtocolConfig()
        assert config.response_timeout == 10.0
        assert config.update_command == "getUpdate"

    def test_unbounded_wait_allowed(self) -> None:
        assert ProtocolConfig(response_timeout=None).response_timeout is None

    def test_invalid_port(self) -> None:
        with pytest.raises(ValidationError):
            ServerConfig(port=0)

    def test_prefixed_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CCBRIDGE_SERVER__PORT", "4100")
        assert Settings().server.port == 4100


class TestLoadSettings:
    def test_missing_file(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.server.port == 3000

    def test_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "ccbridge.yaml"
        path.write_text(
            "server:\n  port: 3500\n"
            "protocol:\n  verify_label: true\n  response_timeout: 2.5\n"
            "storage:\n  path: data/db.json\n"
        )
        settings = load_settings(path)
        assert settings.server.port == 3500
        assert settings.protocol.verify_label is True
        assert settings.protocol.response_timeout == 2.5
        assert settings.storage.path == "data/db.json"

    def test_empty_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "ccbridge.yaml"
        path.write_text("")
        assert load_settings(path).server.port == 3000

    def test_port_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "ccbridge.yaml"
        path.write_text("server:\n  port: 3500\n")
        monkeypatch.setenv("PORT", "8081")
        assert load_settings(path).server.port == 8081

    def test_prefixed_env_beats_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "ccbridge.yaml"
        path.write_text("server:\n  host: 127.0.0.1\n  port: 3000\n")
        monkeypatch.setenv("CCBRIDGE_SERVER__PORT", "4000")
        settings = load_settings(path)
        assert settings.server.port == 4000
        assert settings.server.host == "127.0.0.1"

    def test_port_from_dotenv(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".env").write_text("# local settings\nPORT=9090\n")
        try:
            assert load_settings(tmp_path / "missing.yaml").server.port == 9090
        finally:
            monkeypatch.delenv("PORT", raising=False)
