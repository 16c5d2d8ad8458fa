import json
from pathlib import Path

import pytest

from honeypot.config import Settings
from honeypot.engine.responses import build_responses
from honeypot.exceptions import ConfigurationError
from honeypot.protocol.strings import PayloadReader, decode_string


def test_status_payload(responses):
    """Test that the status document carries version, player counts and MOTD"""
    assert json.loads(decode_string(responses.status_payload)) == {
        "version": {"name": "1.21.7", "protocol": 772},
        "players": {"max": 20, "online": 0},
        "description": {"text": "A Minecraft Server"},
    }


def test_payload_is_one_complete_string(responses):
    reader = PayloadReader(responses.kick_payload)
    reader.read_string()
    assert reader.remaining == 0


def test_operator_text_is_escaped(honeypot_settings):
    """Test that quotes, backslashes and newlines survive JSON encoding"""
    settings = honeypot_settings.model_copy(
        update={"motd": 'Say "hi"\n§aGreen', "kick_message": "Nope \\ go away"}
    )
    responses = build_responses(settings)
    assert json.loads(decode_string(responses.status_payload))["description"]["text"] == 'Say "hi"\n§aGreen'
    assert json.loads(decode_string(responses.kick_payload)) == {"text": "Nope \\ go away"}


def test_unencodable_text_is_fatal(honeypot_settings):
    settings = honeypot_settings.model_copy(update={"motd": "\ud800"})
    with pytest.raises(ConfigurationError, match="motd"):
        build_responses(settings)


def test_responses_are_immutable(responses):
    with pytest.raises(AttributeError):
        responses.status_payload = b""


class TestSettings:
    def test_defaults(self, monkeypatch):
        """Test defaults when nothing is set in the environment"""
        for name in ("ADDRESS", "MOTD", "KICK_MESSAGE", "PROTOCOL_VERSION", "MAX_SLOTS",
                     "PROTOCOL_TEXT", "WEBHOOK_PING", "WEBHOOK_KICK"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.address == "0.0.0.0:25565"
        assert settings.protocol_version == 772
        assert settings.protocol_text == "1.21.7"
        assert settings.max_slots == 20
        assert settings.webhook_ping is None

    def test_log_dir_defaults_to_working_directory(self, monkeypatch):
        """Test that the default log directory is relative, not inside the installed package"""
        monkeypatch.delenv("LOG_DIR", raising=False)
        settings = Settings(_env_file=None)
        assert settings.log_dir == Path("logs")
        assert not settings.log_dir.is_absolute()

    def test_environment_names(self, monkeypatch):
        """Test that fields read their upper-case names with no prefix"""
        monkeypatch.setenv("ADDRESS", "127.0.0.1:25566")
        monkeypatch.setenv("MOTD", "Survival")
        monkeypatch.setenv("MAX_SLOTS", "100")
        monkeypatch.setenv("WEBHOOK_PING", "https://discord.example/hook")
        monkeypatch.setenv("CONNECTION_TIMEOUT_SEC", "")
        settings = Settings(_env_file=None)
        assert settings.address == "127.0.0.1:25566"
        assert settings.motd == "Survival"
        assert settings.max_slots == 100
        assert str(settings.webhook_ping) == "https://discord.example/hook"
        assert settings.connection_timeout_sec == 30.0

    def test_invalid_number_rejected(self, monkeypatch):
        monkeypatch.setenv("MAX_SLOTS", "lots")
        with pytest.raises(ValueError):
            Settings(_env_file=None)

    @pytest.mark.parametrize("url", ["http://[::1", "not a url", "ftp://discord.example/hook"])
    def test_invalid_webhook_url_rejected(self, monkeypatch, url):
        """Test that a malformed webhook URL fails at startup instead of per event"""
        monkeypatch.setenv("WEBHOOK_PING", url)
        with pytest.raises(ValueError):
            Settings(_env_file=None)
