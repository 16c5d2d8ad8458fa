"""Shared fixtures for the honeypot tests."""
import pytest

from honeypot.config import Settings
from honeypot.engine.responses import build_responses


@pytest.fixture
def honeypot_settings(tmp_path):
    return Settings(
        address="127.0.0.1:0",
        kick_message="You are not Whitelisted on this Server",
        motd="A Minecraft Server",
        protocol_version=772,
        protocol_text="1.21.7",
        max_slots=20,
        webhook_ping=None,
        webhook_kick=None,
        connection_timeout_sec=5.0,
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def responses(honeypot_settings):
    return build_responses(honeypot_settings)
