"""
Static responses

The status and disconnect payloads never change after startup, so they are
serialized once and shared read-only by every session.
"""
import json
from dataclasses import dataclass

import structlog

from honeypot.config import Settings
from honeypot.exceptions import ConfigurationError
from honeypot.protocol.strings import encode_string

logger = structlog.get_logger()


@dataclass(frozen=True)
class StaticResponses:
    """String-encoded JSON payloads ready to be framed"""

    status_payload: bytes
    kick_payload: bytes


def build_status_document(settings: Settings) -> dict:
    return {
        "version": {"name": settings.protocol_text, "protocol": settings.protocol_version},
        "players": {"max": settings.max_slots, "online": 0},
        "description": {"text": settings.motd},
    }


def build_kick_document(settings: Settings) -> dict:
    return {"text": settings.kick_message}


def build_responses(settings: Settings) -> StaticResponses:
    """
    Serialize the status and kick payloads.

    Raises:
        ConfigurationError: either document cannot be encoded
    """
    try:
        status_payload = encode_string(json.dumps(build_status_document(settings), ensure_ascii=False))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"failed to encode motd: {e}") from e

    try:
        kick_payload = encode_string(json.dumps(build_kick_document(settings), ensure_ascii=False))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"failed to encode kick message: {e}") from e

    logger.info(
        "static_responses_built",
        status_bytes=len(status_payload),
        kick_bytes=len(kick_payload),
        protocol_version=settings.protocol_version,
    )
    return StaticResponses(status_payload=status_payload, kick_payload=kick_payload)
