"""
Core data models
"""
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Optional
from pydantic import BaseModel, Field

UINT32_MAX = 0xFFFFFFFF


class NextState(IntEnum):
    """Phase requested by the handshake"""

    STATUS = 1
    LOGIN = 2
    TRANSFER = 3


class SessionState(str, Enum):
    """Connection session state"""

    AWAIT_HANDSHAKE = "await_handshake"
    STATUS_QUERY = "status_query"
    LOGIN_ATTEMPT = "login_attempt"
    CLOSED = "closed"


class Frame(BaseModel):
    """Length-prefixed packet: id plus opaque payload"""

    model_config = {"frozen": True}

    id: int = Field(ge=0, le=UINT32_MAX)
    payload: bytes = b""


class Handshake(BaseModel):
    """Decoded handshake packet (id 0x00, first packet on every connection)"""

    protocol_version: int = Field(ge=0, le=UINT32_MAX)
    server_address: str
    server_port: int = Field(ge=0, le=0xFFFF)
    next_state: int = Field(ge=0, le=0xFF)

    @property
    def target(self) -> str:
        return f"{self.server_address}:{self.server_port}"


class PingEvent(BaseModel):
    """A status query seen from a peer"""

    peer_address: str
    ip: str
    protocol_version: int
    server_address: str
    server_port: int
    sequence: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class JoinEvent(PingEvent):
    """A login attempt seen from a peer"""

    username: str


class SessionResult(BaseModel):
    """Outcome of one connection, for logging and tests"""

    phase: SessionState  # last state entered before closing
    completed: bool = False
    handshake: Optional[Handshake] = None
    username: Optional[str] = None
    error: Optional[str] = None
