"""
Connection Session - one pass through the handshake state machine per peer.

    AWAIT_HANDSHAKE --next_state=1--> STATUS_QUERY  --> CLOSED
                    --next_state=2/3-> LOGIN_ATTEMPT --> CLOSED
                    --anything else--> CLOSED

Status: read request (0x00), notify, send status JSON (0x00), read ping
(0x01), echo it. Login: read login start (0x00), send disconnect (0x00) with
the kick JSON, notify. Any decode, read or write error ends the session with
no reply; the stream is closed on every path.
"""
from __future__ import annotations

import asyncio
from typing import Optional

import structlog

from honeypot.engine.counters import EventCounter, join_key
from honeypot.engine.responses import StaticResponses
from honeypot.exceptions import HoneypotError, UnrecognizedNextStateError
from honeypot.models import Frame, Handshake, JoinEvent, NextState, PingEvent, SessionResult, SessionState
from honeypot.notifier import Notifier
from honeypot.protocol.framing import read_frame, write_frame
from honeypot.protocol.handshake import HANDSHAKE_PACKET_ID, decode_handshake
from honeypot.protocol.strings import decode_string

logger = structlog.get_logger()

STATUS_REQUEST_ID = 0x00
STATUS_RESPONSE_ID = 0x00
PING_ID = 0x01
LOGIN_START_ID = 0x00
LOGIN_DISCONNECT_ID = 0x00


def peer_ip(peername) -> str:
    """Host part of a socket peer name, or its string form if it has none."""
    if isinstance(peername, (tuple, list)) and peername:
        return str(peername[0])
    return str(peername) if peername else "unknown"


def format_peer(peername) -> str:
    if isinstance(peername, (tuple, list)) and len(peername) >= 2:
        host, port = peername[0], peername[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return peer_ip(peername)


class ConnectionSession:
    """
    Drives one accepted connection to completion.

    The session owns the stream for its lifetime. Shared collaborators are
    injected: the immutable response bundle, the notifier, and one counter
    store per event type.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        responses: StaticResponses,
        notifier: Notifier,
        ping_counter: EventCounter,
        join_counter: EventCounter,
        max_frame_length: Optional[int] = None,
    ):
        self.reader = reader
        self.writer = writer
        self.responses = responses
        self.notifier = notifier
        self.ping_counter = ping_counter
        self.join_counter = join_counter
        self.max_frame_length = max_frame_length

        peername = writer.get_extra_info("peername")
        self.peer_address = format_peer(peername)
        self.ip = peer_ip(peername)

        self.state = SessionState.AWAIT_HANDSHAKE
        self.handshake: Optional[Handshake] = None
        self.username: Optional[str] = None
        self._log = logger.bind(peer=self.peer_address)

    async def run(self) -> SessionResult:
        """Run the state machine; never raises for peer or stream errors."""
        phase = self.state
        error: Optional[str] = None
        completed = False
        try:
            self.handshake = await self._await_handshake()
            if self.handshake.next_state == NextState.STATUS:
                self.state = phase = SessionState.STATUS_QUERY
                await self._status_query(self.handshake)
            else:
                self.state = phase = SessionState.LOGIN_ATTEMPT
                await self._login_attempt(self.handshake)
            completed = True
        except HoneypotError as e:
            error = e.message
            self._log.debug(
                "session_aborted",
                phase=phase.value,
                error=e.message,
                error_type=type(e).__name__,
            )
        finally:
            self.state = SessionState.CLOSED
            await self._close()

        return SessionResult(
            phase=phase,
            completed=completed,
            handshake=self.handshake,
            username=self.username,
            error=error,
        )

    async def _read(self, expected_id: int) -> Frame:
        return await read_frame(self.reader, expected_id, max_length=self.max_frame_length)

    async def _await_handshake(self) -> Handshake:
        frame = await self._read(HANDSHAKE_PACKET_ID)
        handshake = decode_handshake(frame.payload)
        if handshake.next_state not in (NextState.STATUS, NextState.LOGIN, NextState.TRANSFER):
            raise UnrecognizedNextStateError(handshake.next_state)

        self._log.debug(
            "handshake_received",
            protocol_version=handshake.protocol_version,
            target=handshake.target,
            next_state=handshake.next_state,
        )
        return handshake

    async def _status_query(self, handshake: Handshake) -> None:
        await self._read(STATUS_REQUEST_ID)

        sequence = self.ping_counter.increment(self.ip)
        event = PingEvent(
            peer_address=self.peer_address,
            ip=self.ip,
            protocol_version=handshake.protocol_version,
            server_address=handshake.server_address,
            server_port=handshake.server_port,
            sequence=sequence,
        )
        self._log.info(
            "ping_received",
            protocol_version=handshake.protocol_version,
            target=handshake.target,
            sequence=sequence,
        )
        self.notifier.notify_ping(event)

        await write_frame(self.writer, STATUS_RESPONSE_ID, self.responses.status_payload)

        ping = await self._read(PING_ID)
        await write_frame(self.writer, ping.id, ping.payload)

    async def _login_attempt(self, handshake: Handshake) -> None:
        frame = await self._read(LOGIN_START_ID)
        # Clients do not validate names; keep the attempt even when the bytes are not UTF-8
        self.username = decode_string(frame.payload, errors="replace")

        await write_frame(self.writer, LOGIN_DISCONNECT_ID, self.responses.kick_payload)

        sequence = self.join_counter.increment(join_key(self.ip, self.username))
        event = JoinEvent(
            peer_address=self.peer_address,
            ip=self.ip,
            protocol_version=handshake.protocol_version,
            server_address=handshake.server_address,
            server_port=handshake.server_port,
            sequence=sequence,
            username=self.username,
        )
        self._log.info(
            "login_attempt",
            username=self.username,
            protocol_version=handshake.protocol_version,
            target=handshake.target,
            sequence=sequence,
        )
        self.notifier.notify_join(event)

    async def _close(self) -> None:
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError as e:
            self._log.debug("writer_close_failed", error=str(e), error_type=type(e).__name__)
