"""
Accept loop

Binds the listening socket and runs one ConnectionSession task per accepted
connection. Sessions share only the response bundle, the notifier and the
counters.
"""
from __future__ import annotations

import asyncio
from typing import Optional, Set, Tuple

import structlog

from honeypot.config import Settings
from honeypot.engine.counters import EventCounter
from honeypot.engine.responses import StaticResponses
from honeypot.engine.session import ConnectionSession
from honeypot.exceptions import ConfigurationError
from honeypot.notifier import Notifier

logger = structlog.get_logger()


def parse_address(address: str) -> Tuple[str, int]:
    """
    Split "host:port" (or "[v6]:port") into its parts.

    Raises:
        ConfigurationError: missing or invalid port
    """
    host, sep, port_text = address.rpartition(":")
    if not sep:
        raise ConfigurationError(f"address has no port: {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_text)
    except ValueError:
        raise ConfigurationError(f"invalid port in address: {address!r}")
    if not 0 <= port <= 0xFFFF:
        raise ConfigurationError(f"port out of range in address: {address!r}")
    return host, port


class HoneypotServer:
    """Listening socket plus the set of in-flight sessions."""

    def __init__(
        self,
        settings: Settings,
        responses: StaticResponses,
        notifier: Notifier,
        ping_counter: Optional[EventCounter] = None,
        join_counter: Optional[EventCounter] = None,
    ):
        self.settings = settings
        self.responses = responses
        self.notifier = notifier
        self.ping_counter = ping_counter or EventCounter("ping")
        self.join_counter = join_counter or EventCounter("join")
        self.host, self.port = parse_address(settings.address)

        self._server: Optional[asyncio.AbstractServer] = None
        self._sessions: Set[asyncio.Task] = set()

    @property
    def sockets(self):
        return self._server.sockets if self._server else ()

    @property
    def bound_port(self) -> Optional[int]:
        """Actual port, useful when configured with port 0."""
        for sock in self.sockets:
            return sock.getsockname()[1]
        return None

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    async def start(self) -> None:
        """
        Bind the listening socket.

        Raises:
            ConfigurationError: address cannot be bound
        """
        host = self.host or None
        try:
            self._server = await asyncio.start_server(self._handle_connection, host, self.port)
        except OSError as e:
            raise ConfigurationError(
                f"failed to bind {self.settings.address}: {e}",
                details={"host": self.host, "port": self.port},
            ) from e

        logger.info("honeypot_listening", address=self.settings.address, port=self.bound_port)

    async def serve_forever(self) -> None:
        if self._server is None:
            await self.start()
        await self._server.serve_forever()

    async def stop(self) -> None:
        """Close the listener, cancel in-flight sessions, flush notifications."""
        server, self._server = self._server, None
        if server is not None:
            server.close()

        # wait_closed() also waits for open connections, so end them first
        for task in list(self._sessions):
            task.cancel()
        if self._sessions:
            await asyncio.gather(*self._sessions, return_exceptions=True)

        if server is not None:
            await server.wait_closed()

        await self.notifier.aclose()
        logger.info("honeypot_stopped")

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._sessions.add(task)
        try:
            session = ConnectionSession(
                reader,
                writer,
                self.responses,
                self.notifier,
                self.ping_counter,
                self.join_counter,
                max_frame_length=self.settings.max_frame_length,
            )
            logger.debug("connection_accepted", peer=session.peer_address)

            timeout = self.settings.connection_timeout_sec
            try:
                result = await asyncio.wait_for(session.run(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.debug("session_timed_out", peer=session.peer_address, timeout_sec=timeout)
                return

            logger.debug(
                "session_closed",
                peer=session.peer_address,
                phase=result.phase.value,
                completed=result.completed,
                error=result.error,
            )
        finally:
            if task is not None:
                self._sessions.discard(task)
