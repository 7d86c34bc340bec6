"""Listening side of a node: accepts peers and reads their messages."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .channel import KEEP_ALIVE_SECONDS, Server
from .framing import DEFAULT_SERIALIZATION

log = logging.getLogger(__name__)


class ServerHandler:
    """Accepts peer connections and feeds incoming messages to an observer."""

    def __init__(
        self,
        port: int,
        host: str = "0.0.0.0",
        serialization: str = DEFAULT_SERIALIZATION,
        keep_alive: float | None = KEEP_ALIVE_SECONDS,
    ) -> None:
        self.port = port
        self.host = host
        self.serialization = serialization
        self.keep_alive = keep_alive
        self.node: Any = None
        self._server: asyncio.base_events.Server | None = None
        self._channels: set[Server] = set()

    def attach(self, observer: Any) -> None:
        """Set the observer that receives every incoming message."""
        self.node = observer

    async def establish(self) -> bool:
        """Start accepting connections, recording the number actually bound."""
        self._server = await asyncio.start_server(self._accept, self.host, self.port)
        if self.port == 0:
            self.port = self._server.sockets[0].getsockname()[1]
        log.info("Listening at port %u", self.port)
        return True

    def _accept(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        log.debug("Client accepted")
        channel = Server(self.node, self.serialization, self.keep_alive)
        channel.attach_stream(reader, writer)
        self._channels.add(channel)
        channel.do_read().add_done_callback(lambda _: self._channels.discard(channel))

    def close(self) -> bool:
        """Stop listening and close the accepted connections."""
        if self._server is not None:
            self._server.close()
            self._server = None
        for channel in list(self._channels):
            channel.close()
        self._channels.clear()
        return True