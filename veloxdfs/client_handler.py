"""Outgoing connections to the other nodes of the cluster."""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any, Iterable, Sequence

from .channel import KEEP_ALIVE_SECONDS, Server
from .framing import DEFAULT_SERIALIZATION, save_message

log = logging.getLogger(__name__)


class ClientHandler:
    """Sends messages to nodes by index, reusing live connections."""

    def __init__(
        self,
        nodes: Sequence[str],
        port: int,
        serialization: str = DEFAULT_SERIALIZATION,
        keep_alive: float | None = KEEP_ALIVE_SECONDS,
    ) -> None:
        self.nodes = list(nodes)
        self.port = port
        self.serialization = serialization
        self.keep_alive = keep_alive
        self.local_router: Any = None
        self._servers: dict[int, Server] = {}
        self._pending: set[asyncio.Task] = set()

    def attach(self, observer: Any) -> None:
        """Set the observer given to every new connection."""
        self.local_router = observer

    def send(self, index: int, message: Any) -> bool:
        """Send a message to node index; False if there is no such node."""
        if not 0 <= index < len(self.nodes):
            return False
        return self._send_bytes(index, save_message(message, self.serialization))

    def send_and_replicate(self, indices: Iterable[int], message: Any) -> bool:
        """Serialize a message once and send it to every listed node."""
        payload = save_message(message, self.serialization)
        for index in indices:
            self._send_bytes(index, payload)
        return True

    def _send_bytes(self, index: int, payload: bytes) -> bool:
        if not 0 <= index < len(self.nodes):
            return False
        if not self._try_reuse_client(index, payload):
            server = Server(self.local_router, self.serialization, self.keep_alive)
            server.commit(payload)
            self._connect(index, server)
        return True

    def _try_reuse_client(self, index: int, payload: bytes) -> bool:
        server = self._servers.get(index)
        if server is None:
            return False
        if server.closed:
            del self._servers[index]
            return False
        log.debug("REUSING SOCKET")
        server.do_write(payload)
        return True

    def _connect(self, index: int, server: Server) -> None:
        task = asyncio.get_running_loop().create_task(
            self._connect_coroutine(index, server)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _connect_coroutine(self, index: int, server: Server) -> None:
        node = self.nodes[index]
        try:
            while True:
                try:
                    reader, writer = await asyncio.open_connection(node, self.port)
                    break
                except TimeoutError:
                    log.warning("Re-connecting to %s:%u", node, self.port)
        except OSError as exc:
            log.error("Connect coroutine exception %s", exc)
            return

        sock = writer.get_extra_info("socket")
        if sock is not None and sock.family in (socket.AF_INET, socket.AF_INET6):
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        server.attach_stream(reader, writer)
        self._servers[index] = server
        server.do_write_buffer()