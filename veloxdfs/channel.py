"""A connection to a peer that writes queued frames and reads incoming messages."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any

from .framing import (
    DEFAULT_SERIALIZATION,
    HEADER_SIZE,
    load_message,
    parse_header,
    save_message,
)

log = logging.getLogger(__name__)

KEEP_ALIVE_SECONDS = 10.0


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class AsyncChannel:
    """An open stream between two endpoints.

    Outgoing frames are queued and written one after another; incoming frames
    are decoded and handed to the observer.  A channel left idle after its
    last write is closed once keep_alive seconds pass (None keeps it open).
    """

    def __init__(
        self,
        node: Any,
        serialization: str = DEFAULT_SERIALIZATION,
        keep_alive: float | None = KEEP_ALIVE_SECONDS,
    ) -> None:
        self.node = node
        self.serialization = serialization
        self.keep_alive = keep_alive
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.host = ""
        self.port = 0
        self._queue: deque[bytes] = deque()
        self._writing = False
        self._write_task: asyncio.Task | None = None
        self._read_task: asyncio.Task | None = None
        self._idle_handle: asyncio.TimerHandle | None = None
        self._eof = False
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether the channel has been closed."""
        return self._closed

    def attach_stream(
        self, reader: asyncio.StreamReader | None, writer: asyncio.StreamWriter | None
    ) -> None:
        """Bind the channel to an opened stream pair."""
        self.reader = reader
        self.writer = writer
        if writer is not None:
            peer = writer.get_extra_info("peername")
            if peer:
                self.host, self.port = peer[0], peer[1]
        self._closed = False
        self._eof = False

    def _frame(self, payload: Any) -> bytes:
        if isinstance(payload, (bytes, bytearray, memoryview)):
            return bytes(payload)
        return save_message(payload, self.serialization)

    def commit(self, payload: Any) -> None:
        """Queue a message or an already framed payload without writing it."""
        self._queue.append(self._frame(payload))

    def do_write(self, payload: Any) -> asyncio.Task | None:
        """Queue a message or framed payload and start writing if idle."""
        self.commit(payload)
        return self.do_write_buffer()

    def do_write_buffer(self) -> asyncio.Task | None:
        """Start writing the queued frames unless a write is already running."""
        if self._writing:
            return self._write_task
        if not self._queue:
            return None
        if self._closed:
            raise RuntimeError("channel is closed")
        if self.writer is None:
            raise RuntimeError("channel has no stream attached")
        self._writing = True
        self._cancel_idle()
        self._write_task = asyncio.get_running_loop().create_task(self._write_loop())
        return self._write_task

    async def _write_loop(self) -> None:
        try:
            while self._queue and not self._closed:
                data = self._queue[0]
                try:
                    self.writer.write(data)
                    await self.writer.drain()
                except ConnectionResetError as exc:
                    log.warning(
                        "Message could not reach err=%s host %s", exc, self.host
                    )
                    if not await self._reconnect():
                        return
                    continue
                except OSError as exc:
                    log.warning(
                        "Message could not reach err=%s host %s", exc, self.host
                    )
                    return
                self._queue.popleft()
        finally:
            self._writing = False
        if self._eof:
            self.close()
        else:
            self._schedule_idle()

    async def _reconnect(self) -> bool:
        log.warning("Reconnecting to %s %u", self.host, self.port)
        if self.writer is not None:
            self.writer.close()
        while True:
            try:
                reader, writer = await asyncio.open_connection(self.host, self.port)
            except TimeoutError:
                continue
            except OSError as exc:
                log.error("Failed to reconnect err=%s host %s", exc, self.host)
                self.close()
                return False
            self.reader, self.writer = reader, writer
            return True

    def _schedule_idle(self) -> None:
        if self.keep_alive is None or self._closed:
            return
        self._cancel_idle()
        self._idle_handle = asyncio.get_running_loop().call_later(
            self.keep_alive, self._expire
        )

    def _cancel_idle(self) -> None:
        if self._idle_handle is not None:
            self._idle_handle.cancel()
            self._idle_handle = None

    def _expire(self) -> None:
        self._idle_handle = None
        if not self._writing and not self._queue:
            self.close()

    def do_read(self) -> asyncio.Task:
        """Start the reading loop; returns the task running it."""
        log.debug("Connection established, starting to read")
        self._read_task = asyncio.get_running_loop().create_task(self._read_loop())
        return self._read_task

    async def _read_loop(self) -> None:
        try:
            while True:
                try:
                    header = await self.reader.readexactly(HEADER_SIZE)
                    size = parse_header(header)
                    body = await self.reader.readexactly(size)
                except asyncio.IncompleteReadError:
                    break
                message = load_message(body, self.serialization)
                self.node.on_read(message, self)
        except MemoryError:
            log.error("Running out of memory")
        except Exception as exc:
            log.error(
                "AsyncChannel: unformed message arrived from host %s, ex: %s",
                self.host,
                exc,
            )
        finally:
            self._eof = True
            if not self._writing and not self._queue:
                self.close()

    def close(self) -> None:
        """Close the stream and stop reading."""
        self._cancel_idle()
        self._closed = True
        if self.writer is not None:
            self.writer.close()
        task = self._read_task
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()


class Server(AsyncChannel):
    """A channel serving one peer connection."""

    @staticmethod
    def is_multiple() -> bool:
        """A server channel serves a single peer."""
        return False