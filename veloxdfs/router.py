"""Dispatch of incoming messages to handlers, chained in decorator style."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

from .messages import Message

log = logging.getLogger(__name__)

Handler = Callable[[Message, Any], None]


class NetObserver(ABC):
    """Receiver of every message read from a channel."""

    @abstractmethod
    def on_read(self, message: Message, channel: Any) -> None:
        """Handle a message that arrived on channel."""


class Router(NetObserver):
    """A network observer holding a table from message type names to handlers."""

    def __init__(self) -> None:
        self.routing_table: dict[str, Handler] = {}

    @abstractmethod
    def on_read(self, message: Message, channel: Any) -> None:
        """Handle a message that arrived on channel."""

    def add_route(self, type_name: str, handler: Handler) -> None:
        """Register handler for messages whose type name is type_name."""
        self.routing_table[type_name] = handler


class RouterDecorator(Router):
    """Handles the message types in its own table and passes the rest on."""

    def __init__(self, router: Router) -> None:
        super().__init__()
        self.router = router

    def on_read(self, message: Message, channel: Any) -> None:
        handler = self.routing_table.get(message.get_type())
        if handler is not None:
            handler(message, channel)
        else:
            self.router.on_read(message, channel)


class SimpleRouter(Router):
    """End of a router chain: reports messages nobody handled."""

    def on_read(self, message: Message, channel: Any) -> None:
        log.error(
            "I could not find a handler for the message type: %s", message.get_type()
        )