"""Messages, codec and framing, asyncio networking, routing and logical-block schedulers."""

__version__ = "0.1.0"

__all__ = [
    "messages",
    "model",
    "codec",
    "framing",
    "router",
    "channel",
    "client_handler",
    "server_handler",
    "nodes",
    "scheduler",
    "scheduler_slots",
    "scheduler_python",
    "scheduler_factory",
    "io_monitor",
]