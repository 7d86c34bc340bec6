"""Machines taking part in the cluster."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any


class Machine(ABC):
    """A cluster member identified by its id."""

    def __init__(self, node_id: int = 0) -> None:
        self.id = node_id

    @abstractmethod
    def get_ip(self) -> str:
        """Return the address of this machine."""


class Node(Machine):
    """A machine running a node service on the internal port."""

    def __init__(
        self,
        node_id: int,
        port: int,
        network: Any = None,
        ip_of_this: str = "",
    ) -> None:
        super().__init__(node_id)
        self.port = port
        self.network = network
        self.ip_of_this = ip_of_this
        self.logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    def get_ip(self) -> str:
        return self.ip_of_this