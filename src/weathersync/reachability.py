# network reachability check consulted before any refresh

from __future__ import annotations
import logging
import socket
from typing import Protocol

logger = logging.getLogger(__name__)


class Reachability(Protocol):
    def is_connected(self) -> bool:
        ...


class SocketReachability:
    # a short tcp connect to the provider host
    # this blocks the calling thread for at most `timeout` seconds, keep it small
    def __init__(self, host: str = "api.tomorrow.io", port: int = 443, timeout: float = 0.5):
        self.host = host
        self.port = port
        self.timeout = timeout

    def is_connected(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.timeout):
                return True
        except OSError as exc:
            logger.info("Network unreachable (%s:%s): %s", self.host, self.port, exc)
            return False
