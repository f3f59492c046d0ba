"""
onionsim Loopback Transport

An in-process transport connecting nodes of the same network.

Useful for:
- Unit and integration testing
- Simulating a multi-node network without sockets

Messages cross the boundary base64-encoded, the way they travel
between HTTP services, and are decoded before the receiving handler
sees them. Handlers run synchronously, so a relay that forwards
triggers the next hop before its own delivery returns.
"""

import base64
import binascii
import logging
import random
import threading
from typing import Dict, Optional

from ..errors import TransportError
from .base import BaseTransport, MessageHandler


logger = logging.getLogger(__name__)


class LoopbackTransport(BaseTransport):
    """
    Virtual transport for in-process networks.

    Usage:
        transport = LoopbackTransport()
        transport.bind(3001, user.receive_message)
        transport.deliver(3001, b"hello")
    """

    def __init__(
        self,
        name: str = "loopback",
        loss_probability: float = 0.0,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize loopback transport.

        Args:
            name: Transport instance name
            loss_probability: Probability (0.0 - 1.0) that a delivery
                is silently dropped
            rng: Random source for loss simulation
        """
        super().__init__(name)

        if not 0.0 <= loss_probability <= 1.0:
            raise ValueError(f"Invalid loss probability: {loss_probability}")

        self._loss_probability = loss_probability
        self._rng = rng if rng is not None else random.Random()
        self._handlers: Dict[int, MessageHandler] = {}
        self._lock = threading.Lock()

    def bind(self, address: int, handler: MessageHandler) -> None:
        with self._lock:
            if address in self._handlers:
                raise TransportError(f"Address {address} already bound")
            self._handlers[address] = handler
        logger.debug(f"{self.name}: bound address {address}")

    def unbind(self, address: int) -> None:
        with self._lock:
            self._handlers.pop(address, None)

    def is_bound(self, address: int) -> bool:
        with self._lock:
            return address in self._handlers

    def deliver(self, address: int, data: bytes) -> bool:
        with self._lock:
            self._messages_sent += 1
            handler = self._handlers.get(address)
            lost = self._loss_probability > 0 and self._rng.random() < self._loss_probability

        if handler is None:
            logger.warning(f"{self.name}: no receiver at address {address}")
            self._count_drop()
            return False

        if lost:
            logger.debug(f"{self.name}: simulated loss of {len(data)} bytes to {address}")
            self._count_drop()
            return False

        frame = self.encode_frame(data)

        try:
            accepted = bool(handler(self.decode_frame(frame)))
        except Exception as e:
            logger.error(f"{self.name}: handler at {address} failed: {e}")
            accepted = False

        with self._lock:
            if accepted:
                self._messages_delivered += 1
            else:
                self._messages_dropped += 1
        return accepted

    @staticmethod
    def encode_frame(data: bytes) -> str:
        """Encode raw bytes for the text-only wire."""
        return base64.b64encode(data).decode("ascii")

    @staticmethod
    def decode_frame(frame: str) -> bytes:
        """
        Decode a wire frame back to raw bytes.

        Raises:
            TransportError: If the frame is not valid base64
        """
        try:
            return base64.b64decode(frame.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise TransportError(f"Corrupt frame: {e}")

    def _count_drop(self) -> None:
        with self._lock:
            self._messages_dropped += 1

    def get_bound_addresses(self) -> list:
        """Get all bound addresses (sorted)."""
        with self._lock:
            return sorted(self._handlers)
