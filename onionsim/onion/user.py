"""
onionsim User Node

The sender side of the protocol, and the final recipient of messages.

The sender:
1. Fetches the relay list from the key directory
2. Selects a fresh circuit
3. Wraps the message in one layer per relay (inside-out)
4. Hands the onion to the first relay
"""

import logging
import threading
from typing import List, Optional

from .. import ONION_LAYERS
from ..crypto.onion import wrap_onion
from ..directory.registry import KeyDirectory
from ..transport.base import BaseTransport
from .circuit import CircuitBuilder


logger = logging.getLogger(__name__)

# Default first user port (user N listens on DEFAULT_BASE_USER_PORT + N)
DEFAULT_BASE_USER_PORT = 3000


class User:
    """
    Onion routing end user.

    Usage:
        alice = User(0, directory, transport)
        bob = User(1, directory, transport)

        alice.send_message(b"hello", bob.address)
        assert bob.last_received_message == b"hello"
    """

    def __init__(
        self,
        user_id: int,
        directory: KeyDirectory,
        transport: BaseTransport,
        circuit_builder: Optional[CircuitBuilder] = None,
        circuit_length: int = ONION_LAYERS,
        address: Optional[int] = None,
    ):
        """
        Initialize user.

        Args:
            user_id: User identifier
            directory: Directory to select relays from
            transport: Transport for outgoing onions and inbound messages
            circuit_builder: Relay selector (default: CSPRNG-backed)
            circuit_length: Number of relays per circuit
            address: Inbound address (default: 3000 + user_id)
        """
        self.user_id = user_id
        self._directory = directory
        self._transport = transport
        self._circuit_builder = circuit_builder or CircuitBuilder()
        self._circuit_length = circuit_length
        self._address = address if address is not None else DEFAULT_BASE_USER_PORT + user_id

        self._lock = threading.Lock()
        self._last_sent_message: Optional[bytes] = None
        self._last_received_message: Optional[bytes] = None
        self._last_circuit: Optional[List[int]] = None

        transport.bind(self._address, self.receive_message)

        logger.info(f"User {user_id} listening on {self._address}")

    @property
    def address(self) -> int:
        return self._address

    @property
    def last_sent_message(self) -> Optional[bytes]:
        with self._lock:
            return self._last_sent_message

    @property
    def last_received_message(self) -> Optional[bytes]:
        with self._lock:
            return self._last_received_message

    @property
    def last_circuit(self) -> Optional[List[int]]:
        """Relay ids of the most recent circuit, first hop first."""
        with self._lock:
            return list(self._last_circuit) if self._last_circuit is not None else None

    def send_message(self, message: bytes, destination: int) -> bool:
        """
        Send a message through a fresh circuit.

        Args:
            message: Plaintext bytes
            destination: Address of the final recipient

        Returns:
            True if the first relay accepted the onion and every hop
            after it forwarded successfully

        Raises:
            InsufficientRelaysError: If the directory holds fewer relays
                than the circuit length
            AddressError: If the destination does not fit the address field
        """
        with self._lock:
            self._last_sent_message = message

        circuit = self._circuit_builder.build_circuit(
            self._directory.list_relays(),
            self._circuit_length,
        )
        with self._lock:
            self._last_circuit = [relay.relay_id for relay in circuit]

        onion = wrap_onion(circuit, destination, message)

        logger.debug(
            f"User {self.user_id}: sending {len(onion)} byte onion via "
            f"{[relay.relay_id for relay in circuit]}"
        )
        delivered = self._transport.deliver(circuit[0].address, onion)
        if not delivered:
            logger.warning(f"User {self.user_id}: message to {destination} was not delivered")
        return delivered

    def receive_message(self, data: bytes) -> bool:
        """Transport handler for messages delivered by the last relay."""
        with self._lock:
            self._last_received_message = data
        logger.info(f"User {self.user_id}: received {len(data)} byte message")
        return True

    def close(self) -> None:
        """Stop listening."""
        self._transport.unbind(self._address)
