"""
onionsim Relay Processing

Handles onion layer peeling at relay nodes.

Relays:
1. Receive an onion from the previous hop
2. Decrypt their layer to reveal the next hop
3. Forward the remainder, byte for byte, to that hop

A relay cannot tell whether it is the last hop: it forwards whatever
it peeled to whatever address it peeled.
"""

import logging
import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from ..errors import CryptoError, MalformedLayerError
from ..crypto.keys import CryptoKey, generate_rsa_keypair
from ..crypto.onion import peel_layer
from ..directory.registry import KeyDirectory, RelayRecord
from ..transport.base import BaseTransport


logger = logging.getLogger(__name__)


class ProcessingResult(IntEnum):
    """Result of relay processing."""
    FORWARD = 1          # Forward remainder to next hop
    DROP_DECRYPT = 2     # Drop: decryption failed
    DROP_INVALID = 3     # Drop: invalid format


@dataclass
class ProcessedPacket:
    """
    Result of processing an onion layer.
    """
    result: ProcessingResult

    # For FORWARD
    next_hop: Optional[int] = None
    payload: Optional[bytes] = None

    # Error info
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result == ProcessingResult.FORWARD


class Relay:
    """
    Onion relay node.

    Generates its key pair on construction, registers with the
    directory and listens on its address.

    Usage:
        relay = Relay(0, directory, transport)

        # Inbound onions arrive through the transport
        transport.deliver(relay.address, onion)
    """

    def __init__(
        self,
        relay_id: int,
        directory: KeyDirectory,
        transport: BaseTransport,
        address: Optional[int] = None,
    ):
        """
        Initialize relay.

        Args:
            relay_id: Relay identifier
            directory: Directory to register the public key with
            transport: Transport for inbound and forwarded messages
            address: Inbound address (default: directory's relay address)
        """
        self.relay_id = relay_id
        self._transport = transport

        self._public_key, self._private_key = generate_rsa_keypair()

        # Status of the last processed message
        self._lock = threading.Lock()
        self._last_received_encrypted: Optional[bytes] = None
        self._last_received_decrypted: Optional[bytes] = None
        self._last_destination: Optional[int] = None

        # Bind before registering: an unreachable relay must never be listed
        if address is None:
            address = directory.relay_address(relay_id)
        transport.bind(address, self.handle_message)
        try:
            self._record: RelayRecord = directory.register(
                relay_id,
                self._public_key.data,
                address=address,
            )
        except Exception:
            transport.unbind(address)
            raise

        logger.info(f"Relay {relay_id} listening on {self._record.address}")

    @property
    def address(self) -> int:
        return self._record.address

    @property
    def record(self) -> RelayRecord:
        return self._record

    @property
    def public_key(self) -> CryptoKey:
        return self._public_key

    @property
    def private_key(self) -> CryptoKey:
        return self._private_key

    @property
    def last_received_encrypted(self) -> Optional[bytes]:
        with self._lock:
            return self._last_received_encrypted

    @property
    def last_received_decrypted(self) -> Optional[bytes]:
        with self._lock:
            return self._last_received_decrypted

    @property
    def last_destination(self) -> Optional[int]:
        with self._lock:
            return self._last_destination

    def process(self, data: bytes) -> ProcessedPacket:
        """
        Peel one layer.

        Args:
            data: Incoming onion bytes

        Returns:
            ProcessedPacket with result and relevant data
        """
        try:
            inner = peel_layer(data, self._private_key)
        except MalformedLayerError as e:
            return ProcessedPacket(
                result=ProcessingResult.DROP_INVALID,
                error_message=str(e),
            )
        except CryptoError as e:
            return ProcessedPacket(
                result=ProcessingResult.DROP_DECRYPT,
                error_message=str(e),
            )

        return ProcessedPacket(
            result=ProcessingResult.FORWARD,
            next_hop=inner.next_hop,
            payload=inner.payload,
        )

    def handle_message(self, data: bytes) -> bool:
        """
        Transport handler: peel and forward.

        Returns:
            True if the layer was peeled and the next hop accepted
            the remainder
        """
        with self._lock:
            self._last_received_encrypted = data

        result = self.process(data)

        if not result.ok:
            logger.warning(
                f"Relay {self.relay_id}: dropped {len(data)} byte message: {result.error_message}"
            )
            return False

        with self._lock:
            self._last_received_decrypted = result.payload
            self._last_destination = result.next_hop

        logger.debug(
            f"Relay {self.relay_id}: forwarding {len(result.payload)} bytes to {result.next_hop}"
        )
        delivered = self._transport.deliver(result.next_hop, result.payload)
        if not delivered:
            logger.warning(f"Relay {self.relay_id}: delivery to {result.next_hop} failed")
        return delivered

    def close(self) -> None:
        """Stop listening."""
        self._transport.unbind(self._record.address)
