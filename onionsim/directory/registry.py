"""
onionsim Key Directory

In-memory registry mapping relay identifiers to their public keys and
inbound addresses.

Design:
- One KeyDirectory per network, constructed at start and passed to
  whoever needs it (no module-level registry)
- Records are immutable; re-registering the same key is a no-op
- Public keys are validated once, at registration
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from .. import ADDRESS_WIDTH
from ..errors import CryptoError, DirectoryError
from ..crypto.keys import CryptoKey, KeyType, public_key_from_bytes


logger = logging.getLogger(__name__)

# Default first relay port (relay N listens on DEFAULT_BASE_RELAY_PORT + N)
DEFAULT_BASE_RELAY_PORT = 4000


@dataclass(frozen=True)
class RelayRecord:
    """
    Registered relay: identifier, public key and inbound address.
    """
    relay_id: int
    public_key: CryptoKey
    address: int


class KeyDirectory:
    """
    Relay key directory.

    Usage:
        directory = KeyDirectory()
        directory.register(0, public_key.data)

        for record in directory.list_relays():
            print(record.relay_id, record.address)
    """

    def __init__(self, base_relay_port: int = DEFAULT_BASE_RELAY_PORT):
        """
        Initialize an empty directory.

        Args:
            base_relay_port: Address offset for relays registered
                without an explicit address
        """
        self._base_relay_port = base_relay_port
        self._relays: Dict[int, RelayRecord] = {}
        self._lock = threading.Lock()

    @property
    def base_relay_port(self) -> int:
        return self._base_relay_port

    def relay_address(self, relay_id: int) -> int:
        """Default inbound address of a relay."""
        return self._base_relay_port + relay_id

    def register(
        self,
        relay_id: int,
        public_key_bytes: bytes,
        address: Optional[int] = None,
    ) -> RelayRecord:
        """
        Register a relay.

        Args:
            relay_id: Non-negative relay identifier
            public_key_bytes: DER-encoded RSA public key
            address: Inbound address (default: base_relay_port + relay_id)

        Returns:
            RelayRecord: The stored record

        Raises:
            DirectoryError: If the key is invalid, the address does not
                fit the onion address field, or relay_id is already
                registered with a different key or address
        """
        if isinstance(relay_id, bool) or not isinstance(relay_id, int) or relay_id < 0:
            raise DirectoryError(f"Invalid relay id: {relay_id!r}")

        try:
            public_key_from_bytes(public_key_bytes)
        except CryptoError as e:
            raise DirectoryError(f"Relay {relay_id}: {e}")

        if address is None:
            address = self.relay_address(relay_id)
        if isinstance(address, bool) or not isinstance(address, int):
            raise DirectoryError(f"Relay {relay_id}: invalid address: {address!r}")
        if not 0 <= address < 10 ** ADDRESS_WIDTH:
            raise DirectoryError(f"Relay {relay_id}: address out of range: {address}")

        record = RelayRecord(
            relay_id=relay_id,
            public_key=CryptoKey(KeyType.PUBLIC, public_key_bytes),
            address=address,
        )

        with self._lock:
            existing = self._relays.get(relay_id)
            if existing is not None:
                if existing == record:
                    return existing
                raise DirectoryError(f"Relay {relay_id} already registered with a different key")
            self._relays[relay_id] = record

        logger.info(f"Registered relay {relay_id} at address {address}")
        return record

    def list_relays(self) -> List[RelayRecord]:
        """Get all registered relays, ordered by relay id."""
        with self._lock:
            return [self._relays[rid] for rid in sorted(self._relays)]

    def get_relay(self, relay_id: int) -> Optional[RelayRecord]:
        """Get a relay by identifier."""
        with self._lock:
            return self._relays.get(relay_id)

    def clear(self) -> None:
        """Remove all relays."""
        with self._lock:
            self._relays.clear()

    def get_stats(self) -> dict:
        """Get directory statistics."""
        with self._lock:
            return {
                "relay_count": len(self._relays),
                "base_relay_port": self._base_relay_port,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._relays)

    def __contains__(self, relay_id: object) -> bool:
        with self._lock:
            return relay_id in self._relays
