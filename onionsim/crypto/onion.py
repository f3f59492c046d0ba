"""
onionsim Onion Routing Cryptography

Implements layered hybrid encryption for an N-hop circuit.

Onion Structure (one layer per relay, outermost for the first relay):
    wrapped_key (256 bytes)  - per-hop AES key, RSA-OAEP under the relay key
    iv (16 bytes)            - AES-GCM IV
    aes_ciphertext (var)     - AES-GCM output of the inner payload (+ tag)

Inner payload (after decryption):
    address (10 bytes)       - next hop, zero-padded ASCII decimal
    body (var)               - next onion layer, or the message at the last hop

The split point between wrapped_key and the symmetric part is fixed
by the RSA modulus size, so no length prefix is carried.

SECURITY NOTES:
- Each layer uses an independent fresh AES key
- A relay learns only its next hop; the body is opaque to it
- Intermediate and final layers are indistinguishable on the wire
"""

from dataclasses import dataclass
from typing import Sequence, TYPE_CHECKING

from .. import ADDRESS_WIDTH
from ..errors import CryptoError, OnionError, MalformedLayerError, AddressError
from .keys import CryptoKey, generate_symmetric_key, symmetric_key_from_bytes
from .cipher import rsa_encrypt, rsa_decrypt, sym_encrypt, sym_decrypt
from .primitives import RSA_CIPHERTEXT_SIZE, AES_IV_SIZE, GCM_TAG_SIZE

if TYPE_CHECKING:
    from ..directory.registry import RelayRecord


# Largest address that fits the fixed-width field
MAX_ADDRESS = 10 ** ADDRESS_WIDTH - 1

# Per-layer overhead: wrapped key + IV + GCM tag + address field
LAYER_OVERHEAD = RSA_CIPHERTEXT_SIZE + AES_IV_SIZE + GCM_TAG_SIZE + ADDRESS_WIDTH  # 298 bytes

# Smallest byte string that can possibly be a layer
MIN_LAYER_SIZE = RSA_CIPHERTEXT_SIZE + AES_IV_SIZE


def encode_address(address: int) -> bytes:
    """
    Encode an address as the fixed-width decimal field.

    Args:
        address: Non-negative integer with at most 10 decimal digits

    Returns:
        bytes: 10 ASCII digits, zero-padded

    Raises:
        AddressError: If the address does not fit the field
    """
    if isinstance(address, bool) or not isinstance(address, int):
        raise AddressError(f"Address must be an integer, got {type(address).__name__}")
    if not 0 <= address <= MAX_ADDRESS:
        raise AddressError(f"Address out of range: {address}")
    return str(address).zfill(ADDRESS_WIDTH).encode("ascii")


def parse_address(field: bytes) -> int:
    """
    Parse the fixed-width decimal address field.

    Raises:
        MalformedLayerError: If the field is not exactly 10 ASCII digits
    """
    if len(field) != ADDRESS_WIDTH:
        raise MalformedLayerError(f"Address field must be {ADDRESS_WIDTH} bytes, got {len(field)}")
    if not bytes(field).isdigit():
        raise MalformedLayerError("Address field is not decimal")
    return int(field)


@dataclass
class InnerPayload:
    """
    Decrypted contents of one onion layer.

    next_hop is where the relay must send `payload`. At the last hop
    the payload is the original message and next_hop is the final
    recipient.
    """
    next_hop: int
    payload: bytes

    def to_bytes(self) -> bytes:
        """Serialize inner payload to bytes."""
        return encode_address(self.next_hop) + self.payload

    @classmethod
    def from_bytes(cls, data: bytes) -> 'InnerPayload':
        """Deserialize inner payload from bytes."""
        if len(data) < ADDRESS_WIDTH:
            raise MalformedLayerError(f"Inner payload too short: {len(data)} bytes")
        return cls(
            next_hop=parse_address(data[:ADDRESS_WIDTH]),
            payload=bytes(data[ADDRESS_WIDTH:]),
        )


@dataclass
class OnionLayer:
    """
    Single layer of an onion as carried on the wire.
    """
    wrapped_key: bytes      # RSA_CIPHERTEXT_SIZE bytes
    sym_ciphertext: bytes   # iv || AES-GCM output

    def to_bytes(self) -> bytes:
        """Serialize layer to bytes."""
        return self.wrapped_key + self.sym_ciphertext

    @classmethod
    def from_bytes(cls, data: bytes) -> 'OnionLayer':
        """
        Split wire bytes at the fixed RSA ciphertext size.

        Raises:
            MalformedLayerError: If the data is shorter than a layer header
        """
        if len(data) < MIN_LAYER_SIZE:
            raise MalformedLayerError(
                f"Layer too short: {len(data)} bytes (minimum {MIN_LAYER_SIZE})"
            )
        return cls(
            wrapped_key=bytes(data[:RSA_CIPHERTEXT_SIZE]),
            sym_ciphertext=bytes(data[RSA_CIPHERTEXT_SIZE:]),
        )


def seal_layer(inner: InnerPayload, public_key: CryptoKey) -> OnionLayer:
    """
    Encrypt one inner payload for a single relay.

    A fresh AES key encrypts the payload; the raw key bytes are then
    encrypted under the relay's RSA public key.
    """
    sym_key = generate_symmetric_key()
    sym_ciphertext = sym_encrypt(sym_key, inner.to_bytes())
    wrapped_key = rsa_encrypt(sym_key.data, public_key)
    return OnionLayer(wrapped_key=wrapped_key, sym_ciphertext=sym_ciphertext)


def wrap_onion(
    circuit: Sequence['RelayRecord'],
    final_address: int,
    plaintext: bytes,
) -> bytes:
    """
    Construct a complete onion for a circuit.

    Construction order (inside-out):
    1. Innermost layer for the last relay, routing to final_address
    2. Each earlier relay's layer routes to the address of the relay
       after it and carries that relay's layer as its body

    Args:
        circuit: Relays in forward order (first relay receives the onion)
        final_address: Address of the ultimate recipient
        plaintext: Message content (may be empty)

    Returns:
        bytes: Wire bytes to transmit to circuit[0]

    Raises:
        OnionError: If the circuit is empty
        AddressError: If any address does not fit the address field
    """
    if not circuit:
        raise OnionError("Cannot wrap an onion for an empty circuit")

    # Check every address up front so no crypto work is wasted
    encode_address(final_address)
    for relay in circuit:
        encode_address(relay.address)

    payload = bytes(plaintext)
    destination = final_address

    for relay in reversed(circuit):
        inner = InnerPayload(next_hop=destination, payload=payload)
        payload = seal_layer(inner, relay.public_key).to_bytes()
        destination = relay.address

    return payload


def peel_layer(data: bytes, private_key: CryptoKey) -> InnerPayload:
    """
    Peel one layer from an onion.

    Used by relays to process incoming onions:
    - Split off the RSA-wrapped AES key
    - Recover the AES key with the relay's private key
    - Decrypt the inner payload and parse the next hop

    Args:
        data: Incoming wire bytes
        private_key: Relay's PRIVATE CryptoKey

    Returns:
        InnerPayload with the next hop and the bytes to forward

    Raises:
        MalformedLayerError: If the data or inner payload is malformed
        CryptoError: If either decryption fails
    """
    layer = OnionLayer.from_bytes(data)

    raw_key = rsa_decrypt(layer.wrapped_key, private_key)
    try:
        sym_key = symmetric_key_from_bytes(raw_key)
    except CryptoError as e:
        raise MalformedLayerError(f"Unwrapped key is invalid: {e}")

    plaintext = sym_decrypt(sym_key, layer.sym_ciphertext)
    return InnerPayload.from_bytes(plaintext)


def onion_size(payload_size: int, num_layers: int) -> int:
    """
    Compute the wire size of an onion.

    Useful for checking against transport limits.

    Args:
        payload_size: Size of the message in bytes
        num_layers: Circuit length

    Returns:
        int: Total onion size in bytes
    """
    if payload_size < 0:
        raise ValueError("Payload size must be non-negative")
    if num_layers < 1:
        raise OnionError(f"Invalid layer count: {num_layers}")
    return payload_size + num_layers * LAYER_OVERHEAD
