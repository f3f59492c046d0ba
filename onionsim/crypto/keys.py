"""
onionsim Key Management

Handles:
- RSA key pair generation for relays
- Per-hop AES key generation
- Import/export between CryptoKey and its base64 encoding
- Loading CryptoKey material into cryptography key objects

Key Types:
- PUBLIC:  RSA-OAEP public key, DER SubjectPublicKeyInfo
- PRIVATE: RSA-OAEP private key, DER PKCS#8 (unencrypted)
- SECRET:  AES-256 key, 32 raw bytes

SECURITY NOTES:
- Private keys are never logged
- CryptoKey reprs never include key material
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ..errors import CryptoError
from .primitives import (
    random_bytes,
    b64encode,
    b64decode,
    RSA_KEY_SIZE,
    RSA_PUBLIC_EXPONENT,
    AES_KEY_SIZE,
)


class KeyType(Enum):
    """Algorithm tag of a CryptoKey."""
    PUBLIC = "public"
    PRIVATE = "private"
    SECRET = "secret"

    @property
    def algorithm(self) -> str:
        """Algorithm name the key is used with."""
        return "AES-GCM" if self is KeyType.SECRET else "RSA-OAEP"


@dataclass(frozen=True)
class CryptoKey:
    """
    Immutable key container.

    The same representation is used for all three key types; the
    key_type tag says how `data` is to be interpreted. `extractable`
    is always True in this system.
    """
    key_type: KeyType
    data: bytes = field(repr=False)
    extractable: bool = True

    def __post_init__(self):
        if not isinstance(self.data, (bytes, bytearray)):
            raise TypeError("Key data must be bytes")
        object.__setattr__(self, "data", bytes(self.data))

    @property
    def algorithm(self) -> str:
        return self.key_type.algorithm

    def __len__(self) -> int:
        return len(self.data)


def generate_rsa_keypair() -> Tuple[CryptoKey, CryptoKey]:
    """
    Generate a new RSA key pair.

    Returns:
        Tuple of (public_key, private_key)

    Security:
        2048-bit modulus, public exponent 65537.
    """
    private = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT,
        key_size=RSA_KEY_SIZE,
    )
    private_der = private.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_der = private.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return CryptoKey(KeyType.PUBLIC, public_der), CryptoKey(KeyType.PRIVATE, private_der)


def generate_symmetric_key() -> CryptoKey:
    """Generate a fresh 256-bit AES key."""
    return CryptoKey(KeyType.SECRET, random_bytes(AES_KEY_SIZE))


def public_key_from_bytes(data: bytes) -> rsa.RSAPublicKey:
    """
    Load an RSA public key from DER bytes.

    Args:
        data: DER SubjectPublicKeyInfo

    Returns:
        RSAPublicKey: Public key object

    Raises:
        CryptoError: If the data is not a 2048-bit RSA public key
    """
    try:
        key = serialization.load_der_public_key(bytes(data))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CryptoError(f"Invalid public key: {e}")

    if not isinstance(key, rsa.RSAPublicKey):
        raise CryptoError("Public key is not an RSA key")
    if key.key_size != RSA_KEY_SIZE:
        raise CryptoError(f"Invalid RSA key size: {key.key_size} (expected {RSA_KEY_SIZE})")
    return key


def private_key_from_bytes(data: bytes) -> rsa.RSAPrivateKey:
    """
    Load an RSA private key from DER bytes.

    Raises:
        CryptoError: If the data is not a 2048-bit RSA private key
    """
    try:
        key = serialization.load_der_private_key(bytes(data), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CryptoError(f"Invalid private key: {e}")

    if not isinstance(key, rsa.RSAPrivateKey):
        raise CryptoError("Private key is not an RSA key")
    if key.key_size != RSA_KEY_SIZE:
        raise CryptoError(f"Invalid RSA key size: {key.key_size} (expected {RSA_KEY_SIZE})")
    return key


def load_public_key(key: CryptoKey) -> rsa.RSAPublicKey:
    """Get the cryptography object for a PUBLIC CryptoKey."""
    _require_type(key, KeyType.PUBLIC)
    return public_key_from_bytes(key.data)


def load_private_key(key: CryptoKey) -> rsa.RSAPrivateKey:
    """Get the cryptography object for a PRIVATE CryptoKey."""
    _require_type(key, KeyType.PRIVATE)
    return private_key_from_bytes(key.data)


def export_key(key: CryptoKey) -> str:
    """
    Export a key to its text-safe encoding.

    Args:
        key: Any CryptoKey

    Returns:
        str: base64 of the key bytes
    """
    return b64encode(key.data)


def import_public_key(text: str) -> CryptoKey:
    """
    Import a public key from base64.

    The DER is validated here so that later encryption cannot fail
    on a malformed key.
    """
    data = b64decode(text)
    public_key_from_bytes(data)
    return CryptoKey(KeyType.PUBLIC, data)


def import_private_key(text: str) -> CryptoKey:
    """Import a private key from base64."""
    data = b64decode(text)
    private_key_from_bytes(data)
    return CryptoKey(KeyType.PRIVATE, data)


def import_symmetric_key(text: str) -> CryptoKey:
    """Import an AES-256 key from base64."""
    data = b64decode(text)
    return symmetric_key_from_bytes(data)


def symmetric_key_from_bytes(data: bytes) -> CryptoKey:
    """
    Wrap raw bytes as a SECRET CryptoKey.

    Raises:
        CryptoError: If the length is not 32 bytes
    """
    if len(data) != AES_KEY_SIZE:
        raise CryptoError(f"Invalid symmetric key length: {len(data)} (expected {AES_KEY_SIZE})")
    return CryptoKey(KeyType.SECRET, data)


def _require_type(key: CryptoKey, expected: KeyType) -> None:
    if not isinstance(key, CryptoKey):
        raise TypeError(f"Expected CryptoKey, got {type(key).__name__}")
    if key.key_type is not expected:
        raise CryptoError(f"Expected {expected.value} key, got {key.key_type.value} key")
