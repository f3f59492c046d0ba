"""
onionsim Ciphers

Asymmetric (RSA-OAEP) and symmetric (AES-256-GCM) encryption over
explicit CryptoKey arguments.

Symmetric wire format:
    iv (16 bytes) || ciphertext || GCM tag (16 bytes)

SECURITY NOTES:
- Fresh random IV per encryption
- GCM authentication: any modified byte fails decryption
- RSA is only used to wrap 32-byte AES keys
"""

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import CryptoError
from .keys import (
    CryptoKey,
    KeyType,
    load_public_key,
    load_private_key,
)
from .primitives import (
    random_bytes,
    AES_IV_SIZE,
    AES_KEY_SIZE,
    GCM_TAG_SIZE,
)


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def rsa_encrypt(plaintext: bytes, public_key: CryptoKey) -> bytes:
    """
    Encrypt a short message under an RSA public key.

    Precondition: len(plaintext) <= RSA_MAX_PLAINTEXT (190 bytes).
    Only 32-byte AES keys are encrypted this way, so the bound is
    never reached in practice.

    Args:
        plaintext: Bytes to encrypt
        public_key: PUBLIC CryptoKey

    Returns:
        bytes: RSA_CIPHERTEXT_SIZE bytes of ciphertext
    """
    key = load_public_key(public_key)
    return key.encrypt(bytes(plaintext), _oaep())


def rsa_decrypt(ciphertext: bytes, private_key: CryptoKey) -> bytes:
    """
    Decrypt an RSA-OAEP ciphertext.

    Raises:
        CryptoError: If the ciphertext was not produced for this key
            pair or is malformed
    """
    key = load_private_key(private_key)
    try:
        return key.decrypt(bytes(ciphertext), _oaep())
    except ValueError as e:
        raise CryptoError(f"RSA decryption failed: {e}")


def sym_encrypt(key: CryptoKey, plaintext: bytes) -> bytes:
    """
    Encrypt with AES-256-GCM under a fresh random IV.

    Args:
        key: SECRET CryptoKey
        plaintext: Bytes to encrypt (may be empty)

    Returns:
        bytes: iv || ciphertext || tag
    """
    aesgcm = AESGCM(_secret_bytes(key))
    iv = random_bytes(AES_IV_SIZE)
    return iv + aesgcm.encrypt(iv, bytes(plaintext), None)


def sym_decrypt(key: CryptoKey, data: bytes) -> bytes:
    """
    Decrypt an IV-prefixed AES-256-GCM ciphertext.

    Raises:
        CryptoError: On truncated input or authentication failure
    """
    if len(data) < AES_IV_SIZE + GCM_TAG_SIZE:
        raise CryptoError(f"Symmetric ciphertext too short: {len(data)} bytes")

    aesgcm = AESGCM(_secret_bytes(key))
    iv = bytes(data[:AES_IV_SIZE])
    try:
        return aesgcm.decrypt(iv, bytes(data[AES_IV_SIZE:]), None)
    except InvalidTag:
        raise CryptoError("Symmetric decryption failed: authentication tag mismatch")


def _secret_bytes(key: CryptoKey) -> bytes:
    if not isinstance(key, CryptoKey) or key.key_type is not KeyType.SECRET:
        raise CryptoError("Symmetric operations require a secret key")
    if len(key.data) != AES_KEY_SIZE:
        raise CryptoError(f"Invalid symmetric key length: {len(key.data)}")
    return key.data
