"""
onionsim Cryptographic Primitives

Low-level helpers and size constants shared by the key, cipher and
onion modules.

SECURITY NOTES:
- All randomness from os.urandom (kernel CSPRNG)
"""

import os
import base64
import binascii

from ..errors import CryptoError


def random_bytes(length: int) -> bytes:
    """
    Generate cryptographically secure random bytes.

    Args:
        length: Number of random bytes to generate

    Returns:
        bytes: Cryptographically secure random bytes

    Raises:
        ValueError: If length is negative
    """
    if length < 0:
        raise ValueError("Length must be non-negative")
    return os.urandom(length)


def b64encode(data: bytes) -> str:
    """Encode bytes as a text-safe base64 string."""
    return base64.b64encode(data).decode("ascii")


def b64decode(text: str) -> bytes:
    """
    Decode a base64 string strictly.

    Raises:
        CryptoError: If the text is not valid base64
    """
    try:
        return base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise CryptoError(f"Invalid base64 encoding: {e}")


# RSA constants
RSA_KEY_SIZE = 2048  # bits
RSA_PUBLIC_EXPONENT = 65537
RSA_CIPHERTEXT_SIZE = RSA_KEY_SIZE // 8  # 256 bytes

# OAEP with SHA-256: max plaintext = k - 2 * hLen - 2
OAEP_HASH_SIZE = 32  # bytes
RSA_MAX_PLAINTEXT = RSA_CIPHERTEXT_SIZE - 2 * OAEP_HASH_SIZE - 2  # 190 bytes

# AES constants
AES_KEY_SIZE = 32  # bytes (AES-256)
AES_IV_SIZE = 16  # bytes
GCM_TAG_SIZE = 16  # bytes
