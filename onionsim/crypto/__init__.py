"""
onionsim Cryptographic Module

Provides all cryptographic operations for onionsim:
- Key generation and import/export (RSA-2048, AES-256)
- Asymmetric encryption (RSA-OAEP, SHA-256)
- Authenticated symmetric encryption (AES-256-GCM)
- Onion wrap and peel

All implementations use python3-cryptography (OpenSSL backend).
"""

from .primitives import (
    random_bytes,
    RSA_CIPHERTEXT_SIZE,
    AES_IV_SIZE,
)

from .keys import (
    CryptoKey,
    KeyType,
    generate_rsa_keypair,
    generate_symmetric_key,
    export_key,
    import_public_key,
    import_private_key,
    import_symmetric_key,
)

from .cipher import (
    rsa_encrypt,
    rsa_decrypt,
    sym_encrypt,
    sym_decrypt,
)

from .onion import (
    OnionLayer,
    InnerPayload,
    wrap_onion,
    peel_layer,
    encode_address,
    parse_address,
)

__all__ = [
    # Primitives
    'random_bytes',
    'RSA_CIPHERTEXT_SIZE',
    'AES_IV_SIZE',
    # Keys
    'CryptoKey',
    'KeyType',
    'generate_rsa_keypair',
    'generate_symmetric_key',
    'export_key',
    'import_public_key',
    'import_private_key',
    'import_symmetric_key',
    # Ciphers
    'rsa_encrypt',
    'rsa_decrypt',
    'sym_encrypt',
    'sym_decrypt',
    # Onion
    'OnionLayer',
    'InnerPayload',
    'wrap_onion',
    'peel_layer',
    'encode_address',
    'parse_address',
]
