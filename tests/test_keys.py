"""
Key generation and import/export tests.
"""

import dataclasses

import pytest

from onionsim.errors import CryptoError
from onionsim.crypto.keys import (
    CryptoKey,
    KeyType,
    generate_symmetric_key,
    export_key,
    import_public_key,
    import_private_key,
    import_symmetric_key,
    load_public_key,
    load_private_key,
)
from onionsim.crypto.primitives import b64encode


def test_keypair_types(keypair):
    public, private = keypair
    assert public.key_type is KeyType.PUBLIC
    assert private.key_type is KeyType.PRIVATE
    assert public.algorithm == "RSA-OAEP"
    assert public.extractable and private.extractable


def test_keypair_is_2048_bit(keypair):
    public, private = keypair
    assert load_public_key(public).key_size == 2048
    assert load_private_key(private).key_size == 2048


def test_keypair_halves_match(keypair):
    public, private = keypair
    derived = load_private_key(private).public_key().public_numbers()
    assert derived == load_public_key(public).public_numbers()


def test_symmetric_key():
    key = generate_symmetric_key()
    assert key.key_type is KeyType.SECRET
    assert key.algorithm == "AES-GCM"
    assert len(key.data) == 32
    assert generate_symmetric_key() != key


def test_export_import_round_trip(keypair):
    public, private = keypair
    secret = generate_symmetric_key()

    assert import_public_key(export_key(public)) == public
    assert import_private_key(export_key(private)) == private
    assert import_symmetric_key(export_key(secret)) == secret


def test_export_is_text_safe(keypair):
    text = export_key(keypair[0])
    assert isinstance(text, str)
    text.encode("ascii")


def test_import_rejects_bad_base64():
    with pytest.raises(CryptoError):
        import_public_key("not base64!!")


def test_import_rejects_non_key_bytes():
    with pytest.raises(CryptoError):
        import_public_key(b64encode(b"\x30\x03garbage"))
    with pytest.raises(CryptoError):
        import_private_key(b64encode(b"garbage"))


def test_import_symmetric_rejects_wrong_length():
    with pytest.raises(CryptoError):
        import_symmetric_key(b64encode(b"\x00" * 16))


def test_import_private_as_public_fails(keypair):
    with pytest.raises(CryptoError):
        import_public_key(export_key(keypair[1]))


def test_load_checks_key_type(keypair):
    with pytest.raises(CryptoError):
        load_public_key(keypair[1])
    with pytest.raises(CryptoError):
        load_private_key(keypair[0])


def test_crypto_key_is_immutable():
    key = generate_symmetric_key()
    with pytest.raises(dataclasses.FrozenInstanceError):
        key.data = b"\x00" * 32


def test_crypto_key_repr_hides_material():
    key = CryptoKey(KeyType.SECRET, b"\xaa" * 32)
    assert "xaa" not in repr(key)
    assert "SECRET" in repr(key)


def test_crypto_key_requires_bytes():
    with pytest.raises(TypeError):
        CryptoKey(KeyType.SECRET, "text")
