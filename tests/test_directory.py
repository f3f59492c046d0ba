"""
Key directory tests.
"""

import threading

import pytest

from onionsim.errors import DirectoryError
from onionsim.crypto.keys import KeyType
from onionsim.directory.registry import KeyDirectory, RelayRecord


def test_register_default_address(keypair):
    directory = KeyDirectory()
    record = directory.register(3, keypair[0].data)
    assert record == RelayRecord(relay_id=3, public_key=keypair[0], address=4003)
    assert record.public_key.key_type is KeyType.PUBLIC


def test_register_custom_base(keypair):
    directory = KeyDirectory(base_relay_port=9000)
    assert directory.register(1, keypair[0].data).address == 9001


def test_register_explicit_address(keypair):
    directory = KeyDirectory()
    assert directory.register(1, keypair[0].data, address=5555).address == 5555


def test_list_relays_sorted(keypair, other_keypair):
    directory = KeyDirectory()
    directory.register(2, keypair[0].data)
    directory.register(0, other_keypair[0].data)
    assert [r.relay_id for r in directory.list_relays()] == [0, 2]
    assert len(directory) == 2
    assert 2 in directory
    assert 1 not in directory


def test_get_relay(keypair):
    directory = KeyDirectory()
    directory.register(0, keypair[0].data)
    assert directory.get_relay(0).address == 4000
    assert directory.get_relay(1) is None


def test_reregister_same_key_is_idempotent(keypair):
    directory = KeyDirectory()
    first = directory.register(0, keypair[0].data)
    assert directory.register(0, keypair[0].data) == first
    assert len(directory) == 1


def test_reregister_different_key_fails(keypair, other_keypair):
    directory = KeyDirectory()
    directory.register(0, keypair[0].data)
    with pytest.raises(DirectoryError):
        directory.register(0, other_keypair[0].data)
    assert directory.get_relay(0).public_key == keypair[0]


def test_register_invalid_key():
    with pytest.raises(DirectoryError):
        KeyDirectory().register(0, b"not a key")


def test_register_private_key_rejected(keypair):
    with pytest.raises(DirectoryError):
        KeyDirectory().register(0, keypair[1].data)


@pytest.mark.parametrize("relay_id", [-1, "1", True, 1.5])
def test_register_invalid_id(keypair, relay_id):
    with pytest.raises(DirectoryError):
        KeyDirectory().register(relay_id, keypair[0].data)


@pytest.mark.parametrize("address", ["4000", 4000.0, True])
def test_register_non_integer_address(keypair, address):
    with pytest.raises(DirectoryError):
        KeyDirectory().register(0, keypair[0].data, address=address)


def test_register_address_too_wide(keypair):
    with pytest.raises(DirectoryError):
        KeyDirectory().register(0, keypair[0].data, address=10 ** 10)


def test_clear(keypair):
    directory = KeyDirectory()
    directory.register(0, keypair[0].data)
    directory.clear()
    assert directory.list_relays() == []
    assert directory.get_stats()["relay_count"] == 0


def test_concurrent_registration(keypair):
    directory = KeyDirectory()
    threads = [
        threading.Thread(target=directory.register, args=(i, keypair[0].data))
        for i in range(20)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert [r.relay_id for r in directory.list_relays()] == list(range(20))
