"""Shared fixtures for onionsim tests."""

import pytest

from onionsim.config import Config
from onionsim.crypto.keys import generate_rsa_keypair
from onionsim.directory.registry import RelayRecord
from onionsim.main import OnionNetwork


@pytest.fixture(scope="session")
def keypair():
    """One RSA key pair (generation is slow, so share it)."""
    return generate_rsa_keypair()


@pytest.fixture(scope="session")
def other_keypair():
    return generate_rsa_keypair()


@pytest.fixture(scope="session")
def relay_keys():
    """Key pairs for relays R0, R1, R2."""
    return [generate_rsa_keypair() for _ in range(3)]


@pytest.fixture(scope="session")
def circuit(relay_keys):
    """Circuit [R0, R1, R2] at addresses 4000, 4001, 4002."""
    return [
        RelayRecord(relay_id=i, public_key=public, address=4000 + i)
        for i, (public, _) in enumerate(relay_keys)
    ]


@pytest.fixture
def network():
    """A started network with 5 relays and 2 users."""
    net = OnionNetwork(Config())
    net.start(num_relays=5, num_users=2)
    yield net
    net.stop()
