"""
Onion wrap/peel tests.

Tests:
- Address field encoding
- Round trip through a full circuit
- Layer framing and sizes
- Tamper and truncation detection
"""

import pytest

from onionsim.errors import CryptoError, OnionError, MalformedLayerError, AddressError
from onionsim.crypto.keys import generate_symmetric_key
from onionsim.crypto.cipher import rsa_encrypt, sym_encrypt
from onionsim.crypto.primitives import RSA_CIPHERTEXT_SIZE, AES_IV_SIZE
from onionsim.crypto.onion import (
    InnerPayload,
    OnionLayer,
    encode_address,
    parse_address,
    wrap_onion,
    peel_layer,
    seal_layer,
    onion_size,
    LAYER_OVERHEAD,
    MAX_ADDRESS,
)

USER_ADDRESS = 3001


def _peel_all(onion, relay_keys):
    hops = []
    data = onion
    for _, private in relay_keys:
        inner = peel_layer(data, private)
        hops.append(inner.next_hop)
        data = inner.payload
    return hops, data


# ===== Address field =====

@pytest.mark.parametrize("address", [0, 7, 3001, 4000, 123456789, MAX_ADDRESS])
def test_address_round_trip(address):
    field = encode_address(address)
    assert len(field) == 10
    assert parse_address(field) == address


def test_address_is_zero_padded():
    assert encode_address(3001) == b"0000003001"


@pytest.mark.parametrize("address", [-1, MAX_ADDRESS + 1, 10 ** 12])
def test_address_out_of_range(address):
    with pytest.raises(AddressError):
        encode_address(address)


@pytest.mark.parametrize("address", ["3001", 3001.0, True, None])
def test_address_must_be_int(address):
    with pytest.raises(AddressError):
        encode_address(address)


@pytest.mark.parametrize("field", [b"000000300", b"00000030011", b"00000030a1", b"-000003001", b"       301"])
def test_parse_address_rejects_bad_field(field):
    with pytest.raises(MalformedLayerError):
        parse_address(field)


# ===== Round trip =====

def test_end_to_end_hello(circuit, relay_keys):
    onion = wrap_onion(circuit, USER_ADDRESS, b"hello")

    # R0 peels: next hop R1, body is another layer
    at_r0 = peel_layer(onion, relay_keys[0][1])
    assert at_r0.next_hop == circuit[1].address
    assert len(at_r0.payload) == len(onion) - LAYER_OVERHEAD

    # R1 peels: next hop R2
    at_r1 = peel_layer(at_r0.payload, relay_keys[1][1])
    assert at_r1.next_hop == circuit[2].address

    # R2 peels: next hop is the user, body is the message
    at_r2 = peel_layer(at_r1.payload, relay_keys[2][1])
    assert at_r2.next_hop == USER_ADDRESS
    assert at_r2.payload == b"hello"


@pytest.mark.parametrize("message", [b"", b"\x00", b"hello", bytes(range(256)) * 8])
def test_round_trip_any_message(circuit, relay_keys, message):
    onion = wrap_onion(circuit, USER_ADDRESS, message)
    hops, body = _peel_all(onion, relay_keys)
    assert hops == [4001, 4002, USER_ADDRESS]
    assert body == message


def test_single_hop_circuit(circuit, relay_keys):
    onion = wrap_onion(circuit[:1], USER_ADDRESS, b"direct")
    inner = peel_layer(onion, relay_keys[0][1])
    assert inner == InnerPayload(next_hop=USER_ADDRESS, payload=b"direct")


def test_reordered_circuit(circuit, relay_keys):
    order = [2, 0, 1]
    onion = wrap_onion([circuit[i] for i in order], USER_ADDRESS, b"reordered")
    hops, body = _peel_all(onion, [relay_keys[i] for i in order])
    assert hops == [4000, 4001, USER_ADDRESS]
    assert body == b"reordered"


def test_onion_size(circuit):
    onion = wrap_onion(circuit, USER_ADDRESS, b"hello")
    assert len(onion) == onion_size(5, 3) == 5 + 3 * LAYER_OVERHEAD


def test_onion_size_rejects_bad_input():
    with pytest.raises(OnionError):
        onion_size(10, 0)
    with pytest.raises(ValueError):
        onion_size(-1, 3)


def test_wrapping_is_randomized(circuit):
    assert wrap_onion(circuit, USER_ADDRESS, b"x") != wrap_onion(circuit, USER_ADDRESS, b"x")


def test_wrap_empty_circuit():
    with pytest.raises(OnionError):
        wrap_onion([], USER_ADDRESS, b"hello")


def test_wrap_bad_final_address(circuit):
    with pytest.raises(AddressError):
        wrap_onion(circuit, 10 ** 10, b"hello")


# ===== Ordering =====

def test_layers_must_be_peeled_in_order(circuit, relay_keys):
    onion = wrap_onion(circuit, USER_ADDRESS, b"hello")
    with pytest.raises(CryptoError):
        peel_layer(onion, relay_keys[1][1])
    with pytest.raises(CryptoError):
        peel_layer(onion, relay_keys[2][1])


def test_foreign_key_cannot_peel(circuit, other_keypair):
    onion = wrap_onion(circuit, USER_ADDRESS, b"hello")
    with pytest.raises(CryptoError):
        peel_layer(onion, other_keypair[1])


# ===== Corruption =====

def test_every_flipped_byte_is_detected(circuit, relay_keys):
    onion = wrap_onion(circuit, USER_ADDRESS, b"hello")
    private = relay_keys[0][1]
    for i in range(len(onion)):
        tampered = bytearray(onion)
        tampered[i] ^= 0x01
        with pytest.raises((CryptoError, MalformedLayerError)):
            peel_layer(bytes(tampered), private)


@pytest.mark.parametrize("cut", [0, 1, RSA_CIPHERTEXT_SIZE - 1, RSA_CIPHERTEXT_SIZE + AES_IV_SIZE - 1])
def test_too_short_is_malformed(circuit, relay_keys, cut):
    onion = wrap_onion(circuit, USER_ADDRESS, b"hello")
    with pytest.raises(MalformedLayerError):
        peel_layer(onion[:cut], relay_keys[0][1])


def test_truncated_tail_fails(circuit, relay_keys):
    onion = wrap_onion(circuit, USER_ADDRESS, b"hello")
    with pytest.raises(CryptoError):
        peel_layer(onion[:-1], relay_keys[0][1])


def test_appended_bytes_fail(circuit, relay_keys):
    onion = wrap_onion(circuit, USER_ADDRESS, b"hello")
    with pytest.raises(CryptoError):
        peel_layer(onion + b"\x00", relay_keys[0][1])


# ===== Malformed inner payload =====

def _raw_layer(public, inner_bytes, sym_key=None):
    sym_key = sym_key or generate_symmetric_key()
    return rsa_encrypt(sym_key.data, public) + sym_encrypt(sym_key, inner_bytes)


def test_non_decimal_address_is_malformed(keypair):
    data = _raw_layer(keypair[0], b"abcdefghij" + b"payload")
    with pytest.raises(MalformedLayerError):
        peel_layer(data, keypair[1])


def test_short_inner_payload_is_malformed(keypair):
    data = _raw_layer(keypair[0], b"00001")
    with pytest.raises(MalformedLayerError):
        peel_layer(data, keypair[1])


def test_wrong_size_wrapped_key_is_malformed(keypair):
    sym_key = generate_symmetric_key()
    data = rsa_encrypt(sym_key.data[:16], keypair[0]) + sym_encrypt(sym_key, b"0000003001hi")
    with pytest.raises(MalformedLayerError):
        peel_layer(data, keypair[1])


# ===== Framing =====

def test_layer_split_point(keypair):
    layer = seal_layer(InnerPayload(next_hop=42, payload=b"body"), keypair[0])
    assert len(layer.wrapped_key) == RSA_CIPHERTEXT_SIZE
    parsed = OnionLayer.from_bytes(layer.to_bytes())
    assert parsed == layer


def test_inner_payload_bytes():
    inner = InnerPayload(next_hop=4002, payload=b"rest")
    assert inner.to_bytes() == b"0000004002rest"
    assert InnerPayload.from_bytes(b"0000004002rest") == inner
    assert InnerPayload.from_bytes(b"0000004002") == InnerPayload(4002, b"")
