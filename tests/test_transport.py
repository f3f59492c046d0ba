"""
Loopback transport tests.
"""

import pytest

from onionsim.errors import TransportError
from onionsim.transport import LoopbackTransport


def test_deliver_to_bound_handler():
    transport = LoopbackTransport()
    received = []
    transport.bind(3000, lambda data: received.append(data) or True)

    assert transport.deliver(3000, b"\x00\xffbinary")
    assert received == [b"\x00\xffbinary"]


def test_deliver_empty_message():
    transport = LoopbackTransport()
    received = []
    transport.bind(3000, lambda data: received.append(data) or True)
    assert transport.deliver(3000, b"")
    assert received == [b""]


def test_deliver_unknown_address():
    transport = LoopbackTransport()
    assert transport.deliver(3000, b"data") is False
    assert transport.get_stats()["messages_dropped"] == 1


def test_double_bind_fails():
    transport = LoopbackTransport()
    transport.bind(3000, lambda data: True)
    with pytest.raises(TransportError):
        transport.bind(3000, lambda data: True)


def test_unbind():
    transport = LoopbackTransport()
    transport.bind(3000, lambda data: True)
    transport.unbind(3000)
    assert not transport.is_bound(3000)
    assert transport.deliver(3000, b"data") is False
    transport.unbind(3000)


def test_handler_rejection():
    transport = LoopbackTransport()
    transport.bind(3000, lambda data: False)
    assert transport.deliver(3000, b"data") is False


def test_handler_exception_is_failure():
    def broken(data):
        raise RuntimeError("boom")

    transport = LoopbackTransport()
    transport.bind(3000, broken)
    assert transport.deliver(3000, b"data") is False


def test_total_loss():
    transport = LoopbackTransport(loss_probability=1.0)
    received = []
    transport.bind(3000, lambda data: received.append(data) or True)
    assert transport.deliver(3000, b"data") is False
    assert received == []


def test_invalid_loss_probability():
    with pytest.raises(ValueError):
        LoopbackTransport(loss_probability=1.5)


def test_stats():
    transport = LoopbackTransport(name="test")
    transport.bind(3000, lambda data: True)
    transport.deliver(3000, b"a")
    transport.deliver(3000, b"b")
    transport.deliver(3999, b"c")
    assert transport.get_stats() == {
        "name": "test",
        "messages_sent": 3,
        "messages_delivered": 2,
        "messages_dropped": 1,
    }


def test_frames_are_text():
    frame = LoopbackTransport.encode_frame(bytes(range(256)))
    assert isinstance(frame, str)
    assert LoopbackTransport.decode_frame(frame) == bytes(range(256))


def test_corrupt_frame():
    with pytest.raises(TransportError):
        LoopbackTransport.decode_frame("not*base64")


def test_bound_addresses():
    transport = LoopbackTransport()
    transport.bind(4001, lambda data: True)
    transport.bind(3000, lambda data: True)
    assert transport.get_bound_addresses() == [3000, 4001]
