"""
onionsim Transport Abstraction Layer

All transports implement the BaseTransport interface, so relay and
user nodes work with any of them.
"""

from .base import (
    BaseTransport,
    MessageHandler,
)

from .loopback import LoopbackTransport

__all__ = [
    'BaseTransport',
    'MessageHandler',
    'LoopbackTransport',
]
