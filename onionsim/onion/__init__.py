"""
onionsim Onion Routing Module

Components:
- circuit.py: Relay selection for each message
- relay.py:   Layer peeling and forwarding at relays
- user.py:    Onion construction at the sender, delivery at the recipient
"""

from .circuit import CircuitBuilder

from .relay import (
    Relay,
    ProcessingResult,
    ProcessedPacket,
)

from .user import (
    User,
    DEFAULT_BASE_USER_PORT,
)

__all__ = [
    # Circuit
    'CircuitBuilder',
    # Relay
    'Relay',
    'ProcessingResult',
    'ProcessedPacket',
    # User
    'User',
    'DEFAULT_BASE_USER_PORT',
]
