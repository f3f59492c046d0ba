"""
onionsim Directory Module

Relay key directory consumed by circuit construction.
"""

from .registry import (
    KeyDirectory,
    RelayRecord,
    DEFAULT_BASE_RELAY_PORT,
)

__all__ = [
    'KeyDirectory',
    'RelayRecord',
    'DEFAULT_BASE_RELAY_PORT',
]
