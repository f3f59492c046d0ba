"""
onionsim - Onion Routing Simulator

Simulates a Tor-style anonymity overlay: a sender wraps a message in
nested hybrid-encrypted layers, one per relay in a randomly selected
circuit, and each relay peels exactly its own layer.

This package contains:
- crypto/     : RSA/AES primitives, key handling and the onion wire format
- onion/      : Circuit selection, relay and user nodes
- directory/  : Relay key directory
- transport/  : Transport abstraction and in-process loopback transport
"""

__version__ = "0.1.0"
__author__ = "onionsim Project"

# Core constants
ONION_LAYERS = 3
ADDRESS_WIDTH = 10  # ASCII decimal digits
