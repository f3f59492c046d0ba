"""
onionsim Exceptions

All errors raised by the package derive from OnionSimError so that
node handlers can turn any protocol failure into a negative result.
"""


class OnionSimError(Exception):
    """Base class for all onionsim errors."""
    pass


class CryptoError(OnionSimError):
    """Exception raised when encryption or decryption fails."""
    pass


class OnionError(OnionSimError):
    """Exception raised for onion framing errors."""
    pass


class MalformedLayerError(OnionError):
    """Exception raised when an onion layer cannot be parsed."""
    pass


class AddressError(OnionError):
    """Exception raised when an address does not fit the address field."""
    pass


class InsufficientRelaysError(OnionSimError):
    """Exception raised when too few relays are available for a circuit."""
    pass


class DirectoryError(OnionSimError):
    """Exception raised for invalid key directory operations."""
    pass


class TransportError(OnionSimError):
    """Exception raised for transport misuse."""
    pass


class ConfigError(OnionSimError):
    """Exception raised when a configuration file cannot be loaded."""
    pass
