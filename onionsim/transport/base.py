"""
onionsim Transport Base Class

Defines the interface nodes use to hand bytes to another address.

Design Principles:
- Simple, blocking interface
- Delivery failure is a return value, never retried here
"""

from abc import ABC, abstractmethod
from typing import Callable


# Inbound handler: receives wire bytes, returns True if accepted
MessageHandler = Callable[[bytes], bool]


class BaseTransport(ABC):
    """
    Abstract base class for transports.

    Usage:
        transport = ConcreteTransport()
        transport.bind(4001, relay.handle_message)

        ok = transport.deliver(4001, onion)
    """

    def __init__(self, name: str = "transport"):
        self.name = name

        # Statistics
        self._messages_sent = 0
        self._messages_delivered = 0
        self._messages_dropped = 0

    @abstractmethod
    def bind(self, address: int, handler: MessageHandler) -> None:
        """
        Attach an inbound handler to an address.

        Raises:
            TransportError: If the address is already bound
        """
        pass

    @abstractmethod
    def unbind(self, address: int) -> None:
        """Detach the handler bound to an address, if any."""
        pass

    @abstractmethod
    def deliver(self, address: int, data: bytes) -> bool:
        """
        Deliver bytes to an address.

        Args:
            address: Destination address
            data: Raw bytes

        Returns:
            True if the receiver accepted the message
        """
        pass

    def get_stats(self) -> dict:
        """Get transport statistics."""
        return {
            "name": self.name,
            "messages_sent": self._messages_sent,
            "messages_delivered": self._messages_delivered,
            "messages_dropped": self._messages_dropped,
        }
