"""
onionsim Main Entry Point

Launches an in-process onion network:
- Key directory
- Loopback transport
- Relays (register their keys on start)
- Users (send and receive messages)

and sends a message from one user to another through a random circuit.
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Dict, List, Optional

from . import __version__
from .config import Config, DEFAULT_CONFIG_PATH
from .errors import OnionSimError, ConfigError
from .directory.registry import KeyDirectory
from .transport.loopback import LoopbackTransport
from .onion.circuit import CircuitBuilder
from .onion.relay import Relay
from .onion.user import User


logger = logging.getLogger("onionsim")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class OnionNetwork:
    """
    A complete simulated network.

    Usage:
        network = OnionNetwork(Config())
        network.start(num_relays=5, num_users=2)

        network.send(0, 1, b"hello")
        print(network.user(1).last_received_message)

        network.stop()
    """

    def __init__(
        self,
        config: Config,
        circuit_builder: Optional[CircuitBuilder] = None,
        transport: Optional[LoopbackTransport] = None,
    ):
        """
        Initialize network with configuration.

        Args:
            config: Loaded configuration
            circuit_builder: Relay selector shared by all users
                (default: one CSPRNG-backed builder per user)
            transport: Transport to attach nodes to
                (default: a new LoopbackTransport)
        """
        self.config = config
        self._circuit_builder = circuit_builder
        self.directory = KeyDirectory(base_relay_port=config.network.base_relay_port)
        self.transport = transport or LoopbackTransport(
            loss_probability=config.transport.loss_probability,
        )
        self._relays: Dict[int, Relay] = {}
        self._users: Dict[int, User] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def relays(self) -> List[Relay]:
        return [self._relays[rid] for rid in sorted(self._relays)]

    @property
    def users(self) -> List[User]:
        return [self._users[uid] for uid in sorted(self._users)]

    def start(self, num_relays: int, num_users: int) -> None:
        """Start relays and users."""
        logger.info(f"Starting network: {num_relays} relays, {num_users} users")

        # Ensure each fresh launch starts with no relays
        self.directory.clear()

        for relay_id in range(num_relays):
            self.add_relay(relay_id)

        for user_id in range(num_users):
            self.add_user(user_id)

        self._running = True
        logger.info("Network started")

    def add_relay(self, relay_id: int) -> Relay:
        """Start one relay."""
        relay = Relay(relay_id, self.directory, self.transport)
        self._relays[relay_id] = relay
        return relay

    def add_user(self, user_id: int) -> User:
        """Start one user."""
        user = User(
            user_id,
            self.directory,
            self.transport,
            circuit_builder=self._circuit_builder,
            circuit_length=self.config.onion.circuit_length,
            address=self.user_address(user_id),
        )
        self._users[user_id] = user
        return user

    def user_address(self, user_id: int) -> int:
        return self.config.network.base_user_port + user_id

    def relay(self, relay_id: int) -> Relay:
        return self._relays[relay_id]

    def user(self, user_id: int) -> User:
        return self._users[user_id]

    def send(self, from_user: int, to_user: int, message: bytes) -> bool:
        """
        Send a message between two users of this network.

        Raises:
            KeyError: If the sending user does not exist
            InsufficientRelaysError: If there are too few relays
        """
        return self._users[from_user].send_message(message, self.user_address(to_user))

    def stop(self) -> None:
        """Stop all nodes."""
        logger.info("Stopping network...")
        for relay in self._relays.values():
            relay.close()
        for user in self._users.values():
            user.close()
        self._relays.clear()
        self._users.clear()
        self.directory.clear()
        self._running = False
        logger.info("Network stopped")

    def get_stats(self) -> dict:
        """Get network statistics."""
        return {
            "relays": len(self._relays),
            "users": len(self._users),
            "directory": self.directory.get_stats(),
            "transport": self.transport.get_stats(),
        }


def setup_logging(config: Config, verbose: bool = False) -> None:
    """Configure root logging from configuration."""
    level = logging.DEBUG if verbose else logging.getLevelName(config.log_level)
    kwargs = {"level": level, "format": LOG_FORMAT}
    if config.log_file:
        kwargs["filename"] = str(config.log_file)
    logging.basicConfig(**kwargs)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="onion routing network simulator")
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Configuration file path",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"onionsim {__version__}",
    )
    parser.add_argument("--relays", type=int, default=5, help="Number of relays")
    parser.add_argument("--users", type=int, default=2, help="Number of users")
    parser.add_argument("--message", default="Hello through the onion!", help="Message text")
    parser.add_argument("--from", dest="sender", type=int, default=0, help="Sending user id")
    parser.add_argument("--to", dest="recipient", type=int, default=1, help="Receiving user id")

    args = parser.parse_args(argv)

    # Load configuration
    try:
        config = Config.load(args.config)
        config.validate()
    except (ConfigError, ValueError) as e:
        logging.basicConfig(format=LOG_FORMAT)
        logger.error(f"Configuration error: {e}")
        return 1

    setup_logging(config, args.verbose)

    if args.sender == args.recipient:
        logger.error("Sender and recipient must differ")
        return 1
    for user_id in (args.sender, args.recipient):
        if not 0 <= user_id < args.users:
            logger.error(f"Unknown user id: {user_id}")
            return 1

    network = OnionNetwork(config)
    try:
        network.start(args.relays, args.users)
        delivered = network.send(args.sender, args.recipient, args.message.encode("utf-8"))
    except OnionSimError as e:
        logger.error(f"Send failed: {e}")
        network.stop()
        return 1

    sender = network.user(args.sender)
    recipient = network.user(args.recipient)
    print(f"Circuit: {sender.last_circuit}")

    received = recipient.last_received_message
    if delivered and received is not None:
        print(f"User {args.recipient} received: {received.decode('utf-8', errors='replace')}")
    else:
        print("Message was not delivered")

    network.stop()
    return 0 if delivered else 1


if __name__ == "__main__":
    sys.exit(main())
