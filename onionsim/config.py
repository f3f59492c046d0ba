"""
onionsim Configuration Management

Handles loading and validation of configuration from TOML file.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field

import toml

from .errors import ConfigError
from . import ONION_LAYERS
from .crypto.primitives import RSA_KEY_SIZE
from .directory.registry import DEFAULT_BASE_RELAY_PORT
from .onion.user import DEFAULT_BASE_USER_PORT


# Default configuration path
DEFAULT_CONFIG_PATH = Path("onionsim.toml")

MAX_PORT = 65535


@dataclass
class NetworkConfig:
    """Address plan of the simulated network."""
    base_relay_port: int = DEFAULT_BASE_RELAY_PORT  # relay N listens on base_relay_port + N
    base_user_port: int = DEFAULT_BASE_USER_PORT    # user N listens on base_user_port + N


@dataclass
class OnionConfig:
    """Onion routing configuration."""
    circuit_length: int = ONION_LAYERS
    rsa_key_size: int = RSA_KEY_SIZE  # fixed: the layer split point depends on it


@dataclass
class TransportConfig:
    """Transport configuration."""
    loss_probability: float = 0.0


@dataclass
class Config:
    """
    Complete onionsim configuration.
    """
    # Sub-configurations
    network: NetworkConfig = field(default_factory=NetworkConfig)
    onion: OnionConfig = field(default_factory=OnionConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)

    # Paths
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG_PATH)

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from file.

        A missing file yields the defaults.

        Args:
            config_path: Path to config file (default: ./onionsim.toml)

        Returns:
            Loaded configuration

        Raises:
            ConfigError: If the file exists but cannot be parsed
        """
        path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        config = cls()
        config.config_path = path

        if not path.exists():
            return config

        try:
            data = toml.load(path)
        except (toml.TomlDecodeError, OSError) as e:
            raise ConfigError(f"Failed to load {path}: {e}")

        try:
            config._apply_dict(data)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value in {path}: {e}")

        return config

    def _apply_dict(self, data: Dict[str, Any]) -> None:
        """Apply dictionary data to config."""
        # Top-level settings
        if "log_level" in data:
            self.log_level = str(data["log_level"]).upper()
        if "log_file" in data:
            self.log_file = Path(data["log_file"])

        # Network config
        if "network" in data:
            n = data["network"]
            if "base_relay_port" in n:
                self.network.base_relay_port = int(n["base_relay_port"])
            if "base_user_port" in n:
                self.network.base_user_port = int(n["base_user_port"])

        # Onion config
        if "onion" in data:
            o = data["onion"]
            if "circuit_length" in o:
                self.onion.circuit_length = int(o["circuit_length"])
            if "rsa_key_size" in o:
                self.onion.rsa_key_size = int(o["rsa_key_size"])

        # Transport config
        if "transport" in data:
            t = data["transport"]
            if "loss_probability" in t:
                self.transport.loss_probability = float(t["loss_probability"])

    def validate(self) -> None:
        """
        Validate configuration.

        Raises:
            ValueError: If configuration is invalid
        """
        # Validate ports
        for name in ("base_relay_port", "base_user_port"):
            port = getattr(self.network, name)
            if port < 1 or port > MAX_PORT:
                raise ValueError(f"Invalid {name}: {port}")

        # Validate circuit
        if self.onion.circuit_length < 1:
            raise ValueError(f"Invalid circuit length: {self.onion.circuit_length}")

        if self.onion.rsa_key_size != RSA_KEY_SIZE:
            raise ValueError(
                f"Unsupported RSA key size: {self.onion.rsa_key_size} (only {RSA_KEY_SIZE})"
            )

        # Validate transport
        if not 0.0 <= self.transport.loss_probability <= 1.0:
            raise ValueError(f"Invalid loss probability: {self.transport.loss_probability}")

        # Validate log level
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Invalid log level: {self.log_level}")
