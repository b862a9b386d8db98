#!/usr/bin/env python3
"""Configuration management for the MEV-Share client.

This module provides a type-safe configuration dataclass with validation.
Configuration is loaded from environment variables with sensible defaults
where appropriate.
"""

import logging
import os
from dataclasses import dataclass
from typing import ClassVar

from .errors import ConfigurationError
from .events import StreamingEventType
from .networks import MatchMakerNetwork, SupportedNetworks

# Get logger for this module
logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Configuration for a MEV-Share client process.

    Attributes:
        chain_id: Chain ID of the matchmaker network to use
        auth_private_key: Key used to sign relay requests (not a funded key)
        event_type: Stream projection to listen for
        request_timeout: HTTP request timeout in seconds
    """

    chain_id: int
    auth_private_key: str
    event_type: StreamingEventType = StreamingEventType.TRANSACTION
    request_timeout: int = 30

    MAX_REQUEST_TIMEOUT: ClassVar[int] = 120

    def __post_init__(self) -> None:
        """Validate client configuration."""
        if not SupportedNetworks().is_supported(self.chain_id):
            raise ConfigurationError(f"Chain ID {self.chain_id} is not supported")

        if not self.auth_private_key:
            raise ConfigurationError(
                "AUTH_PRIVATE_KEY environment variable is required. "
                "This key signs requests to the relay and does not need funds."
            )

        key = self.auth_private_key.removeprefix("0x")
        if len(key) != 64:
            raise ConfigurationError(
                f"Invalid private key length. Expected 64 hex characters, got {len(key)}"
            )
        try:
            int(key, 16)
        except ValueError:
            raise ConfigurationError("Invalid private key format. Must be hexadecimal") from None

        if self.request_timeout <= 0:
            raise ConfigurationError(
                f"Request timeout must be positive, got {self.request_timeout}"
            )
        if self.request_timeout > self.MAX_REQUEST_TIMEOUT:
            raise ConfigurationError(
                f"Request timeout too long (max {self.MAX_REQUEST_TIMEOUT}s), "
                f"got {self.request_timeout}"
            )

    @property
    def network(self) -> MatchMakerNetwork:
        network = SupportedNetworks().get_network(self.chain_id)
        if network is None:
            raise ConfigurationError(f"Chain ID {self.chain_id} is not supported")
        return network

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Load configuration from environment variables.

        Returns:
            ClientConfig instance with loaded values

        Raises:
            ConfigurationError: If required variables are missing or invalid
        """
        try:
            chain_id = int(os.environ.get("CHAIN_ID", "1"))
            request_timeout = int(os.environ.get("REQUEST_TIMEOUT", "30"))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        raw_event_type = os.environ.get("EVENT_TYPE", "transaction").lower()
        try:
            event_type = StreamingEventType(raw_event_type)
        except ValueError:
            raise ConfigurationError(
                f"Invalid EVENT_TYPE: {raw_event_type}. Expected 'transaction' or 'bundle'"
            ) from None

        return cls(
            chain_id=chain_id,
            auth_private_key=os.environ.get("AUTH_PRIVATE_KEY", ""),
            event_type=event_type,
            request_timeout=request_timeout,
        )

    def log_config(self) -> None:
        """Log the configuration in a readable format for debugging."""
        network = self.network
        logger.info("=" * 60)
        logger.info("MEV-Share Client Configuration")
        logger.info("=" * 60)
        logger.info(f"  Network: {network.name} (chain {network.chain_id})")
        logger.info(f"  API URL: {network.api_url}")
        logger.info(f"  Stream URL: {network.stream_url}")
        logger.info(f"  Event Type: {self.event_type.as_str()}")
        logger.info(f"  Request Timeout: {self.request_timeout} seconds")
        logger.info("  Auth Key: [CONFIGURED]")
        logger.info("=" * 60)
