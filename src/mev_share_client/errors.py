#!/usr/bin/env python3
"""Exception definitions for the MEV-Share matchmaker client.

Configuration problems are fatal at construction time. Signing, transport,
decode and relay errors are raised to the direct caller of the failing
operation. Nothing in this package retries.
"""

from typing import Any


class MatchmakerError(Exception):
    """Base exception for all matchmaker client errors.

    Attributes:
        message: Human-readable error message
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.details = details or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r})"


class ConfigurationError(MatchmakerError, ValueError):
    """Invalid or unsupported configuration, e.g. an unknown chain id."""


class SigningError(MatchmakerError):
    """The signer refused or failed to sign a request body."""


class TransportError(MatchmakerError):
    """Connection, timeout or TLS failure talking to the relay or stream."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        endpoint: str | None = None,
    ) -> None:
        details = {"endpoint": endpoint} if endpoint else None
        super().__init__(message, original_error=original_error, details=details)
        self.endpoint = endpoint


class DecodeError(MatchmakerError, ValueError):
    """A payload did not match the expected shape."""


class RelayError(MatchmakerError):
    """The relay answered with a JSON-RPC error object."""

    def __init__(
        self,
        method: str,
        code: int | None,
        message: str,
        data: Any = None,
    ) -> None:
        super().__init__(
            f"{method} failed with code {code}: {message}",
            details={"method": method, "code": code, "data": data},
        )
        self.method = method
        self.code = code
        self.relay_message = message
        self.data = data
