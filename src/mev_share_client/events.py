#!/usr/bin/env python3
"""Data models for the MEV-Share event stream.

This module provides immutable data classes for the raw events published on
the stream and for the two projections handed to user handlers.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from hexbytes import HexBytes
from web3 import Web3

from .errors import DecodeError
from .models import from_hex_bytes, to_hex_bytes

_SELECTOR_RE = re.compile(r"^(?:0x)?([0-9a-fA-F]{8})$")


class StreamingEventType(Enum):
    """Which projection of the stream a handler wants to receive."""
    TRANSACTION = "transaction"
    BUNDLE = "bundle"

    def as_str(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class FunctionSelector:
    """The 4-byte function selector of a contract call."""

    value: bytes

    def __post_init__(self) -> None:
        if len(self.value) != 4:
            raise ValueError(f"Function selector must be 4 bytes, got {len(self.value)}")
        object.__setattr__(self, "value", bytes(self.value))

    def __str__(self) -> str:
        return self.to_hex()

    def to_hex(self) -> str:
        """Canonical text form, lowercase hex with 0x prefix."""
        return "0x" + self.value.hex()

    @classmethod
    def from_hex(cls, text: Any) -> "FunctionSelector":
        """Decode exactly 8 hex characters after an optional 0x prefix."""
        if not isinstance(text, str) or not (match := _SELECTOR_RE.match(text)):
            raise DecodeError(f"Invalid function selector: {text!r}")
        return cls(bytes.fromhex(match.group(1)))


@dataclass(frozen=True, slots=True)
class EventTransactionLog:
    """A log emitted by a pending transaction or bundle."""

    address: str
    topics: tuple[str, ...] = ()
    data: bytes = b""

    @classmethod
    def from_dict(cls, data: Any) -> "EventTransactionLog":
        if not isinstance(data, dict) or not isinstance(data.get("address"), str):
            raise DecodeError(f"Invalid log entry: {data!r}")
        topics = data.get("topics")
        if topics is None:
            topics = []
        if not isinstance(topics, list) or not all(isinstance(topic, str) for topic in topics):
            raise DecodeError(f"Invalid log topics: {topics!r}")
        raw_data = data.get("data")
        return cls(
            address=data["address"],
            topics=tuple(topics),
            data=from_hex_bytes(raw_data) if raw_data is not None else b"",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "topics": list(self.topics),
            "data": to_hex_bytes(self.data),
        }


@dataclass(frozen=True, slots=True)
class EventTransaction:
    """Hinted fields of one transaction in a stream event.

    Fields the original sender chose not to share are None.

    Attributes:
        to: Transaction recipient address
        function_selector: 4-byte function selector
        calldata: Calldata of the transaction
    """

    to: str | None = None
    function_selector: FunctionSelector | None = None
    calldata: HexBytes | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "EventTransaction":
        if not isinstance(data, dict):
            raise DecodeError(f"Invalid transaction entry: {data!r}")

        to = data.get("to")
        if to is not None:
            if not Web3.is_address(to):
                raise DecodeError(f"Invalid transaction recipient: {to!r}")
            to = Web3.to_checksum_address(to)

        selector = data.get("functionSelector")
        calldata = data.get("callData")
        return cls(
            to=to,
            function_selector=FunctionSelector.from_hex(selector) if selector is not None else None,
            calldata=from_hex_bytes(calldata) if calldata is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.to is not None:
            data["to"] = self.to
        if self.function_selector is not None:
            data["functionSelector"] = self.function_selector.to_hex()
        if self.calldata is not None:
            data["callData"] = to_hex_bytes(self.calldata)
        return data


@dataclass(frozen=True, slots=True)
class RawEvent:
    """A single event record from the MEV-Share stream.

    ``logs`` and ``transactions`` are empty tuples when the event carries no
    data for them; the hash is always present.
    """

    hash: str
    logs: tuple[EventTransactionLog, ...] = ()
    transactions: tuple[EventTransaction, ...] = ()

    def __str__(self) -> str:
        return (
            f"RawEvent(hash={self.hash[:10]}..., "
            f"logs={len(self.logs)}, txs={len(self.transactions)})"
        )

    @classmethod
    def from_dict(cls, data: Any) -> "RawEvent":
        """Decode an event record; the live stream names the tx list ``txs``."""
        if not isinstance(data, dict):
            raise DecodeError(f"Event must be a JSON object, got {type(data).__name__}")

        event_hash = data.get("hash")
        if not isinstance(event_hash, str) or not event_hash:
            raise DecodeError("Event is missing its hash")

        logs = data.get("logs") or []
        txs = data.get("txs")
        if txs is None:
            txs = data.get("transactions")
        txs = txs or []
        if not isinstance(logs, list) or not isinstance(txs, list):
            raise DecodeError("Event logs and transactions must be lists")

        return cls(
            hash=event_hash,
            logs=tuple(EventTransactionLog.from_dict(log) for log in logs),
            transactions=tuple(EventTransaction.from_dict(tx) for tx in txs),
        )


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """Pending transaction from the matchmaker stream.

    Attributes:
        hash: Transaction hash
        logs: Logs emitted by the transaction
        to: Transaction recipient address
        function_selector: 4-byte function selector
        calldata: Calldata of the transaction
        mev_gas_price: Change in coinbase value divided by gas used (not yet published)
        gas_used: Gas used, rounded up to 2 significant digits (not yet published)
    """

    hash: str
    logs: tuple[EventTransactionLog, ...] = ()
    to: str | None = None
    function_selector: FunctionSelector | None = None
    calldata: HexBytes | None = None
    mev_gas_price: int | None = None
    gas_used: int | None = None

    def __str__(self) -> str:
        return (
            f"PendingTransaction(hash={self.hash[:10]}..., "
            f"to={self.to}, selector={self.function_selector})"
        )

    @classmethod
    def from_event(cls, event: RawEvent) -> "PendingTransaction":
        """Project an event using only its first transaction entry."""
        tx = event.transactions[0] if event.transactions else None
        return cls(
            hash=event.hash,
            logs=event.logs,
            to=tx.to if tx else None,
            function_selector=tx.function_selector if tx else None,
            calldata=tx.calldata if tx else None,
        )


@dataclass(frozen=True, slots=True)
class PendingBundle:
    """Pending bundle from the matchmaker stream.

    Attributes:
        hash: Bundle hash
        logs: Logs emitted by the bundle
        transactions: Hinted transactions of the bundle, in order
        mev_gas_price: Change in coinbase value divided by gas used (not yet published)
        gas_used: Gas used, rounded up to 2 significant digits (not yet published)
    """

    hash: str
    logs: tuple[EventTransactionLog, ...] = ()
    transactions: tuple[EventTransaction, ...] = ()
    mev_gas_price: int | None = None
    gas_used: int | None = None

    def __str__(self) -> str:
        return f"PendingBundle(hash={self.hash[:10]}..., txs={len(self.transactions)})"

    @classmethod
    def from_event(cls, event: RawEvent) -> "PendingBundle":
        """Project an event keeping the full transaction list."""
        return cls(hash=event.hash, logs=event.logs, transactions=event.transactions)


PendingTxOrBundle = Union[PendingTransaction, PendingBundle]


def project_event(event: RawEvent, event_type: StreamingEventType) -> PendingTxOrBundle:
    """Project a raw event into the shape registered for ``event_type``."""
    match event_type:
        case StreamingEventType.TRANSACTION:
            return PendingTransaction.from_event(event)
        case StreamingEventType.BUNDLE:
            return PendingBundle.from_event(event)
        case _:
            raise ValueError(f"Unknown event type: {event_type!r}")
