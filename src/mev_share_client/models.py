#!/usr/bin/env python3
"""Request and response models for the matchmaker submission API.

Every model is an immutable dataclass. ``to_dict`` produces the camelCase
JSON-RPC wire shape with absent optional fields omitted, ``from_dict``
reverses it and raises ``DecodeError`` on malformed input.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from hexbytes import HexBytes
from web3 import Web3

from .errors import DecodeError


def to_hex_quantity(value: int) -> str:
    """Encode a non-negative integer as a JSON-RPC hex quantity."""
    if value < 0:
        raise ValueError(f"Hex quantity must be non-negative, got {value}")
    return hex(value)


def from_hex_quantity(value: Any) -> int:
    """Decode a JSON-RPC hex quantity (or a plain integer)."""
    if isinstance(value, bool):
        raise DecodeError(f"Invalid hex quantity: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.startswith("0x"):
        try:
            return int(value, 16)
        except ValueError:
            pass
    raise DecodeError(f"Invalid hex quantity: {value!r}")


def to_hex_bytes(value: bytes) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(value).hex()


def from_hex_bytes(value: Any) -> HexBytes:
    """Decode 0x-prefixed hex into bytes."""
    if not isinstance(value, str):
        raise DecodeError(f"Expected hex string, got {type(value).__name__}")
    try:
        return HexBytes(value)
    except ValueError as e:
        raise DecodeError(f"Invalid hex data: {value!r}", original_error=e) from e


def _require_object(data: Any, what: str = "object") -> dict[str, Any]:
    if not isinstance(data, dict):
        raise DecodeError(f"Expected {what}, got {type(data).__name__}")
    return data


def _require(data: Any, key: str) -> Any:
    data = _require_object(data)
    if key not in data:
        raise DecodeError(f"Missing required field '{key}'")
    return data[key]


def _require_int(data: Any, key: str) -> int:
    value = _require(data, key)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"'{key}' must be an integer, got {value!r}")
    return value


def _optional_list(data: dict[str, Any], key: str) -> list[Any] | None:
    value = data.get(key)
    if value is not None and not isinstance(value, list):
        raise DecodeError(f"'{key}' must be a list, got {type(value).__name__}")
    return value


class ProtocolVersion(Enum):
    """Smart bundle protocol version."""
    V0_1 = "v0.1"


@dataclass(frozen=True, slots=True)
class InclusionParams:
    """Conditions evaluated before the bundle is placed in a block.

    Attributes:
        block: Target block number in which to include the bundle
        max_block: Maximum block height in which the bundle can be included
    """

    block: int
    max_block: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"block": to_hex_quantity(self.block)}
        if self.max_block is not None:
            data["maxBlock"] = to_hex_quantity(self.max_block)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InclusionParams":
        data = _require_object(data, "inclusion object")
        max_block = data.get("maxBlock")
        return cls(
            block=from_hex_quantity(_require(data, "block")),
            max_block=from_hex_quantity(max_block) if max_block is not None else None,
        )


@dataclass(frozen=True, slots=True)
class TxHashBody:
    """Reference to a transaction already seen on the event stream."""

    hash: str

    def to_dict(self) -> dict[str, Any]:
        return {"hash": self.hash}


@dataclass(frozen=True, slots=True)
class SignedTxBody:
    """A new signed transaction.

    Attributes:
        tx: Bytes of the signed transaction
        can_revert: If true, the transaction may revert without invalidating the bundle
    """

    tx: bytes
    can_revert: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"tx": to_hex_bytes(self.tx), "canRevert": self.can_revert}


BundleTx = Union[TxHashBody, SignedTxBody]


def bundle_tx_from_dict(data: Any) -> BundleTx:
    """Decode one entry of a bundle body."""
    match data:
        case {"hash": str(tx_hash)}:
            return TxHashBody(hash=tx_hash)
        case {"tx": str(raw_tx), **rest}:
            can_revert = rest.get("canRevert", False)
            if not isinstance(can_revert, bool):
                raise DecodeError(f"canRevert must be a boolean, got {can_revert!r}")
            return SignedTxBody(tx=from_hex_bytes(raw_tx), can_revert=can_revert)
        case _:
            raise DecodeError(f"Unrecognised bundle body entry: {data!r}")


@dataclass(frozen=True, slots=True)
class HintPreference:
    """Data fields of a transaction that may be shared with searchers."""

    calldata: bool | None = None
    contract_address: bool | None = None
    function_selector: bool | None = None
    logs: bool | None = None
    tx_hash: bool | None = None

    _WIRE_NAMES = {
        "calldata": "calldata",
        "contract_address": "contractAddress",
        "function_selector": "functionSelector",
        "logs": "logs",
        "tx_hash": "txHash",
    }

    # names used by eth_sendPrivateTransaction hint lists
    _HINT_NAMES = {
        "calldata": "calldata",
        "contract_address": "contract_address",
        "function_selector": "function_selector",
        "logs": "logs",
        "tx_hash": "hash",
    }

    def to_dict(self) -> dict[str, bool]:
        return {
            wire: getattr(self, attr)
            for attr, wire in self._WIRE_NAMES.items()
            if getattr(self, attr) is not None
        }

    def to_hint_list(self) -> list[str]:
        """List of enabled hints as accepted by eth_sendPrivateTransaction."""
        return [name for attr, name in self._HINT_NAMES.items() if getattr(self, attr)]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HintPreference":
        data = _require_object(data, "hints object")
        hints = {attr: data.get(wire) for attr, wire in cls._WIRE_NAMES.items()}
        for attr, value in hints.items():
            if value is not None and not isinstance(value, bool):
                raise DecodeError(
                    f"Hint '{cls._WIRE_NAMES[attr]}' must be a boolean, got {value!r}"
                )
        return cls(**hints)


@dataclass(frozen=True, slots=True)
class PrivacyParams:
    """Bundle privacy parameters.

    Attributes:
        hints: Data fields from bundle transactions shared with searchers
        builders: Builders allowed to receive this bundle
    """

    hints: HintPreference | None = None
    builders: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.hints is not None:
            data["hints"] = self.hints.to_dict()
        data["builders"] = list(self.builders)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PrivacyParams":
        data = _require_object(data, "privacy object")
        hints = data.get("hints")
        builders = _optional_list(data, "builders") or []
        if not all(isinstance(builder, str) for builder in builders):
            raise DecodeError(f"Builder names must be strings, got {builders!r}")
        return cls(
            hints=HintPreference.from_dict(hints) if hints is not None else None,
            builders=tuple(builders),
        )


@dataclass(frozen=True, slots=True)
class Refund:
    """Minimum refund percentage for the body entry at ``body_idx``."""

    body_idx: int
    percent: int

    def to_dict(self) -> dict[str, Any]:
        return {"bodyIdx": self.body_idx, "percent": self.percent}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Refund":
        return cls(body_idx=_require_int(data, "bodyIdx"), percent=_require_int(data, "percent"))


@dataclass(frozen=True, slots=True)
class RefundConfig:
    """Share of the refund paid to ``address`` if the bundle is reused."""

    address: str
    percent: int

    def __post_init__(self) -> None:
        if not Web3.is_address(self.address):
            raise ValueError(f"Invalid refund address: {self.address}")
        object.__setattr__(self, "address", Web3.to_checksum_address(self.address))

    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address, "percent": self.percent}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RefundConfig":
        try:
            return cls(address=_require(data, "address"), percent=_require_int(data, "percent"))
        except DecodeError:
            raise
        except ValueError as e:
            raise DecodeError(str(e), original_error=e) from e


@dataclass(frozen=True, slots=True)
class ValidityParams:
    """Conditions evaluated after the bundle is placed in a block."""

    refund: tuple[Refund, ...] | None = None
    refund_config: tuple[RefundConfig, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.refund is not None:
            data["refund"] = [r.to_dict() for r in self.refund]
        if self.refund_config is not None:
            data["refundConfig"] = [r.to_dict() for r in self.refund_config]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ValidityParams":
        data = _require_object(data, "validity object")
        refund = _optional_list(data, "refund")
        refund_config = _optional_list(data, "refundConfig")
        return cls(
            refund=tuple(Refund.from_dict(r) for r in refund) if refund is not None else None,
            refund_config=(
                tuple(RefundConfig.from_dict(r) for r in refund_config)
                if refund_config is not None
                else None
            ),
        )


@dataclass(frozen=True, slots=True)
class Bundle:
    """Parameters sent to ``mev_sendBundle``.

    The body is kept in insertion order, which is the execution order of the
    bundle, and must contain at least one entry.

    Attributes:
        inclusion: Conditions evaluated before the bundle is placed in a block
        body: Transactions that make up the bundle
        validity: Conditions evaluated after the bundle is placed in a block
        privacy: Bundle privacy parameters
        version: Smart bundle protocol version
    """

    inclusion: InclusionParams
    body: tuple[BundleTx, ...]
    validity: ValidityParams | None = None
    privacy: PrivacyParams | None = None
    version: ProtocolVersion = ProtocolVersion.V0_1

    def __post_init__(self) -> None:
        body = tuple(self.body)
        if not body:
            raise ValueError("Bundle body must contain at least one transaction")
        object.__setattr__(self, "body", body)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the ``mev_sendBundle`` parameter object."""
        data: dict[str, Any] = {
            "version": self.version.value,
            "inclusion": self.inclusion.to_dict(),
            "body": [tx.to_dict() for tx in self.body],
        }
        if self.validity is not None:
            data["validity"] = self.validity.to_dict()
        if self.privacy is not None:
            data["privacy"] = self.privacy.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Bundle":
        """Build a Bundle from its wire representation."""
        raw_version = _require(data, "version")
        try:
            version = ProtocolVersion(raw_version)
        except ValueError as e:
            raise DecodeError(f"Unsupported bundle version: {raw_version!r}") from e

        body = _require(data, "body")
        if not isinstance(body, list) or not body:
            raise DecodeError("Bundle body must be a non-empty list")

        validity = data.get("validity")
        privacy = data.get("privacy")
        return cls(
            version=version,
            inclusion=InclusionParams.from_dict(_require(data, "inclusion")),
            body=tuple(bundle_tx_from_dict(entry) for entry in body),
            validity=ValidityParams.from_dict(validity) if validity is not None else None,
            privacy=PrivacyParams.from_dict(privacy) if privacy is not None else None,
        )


@dataclass(frozen=True, slots=True)
class SendBundleResponse:
    """Response received from the matchmaker API for ``mev_sendBundle``."""

    bundle_hash: str

    @classmethod
    def from_dict(cls, data: Any) -> "SendBundleResponse":
        bundle_hash = _require(data, "bundleHash")
        if not isinstance(bundle_hash, str):
            raise DecodeError(f"bundleHash must be a string, got {bundle_hash!r}")
        return cls(bundle_hash=bundle_hash)

    def to_dict(self) -> dict[str, str]:
        return {"bundleHash": self.bundle_hash}


@dataclass(frozen=True, slots=True)
class TransactionOptions:
    """Options accepted by ``MatchmakerClient.send_transaction``.

    Attributes:
        hints: What data about the transaction is shared with searchers
        max_block_number: Maximum block number for the transaction to be included in
        builders: Builders allowed to receive the transaction
    """

    hints: HintPreference | None = None
    max_block_number: int | None = None
    builders: tuple[str, ...] | None = None

    def to_request_params(self, signed_tx: bytes) -> dict[str, Any]:
        """Build the ``eth_sendPrivateTransaction`` parameter object."""
        params: dict[str, Any] = {"tx": to_hex_bytes(signed_tx)}
        if self.max_block_number is not None:
            params["maxBlockNumber"] = to_hex_quantity(self.max_block_number)

        privacy: dict[str, Any] = {}
        if self.hints is not None:
            privacy["hints"] = self.hints.to_hint_list()
        if self.builders is not None:
            privacy["builders"] = list(self.builders)

        preferences: dict[str, Any] = {"fast": True}
        if privacy:
            preferences["privacy"] = privacy
        params["preferences"] = preferences
        return params
