#!/usr/bin/env python3
"""Unit tests for stream event decoding and projections."""

import pytest

from mev_share_client.errors import DecodeError
from mev_share_client.events import (
    EventTransaction,
    EventTransactionLog,
    FunctionSelector,
    PendingBundle,
    PendingTransaction,
    RawEvent,
    StreamingEventType,
    project_event,
)

EVENT_HASH = "0x" + "12" * 32
RECIPIENT = "0x85BfE05492aFC3D04Ff3B2ca6771ACF6f853d90d"


@pytest.fixture
def sample_event_data():
    """An event as published on the live stream."""
    return {
        "hash": EVENT_HASH,
        "logs": [
            {
                "address": RECIPIENT,
                "topics": ["0x" + "aa" * 32, "0x" + "bb" * 32],
                "data": "0x",
            }
        ],
        "txs": [
            {"to": RECIPIENT.lower(), "functionSelector": "0xa9059cbb", "callData": "0x1234"},
            {"to": RECIPIENT, "functionSelector": "0x095ea7b3", "callData": "0x"},
        ],
    }


class TestFunctionSelector:
    """Selector codec."""

    @pytest.mark.parametrize("text", ["0xa9059cbb", "a9059cbb", "0xA9059CBB"])
    def test_valid_selectors(self, text):
        selector = FunctionSelector.from_hex(text)

        assert selector.value == bytes.fromhex("a9059cbb")
        assert str(selector) == "0xa9059cbb"

    @pytest.mark.parametrize(
        "text", ["0xa9059c", "0xa9059cbb00", "", "0x", "0xzzzzzzzz", "0x0xa9059cbb", None, 42]
    )
    def test_invalid_selectors(self, text):
        with pytest.raises(DecodeError):
            FunctionSelector.from_hex(text)

    def test_selector_length_enforced(self):
        with pytest.raises(ValueError):
            FunctionSelector(b"\x01\x02\x03")


class TestRawEvent:
    """Decoding of stream records."""

    def test_decode_live_shape(self, sample_event_data):
        event = RawEvent.from_dict(sample_event_data)

        assert event.hash == EVENT_HASH
        assert len(event.logs) == 1
        assert event.logs[0].topics == ("0x" + "aa" * 32, "0x" + "bb" * 32)
        assert len(event.transactions) == 2
        assert event.transactions[0].to == RECIPIENT

    def test_transactions_key_accepted(self, sample_event_data):
        sample_event_data["transactions"] = sample_event_data.pop("txs")

        event = RawEvent.from_dict(sample_event_data)

        assert len(event.transactions) == 2

    @pytest.mark.parametrize("empty", [None, []])
    def test_missing_or_null_lists_are_empty(self, empty):
        event = RawEvent.from_dict({"hash": EVENT_HASH, "logs": empty, "txs": empty})

        assert event.logs == ()
        assert event.transactions == ()

    def test_hash_only(self):
        event = RawEvent.from_dict({"hash": EVENT_HASH})
        assert event.logs == () and event.transactions == ()

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"hash": ""},
            {"hash": 5},
            [],
            "event",
            {"hash": EVENT_HASH, "txs": {"to": RECIPIENT}},
            {"hash": EVENT_HASH, "txs": [{"functionSelector": "0x1"}]},
            {"hash": EVENT_HASH, "txs": [{"to": "not-an-address"}]},
            {"hash": EVENT_HASH, "logs": [{"topics": []}]},
            {"hash": EVENT_HASH, "logs": [{"address": RECIPIENT, "topics": "0xab"}]},
            {"hash": EVENT_HASH, "logs": [{"address": RECIPIENT, "topics": {"0": "0xab"}}]},
        ],
    )
    def test_malformed_events(self, payload):
        with pytest.raises(DecodeError):
            RawEvent.from_dict(payload)

    def test_partial_hints(self):
        event = RawEvent.from_dict({"hash": EVENT_HASH, "txs": [{"to": RECIPIENT}]})

        assert event.transactions[0] == EventTransaction(to=RECIPIENT)

    def test_records_survive_wire_round_trip(self, sample_event_data):
        event = RawEvent.from_dict(sample_event_data)

        wire = {
            "hash": event.hash,
            "logs": [log.to_dict() for log in event.logs],
            "txs": [tx.to_dict() for tx in event.transactions],
        }

        assert wire["txs"][0] == {
            "to": RECIPIENT,
            "functionSelector": "0xa9059cbb",
            "callData": "0x1234",
        }
        assert wire["logs"][0]["topics"] == sample_event_data["logs"][0]["topics"]
        assert RawEvent.from_dict(wire) == event

    def test_partial_record_omits_unshared_fields(self):
        assert EventTransaction(to=RECIPIENT).to_dict() == {"to": RECIPIENT}
        assert EventTransactionLog(address=RECIPIENT).to_dict() == {
            "address": RECIPIENT,
            "topics": [],
            "data": "0x",
        }


class TestProjections:
    """PendingTransaction and PendingBundle projections."""

    def test_transaction_uses_first_entry(self, sample_event_data):
        event = RawEvent.from_dict(sample_event_data)

        tx = PendingTransaction.from_event(event)

        assert tx.hash == EVENT_HASH
        assert tx.logs == event.logs
        assert tx.to == RECIPIENT
        assert tx.function_selector == FunctionSelector.from_hex("0xa9059cbb")
        assert tx.calldata == bytes.fromhex("1234")
        assert tx.mev_gas_price is None
        assert tx.gas_used is None

    def test_transaction_without_entries(self, sample_event_data):
        sample_event_data["txs"] = []
        event = RawEvent.from_dict(sample_event_data)

        tx = PendingTransaction.from_event(event)

        assert tx.hash == EVENT_HASH
        assert len(tx.logs) == 1
        assert tx.to is None
        assert tx.function_selector is None
        assert tx.calldata is None

    def test_bundle_keeps_all_entries(self, sample_event_data):
        event = RawEvent.from_dict(sample_event_data)

        bundle = PendingBundle.from_event(event)

        assert bundle.hash == EVENT_HASH
        assert bundle.transactions == event.transactions
        assert [str(tx.function_selector) for tx in bundle.transactions] == [
            "0xa9059cbb",
            "0x095ea7b3",
        ]

    def test_project_event_dispatches_on_type(self, sample_event_data):
        event = RawEvent.from_dict(sample_event_data)

        assert isinstance(project_event(event, StreamingEventType.TRANSACTION), PendingTransaction)
        assert isinstance(project_event(event, StreamingEventType.BUNDLE), PendingBundle)

    def test_event_type_strings(self):
        assert StreamingEventType.TRANSACTION.as_str() == "transaction"
        assert StreamingEventType.BUNDLE.as_str() == "bundle"
