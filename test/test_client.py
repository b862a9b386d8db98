#!/usr/bin/env python3
"""Unit tests for MatchmakerClient."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from web3 import Web3

from mev_share_client.client import MatchmakerClient
from mev_share_client.errors import (
    ConfigurationError,
    DecodeError,
    RelayError,
    SigningError,
    TransportError,
)
from mev_share_client.events import StreamingEventType
from mev_share_client.models import (
    Bundle,
    HintPreference,
    InclusionParams,
    SendBundleResponse,
    TransactionOptions,
    TxHashBody,
)
from mev_share_client.networks import GOERLI, MAINNET
from mev_share_client.signer import LocalSigner
from mev_share_client.signer_middleware import SIGNATURE_HEADER

TX_HASH = "0xabc" + "0" * 61
BUNDLE_HASH = "0xdead" + "0" * 60


class RecordingRelay:
    """Fake relay that records requests and replies with a fixed response."""

    def __init__(self, response: httpx.Response | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.response = response or httpx.Response(
            200, json={"jsonrpc": "2.0", "id": 1, "result": {"bundleHash": BUNDLE_HASH}}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def signer():
    return LocalSigner("0x" + "22" * 32)


@pytest.fixture
def bundle():
    return Bundle(inclusion=InclusionParams(block=0x100), body=(TxHashBody(hash=TX_HASH),))


def make_client(signer, relay, network=MAINNET):
    return MatchmakerClient(signer, network, transport=httpx.MockTransport(relay))


class TestClientConstruction:
    """Network selection."""

    def test_mainnet(self, signer):
        client = MatchmakerClient.mainnet(signer)
        assert client.network == MAINNET
        assert client.event_dispatcher.stream_url == MAINNET.stream_url

    def test_goerli(self, signer):
        client = MatchmakerClient.goerli(signer)
        assert client.network == GOERLI

    def test_from_network(self, signer):
        assert MatchmakerClient.from_network(signer, 5).network == GOERLI

    @pytest.mark.parametrize("chain_id", [0, 10, 137, 11155111])
    def test_unsupported_chain_fails_before_io(self, signer, chain_id):
        relay = RecordingRelay()

        with patch("mev_share_client.client.httpx.AsyncClient") as mock_client:
            with pytest.raises(ConfigurationError, match=f"Chain ID {chain_id} is not supported"):
                MatchmakerClient.from_network(
                    signer, chain_id, transport=httpx.MockTransport(relay)
                )

        mock_client.assert_not_called()
        assert relay.requests == []

    def test_configuration_error_is_value_error(self, signer):
        with pytest.raises(ValueError):
            MatchmakerClient.from_network(signer, 999)


class TestSendBundle:
    """mev_sendBundle round trips."""

    @pytest.mark.asyncio
    async def test_end_to_end(self, signer, bundle):
        relay = RecordingRelay()

        async with make_client(signer, relay) as client:
            response = await client.send_bundle(bundle)

        assert response == SendBundleResponse(bundle_hash=BUNDLE_HASH)
        assert len(relay.requests) == 1

        payload = relay.payloads[0]
        assert payload["jsonrpc"] == "2.0"
        assert payload["method"] == "mev_sendBundle"
        assert len(payload["params"]) == 1
        assert payload["params"][0]["inclusion"]["block"] == "0x100"
        assert payload["params"][0]["body"] == [{"hash": TX_HASH}]
        assert relay.requests[0].url.host == "relay.flashbots.net"

    @pytest.mark.asyncio
    async def test_request_is_signed_over_exact_body(self, signer, bundle):
        relay = RecordingRelay()

        async with make_client(signer, relay) as client:
            await client.send_bundle(bundle)

        request = relay.requests[0]
        address, signature = request.headers[SIGNATURE_HEADER].split(":")
        message = "0x" + bytes(Web3.keccak(primitive=request.content)).hex()

        assert address == signer.address
        assert Account.recover_message(encode_defunct(text=message), signature=signature) == address

    @pytest.mark.asyncio
    async def test_request_ids_increase(self, signer, bundle):
        relay = RecordingRelay()

        async with make_client(signer, relay) as client:
            await client.send_bundle(bundle)
            await client.send_bundle(bundle)

        assert [p["id"] for p in relay.payloads] == [1, 2]

    @pytest.mark.asyncio
    async def test_concurrent_sends(self, signer, bundle):
        relay = RecordingRelay()

        async with make_client(signer, relay) as client:
            responses = await asyncio.gather(*(client.send_bundle(bundle) for _ in range(10)))

        assert all(r.bundle_hash == BUNDLE_HASH for r in responses)
        addresses = {r.headers[SIGNATURE_HEADER].split(":")[0] for r in relay.requests}
        assert addresses == {signer.address}
        assert sorted(p["id"] for p in relay.payloads) == list(range(1, 11))

    @pytest.mark.asyncio
    async def test_relay_error(self, signer, bundle):
        relay = RecordingRelay(httpx.Response(
            400,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "invalid bundle"}},
        ))

        async with make_client(signer, relay) as client:
            with pytest.raises(RelayError) as exc_info:
                await client.send_bundle(bundle)

        assert exc_info.value.method == "mev_sendBundle"
        assert exc_info.value.code == -32602
        assert exc_info.value.relay_message == "invalid bundle"

    @pytest.mark.asyncio
    async def test_unexpected_result_shape(self, signer, bundle):
        relay = RecordingRelay(httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {"hash": "0x1"}}))

        async with make_client(signer, relay) as client:
            with pytest.raises(DecodeError):
                await client.send_bundle(bundle)

    @pytest.mark.asyncio
    async def test_non_json_success_is_decode_error(self, signer, bundle):
        relay = RecordingRelay(httpx.Response(200, text="ok"))

        async with make_client(signer, relay) as client:
            with pytest.raises(DecodeError):
                await client.send_bundle(bundle)

    @pytest.mark.asyncio
    async def test_non_json_failure_is_transport_error(self, signer, bundle):
        relay = RecordingRelay(httpx.Response(502, text="Bad Gateway"))

        async with make_client(signer, relay) as client:
            with pytest.raises(TransportError, match="HTTP 502"):
                await client.send_bundle(bundle)

    @pytest.mark.asyncio
    async def test_connection_failure_is_transport_error(self, signer, bundle):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        async with make_client(signer, refuse) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.send_bundle(bundle)

        assert exc_info.value.endpoint == MAINNET.api_url
        assert isinstance(exc_info.value.original_error, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_signing_error_propagates_without_request(self, signer, bundle):
        relay = RecordingRelay()

        with patch.object(LocalSigner, "sign", AsyncMock(side_effect=RuntimeError("no key"))):
            async with make_client(signer, relay) as client:
                with pytest.raises(SigningError):
                    await client.send_bundle(bundle)

        assert relay.requests == []


class TestSendTransaction:
    """eth_sendPrivateTransaction round trips."""

    @pytest.mark.asyncio
    async def test_send_transaction(self, signer):
        relay = RecordingRelay(httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": TX_HASH}))
        options = TransactionOptions(hints=HintPreference(calldata=True), max_block_number=10)

        async with make_client(signer, relay) as client:
            tx_hash = await client.send_transaction(b"\x02\xf8", options)

        assert tx_hash == TX_HASH
        payload = relay.payloads[0]
        assert payload["method"] == "eth_sendPrivateTransaction"
        assert payload["params"] == [{
            "tx": "0x02f8",
            "maxBlockNumber": "0xa",
            "preferences": {"fast": True, "privacy": {"hints": ["calldata"]}},
        }]
        assert SIGNATURE_HEADER in relay.requests[0].headers

    @pytest.mark.asyncio
    async def test_send_transaction_bad_result(self, signer):
        relay = RecordingRelay(httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": 5}))

        async with make_client(signer, relay) as client:
            with pytest.raises(DecodeError):
                await client.send_transaction(b"\x01")


class TestStreaming:
    """Client delegates streaming to its dispatcher."""

    @pytest.mark.asyncio
    async def test_on_delegates_to_dispatcher(self, signer):
        client = MatchmakerClient.mainnet(signer)
        handler = lambda event: None  # noqa: E731

        with patch.object(client.event_dispatcher, "listen", AsyncMock()) as listen:
            await client.on(StreamingEventType.BUNDLE, handler)

        listen.assert_awaited_once_with(StreamingEventType.BUNDLE, handler)
        await client.aclose()
