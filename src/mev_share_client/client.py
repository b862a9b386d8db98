#!/usr/bin/env python3
"""Client for the Flashbots matchmaker (MEV-Share) service.

Requests to the relay go through ``SigningTransport`` so every call carries
the ``x-flashbots-signature`` header. The event stream is consumed through
``EventStreamDispatcher``.
"""

import itertools
import logging
from typing import Any

import httpx

from .errors import ConfigurationError, DecodeError, RelayError, TransportError
from .event_stream import EventHandler, EventStreamDispatcher
from .events import StreamingEventType
from .models import Bundle, SendBundleResponse, TransactionOptions
from .networks import MatchMakerNetwork, SupportedNetworks
from .signer import Signer
from .signer_middleware import signing_layer

logger = logging.getLogger(__name__)


class MatchmakerClient:
    """Authenticated client bound to one matchmaker network."""

    def __init__(
        self,
        auth_signer: Signer,
        network: MatchMakerNetwork,
        request_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        stream_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the MatchmakerClient.

        Args:
            auth_signer: Signer used to authenticate requests to the relay
            network: The network the client will connect to
            request_timeout: Timeout in seconds for relay requests
            transport: Base transport to wrap with signing (defaults to HTTP)
            stream_client: Optional httpx client used for the event stream
        """
        self.auth_signer = auth_signer
        self.network = network
        self._request_ids = itertools.count(1)

        base_transport = transport or httpx.AsyncHTTPTransport()
        self._http = httpx.AsyncClient(
            transport=signing_layer(auth_signer)(base_transport),
            timeout=request_timeout,
            headers={"Content-Type": "application/json"},
        )
        self.event_dispatcher = EventStreamDispatcher(
            network.stream_url,
            client=stream_client,
            timeout=request_timeout,
        )

        logger.info(f"MatchmakerClient initialized for {network.name}")
        logger.info(f"  API URL: {network.api_url}")
        logger.info(f"  Stream URL: {network.stream_url}")
        logger.info(f"  Auth Signer: {auth_signer.address}")

    @classmethod
    def from_network(
        cls, auth_signer: Signer, chain_id: int, **kwargs: Any
    ) -> "MatchmakerClient":
        """
        Connect to a supported network selected by chain id.

        Raises:
            ConfigurationError: If no matchmaker is registered for ``chain_id``
        """
        supported = SupportedNetworks()
        network = supported.get_network(chain_id)
        if network is None:
            raise ConfigurationError(
                f"Chain ID {chain_id} is not supported. "
                f"Supported chain IDs: {', '.join(str(n.chain_id) for n in supported)}"
            )
        return cls(auth_signer, network, **kwargs)

    @classmethod
    def mainnet(cls, auth_signer: Signer, **kwargs: Any) -> "MatchmakerClient":
        """Connect to the Flashbots mainnet matchmaker."""
        return cls.from_network(auth_signer, 1, **kwargs)

    @classmethod
    def goerli(cls, auth_signer: Signer, **kwargs: Any) -> "MatchmakerClient":
        """Connect to the Flashbots Goerli matchmaker."""
        return cls.from_network(auth_signer, 5, **kwargs)

    async def __aenter__(self) -> "MatchmakerClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connections."""
        await self._http.aclose()

    async def _request(self, method: str, params: list[Any]) -> Any:
        """
        Send a signed JSON-RPC request to the relay and return its result.

        Raises:
            SigningError: If the signer fails
            TransportError: On connection errors, timeouts or non-JSON error responses
            RelayError: If the relay returns a JSON-RPC error object
            DecodeError: If the response is not a JSON-RPC response
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params,
        }
        logger.debug(f"Sending {method} to {self.network.api_url}")

        try:
            response = await self._http.post(self.network.api_url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"{method} request to {self.network.api_url} failed: {e}")
            raise TransportError(
                f"{method} request failed: {e}", original_error=e, endpoint=self.network.api_url
            ) from e

        try:
            body = response.json()
        except ValueError as e:
            if response.is_error:
                raise TransportError(
                    f"{method} returned HTTP {response.status_code}",
                    endpoint=self.network.api_url,
                ) from e
            raise DecodeError(f"{method} returned a non-JSON response", original_error=e) from e

        match body:
            case {"error": {"code": code, "message": message, **rest}}:
                logger.error(f"{method} rejected by relay: [{code}] {message}")
                raise RelayError(method, code, message, rest.get("data"))
            case {"error": error}:
                raise RelayError(method, None, str(error))
            case {"result": result}:
                return result
            case _:
                if response.is_error:
                    raise TransportError(
                        f"{method} returned HTTP {response.status_code}",
                        endpoint=self.network.api_url,
                    )
                raise DecodeError(f"{method} returned an unexpected response: {body!r}")

    async def send_bundle(self, bundle: Bundle) -> SendBundleResponse:
        """
        Send a bundle to MEV-Share.

        Args:
            bundle: Params for the bundle to be sent

        Returns:
            The relay's response carrying the bundle hash
        """
        result = await self._request("mev_sendBundle", [bundle.to_dict()])
        response = SendBundleResponse.from_dict(result)
        logger.info(f"Bundle accepted: {response.bundle_hash}")
        return response

    async def send_transaction(
        self, signed_tx: bytes, options: TransactionOptions | None = None
    ) -> str:
        """
        Send a private transaction to MEV-Share.

        Args:
            signed_tx: Bytes of the signed transaction
            options: Hint, builder and inclusion preferences

        Returns:
            Transaction hash reported by the relay
        """
        params = (options or TransactionOptions()).to_request_params(signed_tx)
        result = await self._request("eth_sendPrivateTransaction", [params])
        if not isinstance(result, str):
            raise DecodeError(f"eth_sendPrivateTransaction returned {result!r}, expected a hash")
        logger.info(f"Private transaction accepted: {result}")
        return result

    async def on(self, event_type: StreamingEventType, handler: EventHandler) -> None:
        """
        Listen to the matchmaker event stream and invoke ``handler`` for each
        event of ``event_type`` until the stream ends.
        """
        await self.event_dispatcher.listen(event_type, handler)
