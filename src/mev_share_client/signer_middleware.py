#!/usr/bin/env python3
"""Flashbots-style request authentication as an httpx transport layer.

Every outgoing request body is hashed with keccak256, the hex digest is signed
by the configured signer and the result is attached as the
``x-flashbots-signature`` header before the request is handed to the wrapped
transport. See
https://docs.flashbots.net/flashbots-auction/advanced/rpc-endpoint#authentication
"""

import logging
from collections.abc import Callable

import httpx
from web3 import Web3

from .errors import SigningError, TransportError
from .signer import Signer

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-flashbots-signature"


def signature_message(body: bytes) -> bytes:
    """The message that gets signed for a request body: ``0x`` + keccak256 hex."""
    return ("0x" + bytes(Web3.keccak(primitive=body)).hex()).encode()


async def flashbots_signature(signer: Signer, body: bytes) -> str:
    """
    Compute the ``x-flashbots-signature`` header value for a request body.

    Args:
        signer: Signer whose key authenticates the request
        body: The complete, serialized request body

    Returns:
        ``"<checksummed address>:0x<signature hex>"``

    Raises:
        SigningError: If the signer fails
    """
    try:
        signature = await signer.sign(signature_message(body))
    except Exception as e:
        logger.error(f"Signer failed to sign request body: {e}")
        raise SigningError(f"Failed to sign request body: {e}", original_error=e) from e

    address = Web3.to_checksum_address(signer.address)
    return f"{address}:0x{bytes(signature).hex()}"


class SigningTransport(httpx.AsyncBaseTransport):
    """Transport that signs each request before forwarding it to ``inner``.

    The transport holds no per-request state, so any number of requests may
    be in flight through it at once.
    """

    def __init__(self, inner: httpx.AsyncBaseTransport, signer: Signer) -> None:
        self.inner = inner
        self.signer = signer
        self._closed = False

    @property
    def is_ready(self) -> bool:
        return not self._closed

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if not self.is_ready:
            raise TransportError("Signing transport is closed", endpoint=str(request.url))

        # the signature covers the whole body, so it is buffered first
        body = await request.aread()
        request.headers[SIGNATURE_HEADER] = await flashbots_signature(self.signer, body)
        logger.debug(f"Signed {len(body)} byte request to {request.url}")

        return await self.inner.handle_async_request(request)

    async def aclose(self) -> None:
        self._closed = True
        await self.inner.aclose()


def signing_layer(signer: Signer) -> Callable[[httpx.AsyncBaseTransport], SigningTransport]:
    """
    Build a layer that wraps a transport with request signing.

    Usage:
        transport = signing_layer(signer)(httpx.AsyncHTTPTransport())
    """
    def layer(inner: httpx.AsyncBaseTransport) -> SigningTransport:
        return SigningTransport(inner, signer)

    return layer
