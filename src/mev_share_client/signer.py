#!/usr/bin/env python3
"""Signer capability used to authenticate requests to the relay."""

import logging
from typing import Protocol, runtime_checkable

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)


@runtime_checkable
class Signer(Protocol):
    """Anything that can sign a message and report its address.

    Implementations are shared between concurrent requests and must tolerate
    concurrent calls to ``sign``.
    """

    @property
    def address(self) -> str:
        """Checksummed address of the signing key."""
        ...

    async def sign(self, message: bytes) -> bytes:
        """Return an EIP-191 personal-message signature over ``message``."""
        ...


class LocalSigner:
    """Signer backed by a private key held in memory."""

    def __init__(self, private_key: str) -> None:
        """
        Initialize the LocalSigner.

        Args:
            private_key: Hex encoded secp256k1 private key (0x prefix optional)
        """
        if not private_key:
            raise ValueError("Private key is required for signing requests")
        self._account: LocalAccount = Account.from_key(private_key)
        logger.debug(f"LocalSigner initialized for {self._account.address}")

    @classmethod
    def random(cls) -> "LocalSigner":
        """Create a signer with a freshly generated throwaway key."""
        return cls("0x" + bytes(Account.create().key).hex())

    @property
    def address(self) -> str:
        return self._account.address

    async def sign(self, message: bytes) -> bytes:
        signed = self._account.sign_message(encode_defunct(primitive=message))
        return bytes(signed.signature)
