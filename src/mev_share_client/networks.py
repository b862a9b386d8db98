#!/usr/bin/env python3
"""Static registry of the matchmaker networks the client can talk to."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class MatchMakerNetwork:
    """Endpoints of one Flashbots matchmaker deployment.

    Attributes:
        chain_id: Chain ID of the network
        name: Lowercase name of the network, e.g. "mainnet"
        api_url: Bundle and transaction submission endpoint
        stream_url: MEV-Share event stream endpoint
    """

    chain_id: int
    name: str
    api_url: str
    stream_url: str

    def __str__(self) -> str:
        return f"MatchMakerNetwork({self.name}, chain={self.chain_id})"

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase dictionary used by the other SDKs."""
        return {
            "chainId": self.chain_id,
            "name": self.name,
            "apiUrl": self.api_url,
            "streamUrl": self.stream_url,
        }


MAINNET = MatchMakerNetwork(
    chain_id=1,
    name="mainnet",
    api_url="https://relay.flashbots.net",
    stream_url="https://mev-share.flashbots.net",
)

GOERLI = MatchMakerNetwork(
    chain_id=5,
    name="goerli",
    api_url="https://relay-goerli.flashbots.net",
    stream_url="https://mev-share-goerli.flashbots.net",
)


class SupportedNetworks:
    """Read-only lookup from chain id to matchmaker endpoints."""

    def __init__(self, networks: tuple[MatchMakerNetwork, ...] = (MAINNET, GOERLI)) -> None:
        self._networks: dict[str, MatchMakerNetwork] = {
            network.name: network for network in networks
        }

    def __iter__(self):
        return iter(self._networks.values())

    def __len__(self) -> int:
        return len(self._networks)

    def mainnet(self) -> MatchMakerNetwork | None:
        """Configuration for Ethereum mainnet."""
        return self._networks.get("mainnet")

    def goerli(self) -> MatchMakerNetwork | None:
        """Configuration for the Goerli testnet."""
        return self._networks.get("goerli")

    def is_supported(self, chain_id: int) -> bool:
        """Check whether a network with the given chain id is registered."""
        return any(network.chain_id == chain_id for network in self._networks.values())

    def get_network(self, chain_id: int) -> MatchMakerNetwork | None:
        """Return the network for the given chain id, or None if unknown."""
        return next(
            (network for network in self._networks.values() if network.chain_id == chain_id),
            None,
        )
