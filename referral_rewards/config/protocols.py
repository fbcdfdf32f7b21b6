"""
Protocol registry.

Supported campaign protocols and where their referral events live.
All referral registrations are emitted by the registry contract on a single
network; protocols differ only by the block their campaign started at.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal


class NetworkId(str, Enum):
    """Networks known to the block-timestamp resolver and log source."""

    CELO_MAINNET = "celo-mainnet"
    CELO_ALFAJORES = "celo-alfajores"
    ETHEREUM_MAINNET = "ethereum-mainnet"
    ETHEREUM_SEPOLIA = "ethereum-sepolia"
    ARBITRUM_ONE = "arbitrum-one"
    ARBITRUM_SEPOLIA = "arbitrum-sepolia"
    OP_MAINNET = "op-mainnet"
    OP_SEPOLIA = "op-sepolia"
    POLYGON_POS_MAINNET = "polygon-pos-mainnet"
    POLYGON_POS_AMOY = "polygon-pos-amoy"
    BASE_MAINNET = "base-mainnet"
    BASE_SEPOLIA = "base-sepolia"
    LISK_MAINNET = "lisk-mainnet"
    AVALANCHE_MAINNET = "avalanche-mainnet"
    INK_MAINNET = "ink-mainnet"
    UNICHAIN_MAINNET = "unichain-mainnet"
    BERACHAIN_MAINNET = "berachain-mainnet"


Protocol = Literal[
    "beefy",
    "aerodrome",
    "somm",
    "celo-pg",
    "arbitrum",
    "velodrome",
    "fonbnk",
    "aave",
    "celo-transactions",
    "rhino",
    "scout-game-v0",
    "lisk-v0",
    "tether-v0",
    "base-v0",
    "morph",
]

# First block of the referral registry on OP Mainnet
REGISTRY_DEPLOY_BLOCK = 134_945_942


@dataclass(frozen=True)
class ProtocolConfig:
    """Where to look for one protocol's referral registrations."""

    protocol: str
    genesis_block: int = REGISTRY_DEPLOY_BLOCK
    # Optional 20-byte identifier matched against topic2
    registry_id: str | None = None


PROTOCOLS: dict[str, ProtocolConfig] = {
    name: ProtocolConfig(protocol=name)
    for name in (
        "beefy",
        "aerodrome",
        "somm",
        "celo-pg",
        "arbitrum",
        "velodrome",
        "fonbnk",
        "aave",
        "celo-transactions",
        "rhino",
        "scout-game-v0",
        "lisk-v0",
        "tether-v0",
        "base-v0",
        "morph",
    )
}


def get_protocol_config(protocol: str) -> ProtocolConfig:
    """
    Look up the registry configuration for a protocol.

    Args:
        protocol: Protocol identifier (e.g. "celo-transactions")

    Returns:
        ProtocolConfig for the protocol

    Raises:
        ValueError: If the protocol is not supported
    """
    try:
        return PROTOCOLS[protocol]
    except KeyError:
        raise ValueError(f"Unsupported protocol: {protocol}") from None
