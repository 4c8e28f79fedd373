"""Constants for the stakesign library."""

from enum import Enum

__all__ = [
    "Network",
    "NETWORK_IDS",
    "RELAY_SEGMENTS",
    "BLOCKFROST_ENDPOINT",
    "STAKING_API_ENDPOINT",
    "HARDENED_OFFSET",
    "MAX_SOFT_INDEX",
    "PURPOSE",
    "COIN_TYPE",
    "ACCOUNT_INDEX",
    "ROLE_EXTERNAL",
    "ROLE_STAKING",
    "STAKE_KEY_INDEX",
    "ADDRESS_HRP",
    "STAKE_HRP",
    "KEY_HASH_SIZE",
    "TX_HASH_SIZE",
    "LOVELACE_PER_ADA",
    "DEFAULT_TIMEOUT",
    "MAX_RETRIES",
    "RETRY_DELAY",
    "CONFIRMATION_DELAY",
    "USER_AGENT",
]


class Network(str, Enum):
    """Cardano networks."""

    MAINNET = "mainnet"
    PREPROD = "preprod"
    PREVIEW = "preview"


# Network id carried in the low nibble of every Shelley address header
NETWORK_IDS = {
    Network.MAINNET: 1,
    Network.PREPROD: 0,
    Network.PREVIEW: 0,
}

RELAY_SEGMENTS = {
    Network.MAINNET: "mainnet",
    Network.PREPROD: "preprod",
    Network.PREVIEW: "preview",
}

BLOCKFROST_ENDPOINT = "https://cardano-{segment}.blockfrost.io/api/v0"
STAKING_API_ENDPOINT = "http://localhost:3000"

# CIP-1852 derivation
HARDENED_OFFSET = 0x80000000
MAX_SOFT_INDEX = HARDENED_OFFSET - 1
PURPOSE = 1852
COIN_TYPE = 1815
ACCOUNT_INDEX = 0
ROLE_EXTERNAL = 0
ROLE_STAKING = 2
STAKE_KEY_INDEX = 0

# Bech32 human readable parts, keyed by network id
ADDRESS_HRP = {1: "addr", 0: "addr_test"}
STAKE_HRP = {1: "stake", 0: "stake_test"}

KEY_HASH_SIZE = 28
TX_HASH_SIZE = 32

LOVELACE_PER_ADA = 1_000_000

# HTTP
DEFAULT_TIMEOUT = 30
MAX_RETRIES = 3
RETRY_DELAY = 1.0
CONFIRMATION_DELAY = 5.0
USER_AGENT = "stakesign/1.0.0"
