"""
stakesign

HD key derivation and transaction signing for Cardano staking workflows.
"""

from typing import Union

from .client import StakeSign, resolve_network
from .codec import decode, encode, inspect
from .config import Settings
from .constants import Network
from .exceptions import (
    StakeSignError,
    ConfigurationError,
    ValidationError,
    InvalidDerivationIndex,
    CryptoError,
    InvalidMnemonic,
    MalformedEnvelope,
    MalformedReason,
    SigningError,
    HashMismatch,
    SigningKeyMismatch,
    ProviderError,
    NetworkError,
    TimeoutError,
    SubmissionError,
    StatusCheckFailed,
)
from .network import NetworkContext
from .providers import BlockfrostProvider, StakingAPIProvider
from .crypto import PrivateKey, PublicKey, derive_address_keys
from .modules import Wallet
from .witness import SigningSession, SigningState, hash_body, sign_envelope
from .types import (
    TransactionEnvelope,
    TransactionStatus,
    SubmissionReceipt,
)

__version__ = "1.0.0"

__all__ = [
    # Main client
    "StakeSign",
    "resolve_network",
    "connect",

    # Network and config
    "Network",
    "NetworkContext",
    "Settings",

    # Providers
    "BlockfrostProvider",
    "StakingAPIProvider",

    # Exceptions
    "StakeSignError",
    "ConfigurationError",
    "ValidationError",
    "InvalidDerivationIndex",
    "CryptoError",
    "InvalidMnemonic",
    "MalformedEnvelope",
    "MalformedReason",
    "SigningError",
    "HashMismatch",
    "SigningKeyMismatch",
    "ProviderError",
    "NetworkError",
    "TimeoutError",
    "SubmissionError",
    "StatusCheckFailed",

    # Crypto
    "PrivateKey",
    "PublicKey",
    "derive_address_keys",

    # Signing
    "Wallet",
    "SigningSession",
    "SigningState",
    "hash_body",
    "sign_envelope",
    "decode",
    "encode",
    "inspect",

    # Types
    "TransactionEnvelope",
    "TransactionStatus",
    "SubmissionReceipt",
]


def connect(
    network: Union[Network, NetworkContext, str] = Network.PREVIEW,
    provider: str = "blockfrost",
    **kwargs
) -> StakeSign:
    """
    Create a client for a Cardano network.

    Args:
        network: Network to use
        provider: Provider type ('blockfrost' or 'staking-api')
        **kwargs: Provider arguments (``project_id`` or ``api_key``, ...)

    Returns:
        StakeSign client

    Example:
        >>> client = stakesign.connect("preprod", project_id="preprod...")
        >>> client = stakesign.connect("mainnet", provider="staking-api", api_key="...")
    """
    if isinstance(network, Network):
        network = network.value
    if isinstance(network, str):
        network = NetworkContext.from_name(network)

    if provider == "blockfrost":
        provider_instance = BlockfrostProvider(network, **kwargs)
    elif provider == "staking-api":
        provider_instance = StakingAPIProvider(network, **kwargs)
    else:
        raise ValueError(f"Unknown provider type: {provider}")

    return StakeSign(provider=provider_instance, network=network)
