"""Main stakesign client."""

import logging
from typing import Any, Optional, Union

from .config import Settings
from .constants import CONFIRMATION_DELAY
from .exceptions import StakeSignError, SubmissionError
from .modules import TransactionModule, Wallet
from .network import NetworkContext
from .providers import BaseProvider, BlockfrostProvider, StakingAPIProvider
from .types.transaction import SubmissionReceipt

__all__ = ["StakeSign", "resolve_network"]

logger = logging.getLogger(__name__)


async def resolve_network(api: StakingAPIProvider) -> NetworkContext:
    """
    Fetch the network the staking API serves.

    Call once per operation and pass the result along.
    """
    return await api.get_network_config()


class StakeSign:
    """
    Main client: signs transactions with a wallet and submits them.

    Owns a provider and the transaction module bound to it.
    """

    def __init__(
        self,
        provider: BaseProvider,
        network: Optional[Union[NetworkContext, str]] = None,
        confirmation_delay: float = CONFIRMATION_DELAY,
    ) -> None:
        """
        Initialize client.

        Args:
            provider: Provider instance
            network: Network (default: the provider's)
            confirmation_delay: Wait before checking a new transaction
        """
        if isinstance(network, str):
            network = NetworkContext.from_name(network)

        self._provider = provider
        self._network = network or provider.network
        self._tx = TransactionModule(provider, confirmation_delay=confirmation_delay)

        logger.info(
            f"Initialized stakesign client for {self._network} "
            f"with {self._provider.__class__.__name__}"
        )

    @property
    def provider(self) -> BaseProvider:
        """Get current provider."""
        return self._provider

    @property
    def network(self) -> NetworkContext:
        """Get current network."""
        return self._network

    @property
    def tx(self) -> TransactionModule:
        """Get transaction module."""
        return self._tx

    def wallet(self, mnemonic: str, address_index: int = 0, **kwargs: Any) -> Wallet:
        """Create a wallet on this client's network."""
        return Wallet(mnemonic, self._network, address_index, **kwargs)

    async def sign_and_submit(
        self,
        unsigned_hex: str,
        wallet: Wallet,
        wait: bool = False,
        attempts: int = 1,
        expected_hash: Optional[str] = None,
    ) -> SubmissionReceipt:
        """
        Sign, submit, and optionally wait for confirmation.

        Args:
            unsigned_hex: Unsigned envelope from the crafting API
            wallet: Wallet holding the signing keys
            wait: Check for confirmation after submitting
            attempts: Status checks when waiting
            expected_hash: Transaction hash the caller expects

        Returns:
            SubmissionReceipt; ``status`` is None when ``wait`` is False

        Raises:
            MalformedEnvelope: If the envelope cannot be decoded
            SubmissionError: If the relay rejects the transaction
        """
        if wallet.network != self._network:
            raise StakeSignError(
                f"Wallet is on {wallet.network}, client is on {self._network}"
            )

        session = wallet.sign(unsigned_hex, expected_hash=expected_hash)
        try:
            tx_id = await session.submit(self._tx)
        except SubmissionError as e:
            logger.error(f"Transaction {session.tx_id} was not accepted: {e}")
            raise

        if not wait:
            return SubmissionReceipt(tx_id=tx_id)
        return await session.confirm(self._tx, attempts=attempts)

    async def connect(self) -> None:
        """Connect to provider."""
        await self._provider.connect()

    async def disconnect(self) -> None:
        """Disconnect from provider."""
        await self._provider.disconnect()

    async def __aenter__(self) -> "StakeSign":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.disconnect()

    @classmethod
    def from_settings(cls, settings: Settings, provider: str = "blockfrost") -> "StakeSign":
        """
        Build a client from loaded settings.

        Raises:
            ConfigurationError: If the chosen provider's key is missing
        """
        network = settings.network_context()
        if provider == "blockfrost":
            provider_instance: BaseProvider = BlockfrostProvider(
                network,
                settings.require_blockfrost_api_key(),
                timeout=settings.request_timeout,
            )
        elif provider == "staking-api":
            provider_instance = StakingAPIProvider(
                network,
                settings.require_api_key(),
                endpoint=settings.api_base_url,
                timeout=settings.request_timeout,
            )
        else:
            raise ValueError(f"Unknown provider type: {provider}")

        return cls(provider_instance, network, confirmation_delay=settings.confirmation_delay)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<StakeSign "
            f"network={self._network} "
            f"provider={self._provider.__class__.__name__} "
            f"connected={self._provider.is_connected}>"
        )
