"""Base provider interface for stakesign."""

from abc import ABC, abstractmethod
from typing import Union
import logging

from ..network import NetworkContext
from ..types.common import TxId
from ..types.transaction import TransactionStatus

__all__ = ["BaseProvider"]

logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """
    Abstract base provider for Cardano relays.

    A provider can submit signed transactions and report their chain status.
    """

    def __init__(self, network: Union[NetworkContext, str]) -> None:
        """
        Initialize provider with network.

        Args:
            network: Network context or network name
        """
        if isinstance(network, str):
            network = NetworkContext.from_name(network)
        self.network = network
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    async def submit_transaction(self, signed_tx: bytes) -> TxId:
        """
        Submit a signed transaction once.

        Args:
            signed_tx: Serialized signed envelope

        Returns:
            Transaction id accepted by the relay

        Raises:
            SubmissionError: If the relay rejects the transaction
            TimeoutError: If the relay does not answer in time
        """
        raise NotImplementedError

    @abstractmethod
    async def get_transaction_status(self, tx_id: str) -> TransactionStatus:
        """
        Look up a transaction.

        A transaction the relay has not seen is reported as unconfirmed.

        Raises:
            StatusCheckFailed: If the status could not be determined
            TimeoutError: If the relay does not answer in time
        """
        raise NotImplementedError

    @abstractmethod
    async def connect(self) -> None:
        """
        Connect to the provider.

        Raises:
            ProviderError: If connection fails
        """
        raise NotImplementedError

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Disconnect from the provider.
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """
        Check if provider is connected.

        Returns:
            True if connected, False otherwise
        """
        raise NotImplementedError

    async def __aenter__(self) -> "BaseProvider":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.disconnect()

    def __repr__(self) -> str:
        """String representation of provider."""
        return f"{self.__class__.__name__}(network={self.network})"
