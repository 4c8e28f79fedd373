"""Transaction module for stakesign."""

import asyncio
import logging
from typing import Optional, Union

from ..constants import CONFIRMATION_DELAY
from ..exceptions import StatusCheckFailed, TimeoutError, ValidationError
from ..providers.base import BaseProvider
from ..types.common import HexStr, TxId
from ..types.transaction import SubmissionReceipt, TransactionStatus
from ..utils.encoding import hex_to_bytes
from ..utils.validation import validate_tx_hash

__all__ = ["TransactionModule"]

logger = logging.getLogger(__name__)


class TransactionModule:
    """
    Transaction submission and status.

    Wraps a provider; every submission is attempted exactly once.
    """

    def __init__(
        self,
        provider: BaseProvider,
        confirmation_delay: float = CONFIRMATION_DELAY
    ) -> None:
        """
        Initialize transaction module.

        Args:
            provider: Provider instance
            confirmation_delay: Default wait before the first status check
        """
        self._provider = provider
        self.confirmation_delay = confirmation_delay
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def submit(self, signed_tx: Union[bytes, HexStr, str]) -> TxId:
        """
        Submit a signed transaction.

        Args:
            signed_tx: Signed envelope, raw or hex

        Returns:
            Transaction id

        Raises:
            SubmissionError: If the relay rejects the transaction
            TimeoutError: If the relay does not answer in time
        """
        if isinstance(signed_tx, str):
            signed_tx = hex_to_bytes(signed_tx)
        if not signed_tx:
            raise ValidationError("Signed transaction is empty")

        self._logger.info(f"Submitting {len(signed_tx)} byte transaction")
        return await self._provider.submit_transaction(signed_tx)

    async def get_status(self, tx_id: str) -> TransactionStatus:
        """
        Get transaction status.

        Not found is reported as unconfirmed.

        Raises:
            StatusCheckFailed: If the status could not be determined
        """
        return await self._provider.get_transaction_status(validate_tx_hash(tx_id))

    async def wait_for_confirmation(
        self,
        tx_id: str,
        delay: Optional[float] = None,
        attempts: int = 1,
        backoff: float = 2.0
    ) -> SubmissionReceipt:
        """
        Poll until the transaction is confirmed or attempts run out.

        Status check failures and timeouts are logged and recorded on the
        receipt rather than raised: the transaction is already submitted at
        this point.

        Args:
            tx_id: Transaction id
            delay: Seconds before the first check (default: module setting)
            attempts: Number of status checks
            backoff: Multiplier applied to the delay after each check

        Returns:
            SubmissionReceipt with the last status seen
        """
        tx_id = validate_tx_hash(tx_id)
        if attempts < 1:
            raise ValidationError("attempts must be at least 1")

        wait = self.confirmation_delay if delay is None else delay
        status: Optional[TransactionStatus] = None
        error: Optional[str] = None

        for attempt in range(attempts):
            if wait > 0:
                await asyncio.sleep(wait)
            try:
                status = await self.get_status(tx_id)
                error = None
            except (StatusCheckFailed, TimeoutError) as e:
                self._logger.warning(f"Could not check status of {tx_id}: {e}")
                error = str(e)
            else:
                if status.confirmed:
                    self._logger.info(f"Transaction {tx_id} confirmed in block {status.block}")
                    break
                self._logger.info(
                    f"Transaction {tx_id} not yet confirmed (check {attempt + 1}/{attempts})"
                )
            wait *= backoff

        return SubmissionReceipt(tx_id=tx_id, status=status, status_error=error)
