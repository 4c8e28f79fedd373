"""Blockfrost relay provider for stakesign."""

import logging
from typing import Any, Optional, Union

from ..constants import DEFAULT_TIMEOUT
from ..exceptions import StatusCheckFailed
from ..network import NetworkContext
from ..providers.http import HTTPProvider
from ..types.common import Lovelace, TxId
from ..types.transaction import TransactionStatus
from ..utils.validation import validate_tx_hash

__all__ = ["BlockfrostProvider"]

logger = logging.getLogger(__name__)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


class BlockfrostProvider(HTTPProvider):
    """
    Blockfrost relay.

    Submits raw CBOR to ``/tx/submit`` and reads status from ``/txs/{hash}``.
    """

    auth_header = "project_id"

    def __init__(
        self,
        network: Union[NetworkContext, str],
        project_id: str,
        endpoint: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        **kwargs: Any
    ) -> None:
        """
        Initialize Blockfrost provider.

        Args:
            network: Network context or name
            project_id: Blockfrost project id
            endpoint: Override of the relay URL derived from ``network``
            timeout: Request timeout in seconds
            **kwargs: Passed to HTTPProvider
        """
        if isinstance(network, str):
            network = NetworkContext.from_name(network)
        super().__init__(
            network,
            endpoint or network.relay_url,
            timeout=timeout,
            api_key=project_id,
            **kwargs
        )

    async def submit_transaction(self, signed_tx: bytes) -> TxId:
        result = await self._submit("/tx/submit", bytes(signed_tx), "application/cbor")
        tx_id = self._normalize_tx_id(result)
        self._logger.info(f"Submitted transaction {tx_id}")
        return tx_id

    async def get_transaction_status(self, tx_id: str) -> TransactionStatus:
        tx_id = validate_tx_hash(tx_id)
        data = await self._fetch_status(f"/txs/{tx_id}", tx_id)

        if data is None:
            return TransactionStatus(tx_id=tx_id, confirmed=False)
        if not isinstance(data, dict):
            raise StatusCheckFailed(tx_id, f"unexpected response: {data!r}")

        if not data.get("block"):
            return TransactionStatus(tx_id=tx_id, confirmed=False)

        try:
            fees = _optional_int(data.get("fees"))
            return TransactionStatus(
                tx_id=tx_id,
                confirmed=True,
                block=str(data["block"]),
                block_height=_optional_int(data.get("block_height")),
                block_time=_optional_int(data.get("block_time")),
                slot=_optional_int(data.get("slot")),
                fees=Lovelace(fees) if fees is not None else None,
            )
        except (TypeError, ValueError) as e:
            raise StatusCheckFailed(tx_id, f"malformed status fields: {e}") from e
