"""Staking API provider for stakesign."""

import logging
from typing import Any, Optional, Union

from ..constants import DEFAULT_TIMEOUT, STAKING_API_ENDPOINT
from ..exceptions import ProviderError, StatusCheckFailed
from ..network import NetworkContext
from ..providers.http import HTTPProvider
from ..types.common import Lovelace, TxId
from ..types.transaction import TransactionStatus
from ..utils.encoding import bytes_to_hex
from ..utils.validation import validate_tx_hash

__all__ = ["StakingAPIProvider"]

logger = logging.getLogger(__name__)


def _unwrap(payload: Any) -> Any:
    """Strip the ``{"data": ...}`` envelope the API wraps responses in."""
    if isinstance(payload, dict) and set(payload) == {"data"}:
        return payload["data"]
    if isinstance(payload, dict) and "data" in payload and isinstance(payload["data"], dict):
        return payload["data"]
    return payload


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


class StakingAPIProvider(HTTPProvider):
    """
    Staking API client.

    Accepts signed transactions as JSON ``{"signedTx": hex}`` and also
    serves the network configuration used to pick address prefixes.
    """

    auth_header = "api-key"

    def __init__(
        self,
        network: Union[NetworkContext, str],
        api_key: str,
        endpoint: str = STAKING_API_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        **kwargs: Any
    ) -> None:
        super().__init__(
            network,
            endpoint,
            timeout=timeout,
            api_key=api_key,
            **kwargs
        )

    async def submit_transaction(self, signed_tx: bytes) -> TxId:
        result = _unwrap(await self._submit(
            "/cardano/transaction/submit",
            {"signedTx": bytes_to_hex(bytes(signed_tx))},
            "application/json",
        ))

        if isinstance(result, dict):
            result = result.get("txHash") or result.get("txId")
        tx_id = self._normalize_tx_id(result)
        self._logger.info(f"Submitted transaction {tx_id}")
        return tx_id

    async def get_transaction_status(self, tx_id: str) -> TransactionStatus:
        tx_id = validate_tx_hash(tx_id)
        data = await self._fetch_status(f"/cardano/transaction/{tx_id}/status", tx_id)

        if data is None:
            return TransactionStatus(tx_id=tx_id, confirmed=False)
        data = _unwrap(data)
        if not isinstance(data, dict):
            raise StatusCheckFailed(tx_id, f"unexpected response: {data!r}")

        if not data.get("block"):
            return TransactionStatus(tx_id=tx_id, confirmed=False)

        block = data["block"]
        try:
            fees = _optional_int(data.get("fees"))
            return TransactionStatus(
                tx_id=tx_id,
                confirmed=True,
                block=str(block),
                block_height=block if isinstance(block, int) else _optional_int(data.get("blockHeight")),
                block_time=_optional_int(data.get("blockTime")),
                slot=_optional_int(data.get("slot")),
                fees=Lovelace(fees) if fees is not None else None,
            )
        except (TypeError, ValueError) as e:
            raise StatusCheckFailed(tx_id, f"malformed status fields: {e}") from e

    async def get_network_config(self) -> NetworkContext:
        """
        Ask the API which network it serves.

        Raises:
            ProviderError: If the response does not name a known network
        """
        data = _unwrap(await self.request("/public/network-config"))
        name = data.get("network") if isinstance(data, dict) else data
        if not isinstance(name, str):
            raise ProviderError(f"Network config response has no network name: {data!r}")

        network = NetworkContext.from_name(name)
        self._logger.info(f"API serves {network}")
        return network

    async def health(self) -> bool:
        """Check that the API answers ``/health``."""
        try:
            await self.request("/health")
        except ProviderError as e:
            self._logger.warning(f"Health check failed: {e}")
            return False
        return True
