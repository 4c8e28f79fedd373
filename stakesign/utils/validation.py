"""Validation utilities for stakesign."""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..constants import (
    ADDRESS_HRP,
    LOVELACE_PER_ADA,
    MAX_SOFT_INDEX,
    STAKE_HRP,
)
from ..exceptions import InvalidDerivationIndex, ValidationError
from ..types.common import ADA, Amount, Lovelace, TxId
from ..utils.encoding import decode_bech32

__all__ = [
    "validate_address_index",
    "is_valid_tx_hash",
    "validate_tx_hash",
    "is_valid_stake_address",
    "is_valid_payment_address",
    "to_lovelace",
    "to_ada",
    "mask_secret",
]

TX_HASH_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")


def validate_address_index(index: Any) -> int:
    """
    Validate a soft derivation index.

    Args:
        index: Address index

    Returns:
        The index as int

    Raises:
        InvalidDerivationIndex: If index is not an int in [0, 2^31 - 1]
    """
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidDerivationIndex(index)
    if index < 0 or index > MAX_SOFT_INDEX:
        raise InvalidDerivationIndex(index)
    return index


def is_valid_tx_hash(tx_hash: str) -> bool:
    """Check if transaction hash format is valid."""
    return bool(TX_HASH_PATTERN.match(tx_hash))


def validate_tx_hash(tx_hash: str) -> TxId:
    """
    Validate transaction hash and return normalized form.

    Raises:
        ValidationError: If hash is not 64 hex characters
    """
    if not is_valid_tx_hash(tx_hash):
        raise ValidationError(f"Invalid transaction hash: {tx_hash!r}")
    return TxId(tx_hash.lower())


def _header_matches(address: str, hrps: dict[int, str], types: range) -> bool:
    try:
        hrp, payload = decode_bech32(address)
    except ValidationError:
        return False
    if not payload:
        return False
    header_type, network_id = payload[0] >> 4, payload[0] & 0x0F
    return header_type in types and hrps.get(network_id) == hrp


def is_valid_stake_address(address: str) -> bool:
    """Check that ``address`` is a well-formed bech32 reward address."""
    return _header_matches(address, STAKE_HRP, range(14, 16))


def is_valid_payment_address(address: str) -> bool:
    """Check that ``address`` is a well-formed bech32 Shelley payment address."""
    return _header_matches(address, ADDRESS_HRP, range(0, 8))


def to_lovelace(amount: Amount) -> Lovelace:
    """
    Convert amount to lovelace.

    Ints are taken as lovelace already; Decimals are taken as ADA.

    Raises:
        ValidationError: If amount is negative or has sub-lovelace precision
    """
    if isinstance(amount, bool):
        raise ValidationError(f"Invalid amount: {amount!r}")
    if isinstance(amount, int):
        value = amount
    elif isinstance(amount, Decimal):
        try:
            scaled = amount * LOVELACE_PER_ADA
            if scaled != scaled.to_integral_value():
                raise ValidationError(f"Amount {amount} ADA is finer than one lovelace")
            value = int(scaled)
        except InvalidOperation as e:
            raise ValidationError(f"Invalid amount: {amount!r}") from e
    else:
        raise ValidationError(f"Unsupported amount type: {type(amount).__name__}")

    if value < 0:
        raise ValidationError(f"Amount cannot be negative: {amount}")
    return Lovelace(value)


def to_ada(lovelace: int) -> ADA:
    """Convert lovelace to ADA."""
    return ADA(Decimal(lovelace) / LOVELACE_PER_ADA)


def mask_secret(secret: Optional[str], visible: int = 4) -> str:
    """Mask a secret for display, keeping only the first ``visible`` characters."""
    if not secret:
        return "<unset>"
    return f"{secret[:visible]}..." if len(secret) > visible else "***"
