"""Common type definitions for stakesign."""

from typing import NewType, Union
from decimal import Decimal

__all__ = [
    "HexStr",
    "Lovelace",
    "ADA",
    "TxId",
    "Bech32Address",
    "KeyHash",
    "TxHash",
    "PublicKeyBytes",
    "Signature",
    "DerivationPath",
    "Amount",
]

HexStr = NewType("HexStr", str)
"""Hexadecimal string representation."""

Lovelace = NewType("Lovelace", int)
"""Lovelace amount (smallest unit)."""

ADA = NewType("ADA", Decimal)
"""Amount in ADA."""

TxId = NewType("TxId", str)
"""Transaction ID (hex encoded body hash)."""

Bech32Address = NewType("Bech32Address", str)
"""Bech32 encoded Shelley address."""

KeyHash = NewType("KeyHash", bytes)
"""28-byte Blake2b-224 public key hash."""

TxHash = NewType("TxHash", bytes)
"""32-byte Blake2b-256 transaction body hash."""

PublicKeyBytes = NewType("PublicKeyBytes", bytes)
"""32-byte Ed25519 public key."""

Signature = NewType("Signature", bytes)
"""64-byte Ed25519 signature."""

DerivationPath = tuple[int, ...]
"""Sequence of derivation indices, hardened ones already OR-ed with 0x80000000."""

Amount = Union[Lovelace, ADA, int, Decimal]
"""Flexible amount type that can be converted."""
