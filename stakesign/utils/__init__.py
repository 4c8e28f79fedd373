"""Utility helpers for stakesign."""

from ..utils.encoding import (
    hex_to_bytes,
    bytes_to_hex,
    blake2b_224,
    blake2b_256,
    encode_bech32,
    decode_bech32,
)
from ..utils.validation import (
    validate_address_index,
    validate_tx_hash,
    is_valid_stake_address,
    is_valid_payment_address,
    to_lovelace,
    to_ada,
    mask_secret,
)

__all__ = [
    "hex_to_bytes",
    "bytes_to_hex",
    "blake2b_224",
    "blake2b_256",
    "encode_bech32",
    "decode_bech32",
    "validate_address_index",
    "validate_tx_hash",
    "is_valid_stake_address",
    "is_valid_payment_address",
    "to_lovelace",
    "to_ada",
    "mask_secret",
]
