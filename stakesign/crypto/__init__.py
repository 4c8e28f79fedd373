"""Cryptographic utilities for stakesign."""

from ..crypto.bip39 import (
    generate_mnemonic,
    mnemonic_to_entropy,
    validate_mnemonic,
)
from ..crypto.hd import (
    ExtendedPrivateKey,
    ExtendedPublicKey,
    AddressKeys,
    harden,
    root_key,
    derive,
    payment_path,
    stake_path,
    format_path,
    parse_path,
    derive_address_keys,
)
from ..crypto.keys import PrivateKey, PublicKey
from ..crypto.signature import (
    SigningBackend,
    NaclSigningBackend,
    register_signing_backend,
    get_signing_backend,
)

__all__ = [
    # Mnemonics
    "generate_mnemonic",
    "mnemonic_to_entropy",
    "validate_mnemonic",

    # HD derivation
    "ExtendedPrivateKey",
    "ExtendedPublicKey",
    "AddressKeys",
    "harden",
    "root_key",
    "derive",
    "payment_path",
    "stake_path",
    "format_path",
    "parse_path",
    "derive_address_keys",

    # Keys
    "PrivateKey",
    "PublicKey",

    # Signing
    "SigningBackend",
    "NaclSigningBackend",
    "register_signing_backend",
    "get_signing_backend",
]
