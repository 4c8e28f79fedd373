"""Hierarchical Deterministic key derivation (BIP32-Ed25519, Icarus root) for stakesign."""

import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from typing import Sequence, Union

from ..constants import (
    ACCOUNT_INDEX,
    COIN_TYPE,
    HARDENED_OFFSET,
    PURPOSE,
    ROLE_EXTERNAL,
    ROLE_STAKING,
    STAKE_KEY_INDEX,
)
from ..crypto.bip39 import mnemonic_to_entropy
from ..crypto.keys import PrivateKey, PublicKey
from ..crypto.signature import point_add, scalarmult_base
from ..exceptions import CryptoError, InvalidDerivationIndex, ValidationError
from ..types.common import DerivationPath
from ..utils.validation import validate_address_index

__all__ = [
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
]

logger = logging.getLogger(__name__)

PBKDF2_ROUNDS = 4096
_MOD_256 = 1 << 256


def harden(index: int) -> int:
    """Mark a derivation index as hardened."""
    return index | HARDENED_OFFSET


def _check_index(index: int) -> None:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= 0xFFFFFFFF:
        raise InvalidDerivationIndex(index, f"Derivation index out of range: {index!r}")


def _hmac512(key: bytes, data: bytes) -> bytes:
    return hmac.new(key, data, hashlib.sha512).digest()


def _add_left(z: bytes, parent: bytes) -> bytes:
    """kL' = 8 * zL[0:28] + kL (little endian, mod 2^256)."""
    value = int.from_bytes(z[:28], "little") * 8 + int.from_bytes(parent, "little")
    return (value % _MOD_256).to_bytes(32, "little")


def _add_right(z: bytes, parent: bytes) -> bytes:
    """kR' = zR + kR (little endian, mod 2^256)."""
    value = int.from_bytes(z[32:], "little") + int.from_bytes(parent, "little")
    return (value % _MOD_256).to_bytes(32, "little")


class ExtendedPublicKey:
    """Public HD node: point plus chain code. Supports soft derivation only."""

    def __init__(self, public_key: PublicKey, chain_code: bytes) -> None:
        if len(chain_code) != 32:
            raise CryptoError(f"Chain code must be 32 bytes, got {len(chain_code)}")
        self.public_key = public_key
        self.chain_code = bytes(chain_code)

    def derive(self, index: int) -> "ExtendedPublicKey":
        """
        Derive a soft child.

        Raises:
            CryptoError: If ``index`` is hardened
        """
        _check_index(index)
        if index >= HARDENED_OFFSET:
            raise CryptoError("Cannot do hardened derivation without private key")

        point = self.public_key.to_bytes()
        data = point + index.to_bytes(4, "little")
        z = _hmac512(self.chain_code, b"\x02" + data)
        i = _hmac512(self.chain_code, b"\x03" + data)

        offset = (int.from_bytes(z[:28], "little") * 8).to_bytes(32, "little")
        child = point_add(point, scalarmult_base(offset))
        return ExtendedPublicKey(PublicKey(child), i[32:])

    def to_bytes(self) -> bytes:
        return self.public_key.to_bytes() + self.chain_code

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ExtendedPublicKey):
            return self.to_bytes() == other.to_bytes()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"ExtendedPublicKey({self.public_key.hex()})"


class ExtendedPrivateKey:
    """
    Private HD node (BIP32-Ed25519).

    Holds 64 bytes of key material (kL || kR) and a 32-byte chain code.
    Derivation is a pure function of (key, index).
    """

    def __init__(self, key_left: bytes, key_right: bytes, chain_code: bytes) -> None:
        if len(key_left) != 32 or len(key_right) != 32 or len(chain_code) != 32:
            raise CryptoError("Extended private key parts must be 32 bytes each")
        self._kl = bytes(key_left)
        self._kr = bytes(key_right)
        self._chain_code = bytes(chain_code)
        self._public_key: PublicKey | None = None

    @classmethod
    def from_bytes(cls, data: bytes) -> "ExtendedPrivateKey":
        """Load from 96 bytes: kL || kR || chain code."""
        if len(data) != 96:
            raise CryptoError(f"Extended private key must be 96 bytes, got {len(data)}")
        return cls(data[:32], data[32:64], data[64:])

    @classmethod
    def from_entropy(cls, entropy: bytes, passphrase: str = "") -> "ExtendedPrivateKey":
        """
        Create the root node from BIP39 entropy (Icarus scheme).

        Args:
            entropy: Raw mnemonic entropy
            passphrase: Optional BIP39 passphrase

        Returns:
            Root extended private key
        """
        if len(entropy) not in (16, 20, 24, 28, 32):
            raise ValidationError(f"Entropy must be 16 to 32 bytes, got {len(entropy)}")

        data = bytearray(hashlib.pbkdf2_hmac(
            "sha512",
            passphrase.encode("utf-8"),
            entropy,
            PBKDF2_ROUNDS,
            dklen=96,
        ))
        data[0] &= 0b1111_1000
        data[31] &= 0b0001_1111
        data[31] |= 0b0100_0000
        return cls.from_bytes(bytes(data))

    @property
    def chain_code(self) -> bytes:
        return self._chain_code

    def derive(self, index: int) -> "ExtendedPrivateKey":
        """Derive child node; hardened when ``index`` >= 2^31."""
        _check_index(index)
        index_bytes = index.to_bytes(4, "little")

        if index >= HARDENED_OFFSET:
            data = self._kl + self._kr + index_bytes
            z = _hmac512(self._chain_code, b"\x00" + data)
            i = _hmac512(self._chain_code, b"\x01" + data)
        else:
            data = self.public_key().to_bytes() + index_bytes
            z = _hmac512(self._chain_code, b"\x02" + data)
            i = _hmac512(self._chain_code, b"\x03" + data)

        return ExtendedPrivateKey(
            _add_left(z, self._kl),
            _add_right(z, self._kr),
            i[32:],
        )

    def derive_path(self, path: Union[str, Sequence[int]]) -> "ExtendedPrivateKey":
        """Derive along a path given as indices or a string like m/1852'/1815'/0'/0/0."""
        if isinstance(path, str):
            path = parse_path(path)

        node = self
        for index in path:
            node = node.derive(index)
        return node

    def public_key(self) -> PublicKey:
        if self._public_key is None:
            self._public_key = PublicKey(scalarmult_base(self._kl))
        return self._public_key

    def to_public(self) -> ExtendedPublicKey:
        return ExtendedPublicKey(self.public_key(), self._chain_code)

    def to_private_key(self) -> PrivateKey:
        """Strip the chain code, keeping the signing key."""
        return PrivateKey(self._kl + self._kr)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ExtendedPrivateKey):
            return hmac.compare_digest(
                self._kl + self._kr + self._chain_code,
                other._kl + other._kr + other._chain_code,
            )
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.public_key())

    def __repr__(self) -> str:
        return f"ExtendedPrivateKey(public={self.public_key().hex()})"


def root_key(entropy: bytes, passphrase: str = "") -> ExtendedPrivateKey:
    """Root extended private key for ``entropy``."""
    return ExtendedPrivateKey.from_entropy(entropy, passphrase)


def derive(key: ExtendedPrivateKey, indices: Sequence[int]) -> ExtendedPrivateKey:
    """Apply each path segment of ``indices`` in order."""
    return key.derive_path(indices)


def payment_path(address_index: int) -> DerivationPath:
    """m/1852'/1815'/0'/0/address_index"""
    index = validate_address_index(address_index)
    return (harden(PURPOSE), harden(COIN_TYPE), harden(ACCOUNT_INDEX), ROLE_EXTERNAL, index)


def stake_path() -> DerivationPath:
    """m/1852'/1815'/0'/2/0, shared by every payment address."""
    return (harden(PURPOSE), harden(COIN_TYPE), harden(ACCOUNT_INDEX), ROLE_STAKING, STAKE_KEY_INDEX)


def format_path(path: Sequence[int]) -> str:
    parts = ["m"]
    for index in path:
        if index >= HARDENED_OFFSET:
            parts.append(f"{index - HARDENED_OFFSET}'")
        else:
            parts.append(str(index))
    return "/".join(parts)


def parse_path(path: str) -> DerivationPath:
    """Parse a path like m/1852'/1815'/0'/0/0 (``h`` also marks hardened)."""
    if path in ("m", "M", ""):
        return ()
    if path.startswith(("m/", "M/")):
        path = path[2:]

    indices = []
    for component in path.split("/"):
        if not component:
            continue
        hardened = component.endswith(("'", "h"))
        if hardened:
            component = component[:-1]
        if not component.isdigit():
            raise ValidationError(f"Invalid path component: {component!r}")
        index = int(component)
        if index > 0x7FFFFFFF:
            raise InvalidDerivationIndex(index)
        indices.append(harden(index) if hardened else index)
    return tuple(indices)


@dataclass(frozen=True)
class AddressKeys:
    """Payment and stake key pairs for one address index."""
    address_index: int
    payment_key: PrivateKey = field(repr=False)
    payment_public_key: PublicKey
    stake_key: PrivateKey = field(repr=False)
    stake_public_key: PublicKey

    @property
    def payment_path(self) -> DerivationPath:
        return payment_path(self.address_index)

    @property
    def stake_path(self) -> DerivationPath:
        return stake_path()


def derive_address_keys(
    mnemonic: str,
    address_index: int = 0,
    passphrase: str = ""
) -> AddressKeys:
    """
    Derive the payment and stake key pairs for an address index.

    Args:
        mnemonic: BIP39 recovery phrase
        address_index: Payment address index, 0 to 2^31 - 1
        passphrase: Optional BIP39 passphrase

    Returns:
        AddressKeys with raw signing keys and their public keys

    Raises:
        InvalidMnemonic: If the phrase is invalid
        InvalidDerivationIndex: If the index is out of range
    """
    pay_path = payment_path(address_index)
    root = root_key(mnemonic_to_entropy(mnemonic), passphrase)

    payment = derive(root, pay_path).to_private_key()
    stake = derive(root, stake_path()).to_private_key()

    logger.debug(
        f"Derived keys for {format_path(pay_path)} and {format_path(stake_path())}"
    )

    return AddressKeys(
        address_index=address_index,
        payment_key=payment,
        payment_public_key=payment.public_key(),
        stake_key=stake,
        stake_public_key=stake.public_key(),
    )
