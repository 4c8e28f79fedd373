"""Credentials and Shelley addresses for stakesign."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .constants import ADDRESS_HRP, KEY_HASH_SIZE, STAKE_HRP
from .crypto.keys import PublicKey
from .exceptions import ValidationError
from .network import NetworkContext
from .types.common import Bech32Address, KeyHash
from .utils.encoding import decode_bech32, encode_base58, encode_bech32

__all__ = [
    "KeyRole",
    "AddressType",
    "Credential",
    "ShelleyAddress",
    "credential_from_public_key",
    "base_address",
    "reward_address",
    "enterprise_address",
    "decode_address",
    "address_from_bytes",
]

logger = logging.getLogger(__name__)

BYRON_HEADER_TYPE = 8


class KeyRole(str, Enum):
    """What a key hash is used for."""

    PAYMENT = "payment"
    STAKING = "staking"


class AddressType(int, Enum):
    """Shelley address header types (high nibble of the first byte)."""

    BASE_KEY_KEY = 0
    BASE_SCRIPT_KEY = 1
    BASE_KEY_SCRIPT = 2
    BASE_SCRIPT_SCRIPT = 3
    POINTER_KEY = 4
    POINTER_SCRIPT = 5
    ENTERPRISE_KEY = 6
    ENTERPRISE_SCRIPT = 7
    REWARD_KEY = 14
    REWARD_SCRIPT = 15


@dataclass(frozen=True)
class Credential:
    """Blake2b-224 key hash tagged with its role. Network-independent."""
    key_hash: KeyHash
    role: KeyRole

    def __post_init__(self) -> None:
        if len(self.key_hash) != KEY_HASH_SIZE:
            raise ValidationError(
                f"Key hash must be {KEY_HASH_SIZE} bytes, got {len(self.key_hash)}"
            )

    def hex(self) -> str:
        return self.key_hash.hex()


def credential_from_public_key(
    public_key: Union[PublicKey, bytes],
    role: KeyRole = KeyRole.PAYMENT
) -> Credential:
    """Hash a raw public key into a credential."""
    return Credential(key_hash=PublicKey(public_key).hash(), role=role)


def _header(address_type: AddressType, network: NetworkContext) -> bytes:
    return bytes([(address_type << 4) | network.network_id])


def _require_role(credential: Credential, role: KeyRole) -> None:
    if credential.role != role:
        raise ValidationError(
            f"Expected a {role.value} credential, got {credential.role.value}"
        )


def base_address(
    network: NetworkContext,
    payment: Credential,
    stake: Credential
) -> Bech32Address:
    """
    Build a base address (payment key hash + stake key hash).

    Args:
        network: Target network
        payment: Payment credential
        stake: Staking credential

    Returns:
        Bech32 address with prefix ``addr`` or ``addr_test``
    """
    _require_role(payment, KeyRole.PAYMENT)
    _require_role(stake, KeyRole.STAKING)
    payload = _header(AddressType.BASE_KEY_KEY, network) + payment.key_hash + stake.key_hash
    return Bech32Address(encode_bech32(network.address_hrp, payload))


def reward_address(network: NetworkContext, stake: Credential) -> Bech32Address:
    """Build a reward (stake) address with prefix ``stake`` or ``stake_test``."""
    _require_role(stake, KeyRole.STAKING)
    payload = _header(AddressType.REWARD_KEY, network) + stake.key_hash
    return Bech32Address(encode_bech32(network.stake_hrp, payload))


def enterprise_address(network: NetworkContext, payment: Credential) -> Bech32Address:
    """Build an enterprise address, which carries no staking rights."""
    _require_role(payment, KeyRole.PAYMENT)
    payload = _header(AddressType.ENTERPRISE_KEY, network) + payment.key_hash
    return Bech32Address(encode_bech32(network.address_hrp, payload))


@dataclass(frozen=True)
class ShelleyAddress:
    """Decoded Shelley address."""
    address_type: AddressType
    network_id: int
    payment_hash: Optional[bytes]
    stake_hash: Optional[bytes]
    raw: bytes

    @property
    def is_reward(self) -> bool:
        return self.address_type in (AddressType.REWARD_KEY, AddressType.REWARD_SCRIPT)

    def to_bech32(self) -> Bech32Address:
        hrps = STAKE_HRP if self.is_reward else ADDRESS_HRP
        hrp = hrps.get(self.network_id, hrps[0])
        return Bech32Address(encode_bech32(hrp, self.raw))

    @classmethod
    def from_bytes(cls, raw: bytes) -> "ShelleyAddress":
        if not raw:
            raise ValidationError("Empty address")
        try:
            address_type = AddressType(raw[0] >> 4)
        except ValueError:
            raise ValidationError(f"Unsupported address header 0x{raw[0]:02x}") from None

        body = raw[1:]
        payment_hash = None
        stake_hash = None

        if address_type <= AddressType.BASE_SCRIPT_SCRIPT:
            if len(body) != 2 * KEY_HASH_SIZE:
                raise ValidationError(f"Base address must carry 56 bytes, got {len(body)}")
            payment_hash, stake_hash = body[:KEY_HASH_SIZE], body[KEY_HASH_SIZE:]
        elif address_type in (AddressType.POINTER_KEY, AddressType.POINTER_SCRIPT):
            if len(body) <= KEY_HASH_SIZE:
                raise ValidationError("Pointer address is too short")
            payment_hash = body[:KEY_HASH_SIZE]
        else:
            if len(body) != KEY_HASH_SIZE:
                raise ValidationError(f"Address must carry 28 bytes, got {len(body)}")
            if address_type in (AddressType.ENTERPRISE_KEY, AddressType.ENTERPRISE_SCRIPT):
                payment_hash = body
            else:
                stake_hash = body

        return cls(
            address_type=address_type,
            network_id=raw[0] & 0x0F,
            payment_hash=payment_hash,
            stake_hash=stake_hash,
            raw=bytes(raw),
        )


def decode_address(address: str) -> ShelleyAddress:
    """
    Decode a bech32 Shelley address.

    Raises:
        ValidationError: If the string is not valid bech32, or its prefix does
            not match the header's network and type
    """
    hrp, raw = decode_bech32(address)
    decoded = ShelleyAddress.from_bytes(raw)

    hrps = STAKE_HRP if decoded.is_reward else ADDRESS_HRP
    if hrps.get(decoded.network_id) != hrp:
        raise ValidationError(
            f"Address prefix {hrp!r} does not match network id {decoded.network_id}"
        )
    return decoded


def address_from_bytes(raw: bytes) -> str:
    """Render raw address bytes from a transaction output."""
    if not raw:
        return ""
    if raw[0] >> 4 == BYRON_HEADER_TYPE:
        return encode_base58(raw)
    try:
        return ShelleyAddress.from_bytes(raw).to_bech32()
    except ValidationError:
        logger.debug(f"Unrecognised address header 0x{raw[0]:02x}, rendering as hex")
        return raw.hex()
