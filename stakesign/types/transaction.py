"""Transaction-related type definitions for stakesign."""

from dataclasses import dataclass, field, asdict
from enum import IntEnum
from typing import Any, Optional, Union

import cbor2

from ..types.common import HexStr, TxId, Lovelace, KeyHash

__all__ = [
    "CertificateKind",
    "WITNESSED_CERTIFICATE_KINDS",
    "TransactionInput",
    "TransactionOutput",
    "Certificate",
    "Withdrawal",
    "VKeyWitness",
    "WitnessSet",
    "TransactionBody",
    "TransactionEnvelope",
    "TransactionSummary",
    "TransactionStatus",
    "SubmissionReceipt",
]

SET_TAG = 258


class CertificateKind(IntEnum):
    """Certificate tags as they appear on the wire (Conway numbering)."""
    STAKE_REGISTRATION = 0
    STAKE_DEREGISTRATION = 1
    STAKE_DELEGATION = 2
    POOL_REGISTRATION = 3
    POOL_RETIREMENT = 4
    GENESIS_KEY_DELEGATION = 5
    MOVE_INSTANTANEOUS_REWARDS = 6
    REG = 7
    UNREG = 8
    VOTE_DELEGATION = 9
    STAKE_VOTE_DELEGATION = 10
    STAKE_REGISTRATION_DELEGATION = 11
    VOTE_REGISTRATION_DELEGATION = 12
    STAKE_VOTE_REGISTRATION_DELEGATION = 13
    COMMITTEE_HOT_AUTH = 14
    COMMITTEE_COLD_RESIGN = 15
    DREP_REGISTRATION = 16
    DREP_DEREGISTRATION = 17
    DREP_UPDATE = 18


# Certificates whose second element is a stake credential
_STAKE_CREDENTIAL_KINDS = frozenset({0, 1, 2, 7, 8, 9, 10, 11, 12, 13})

# Legacy registration (kind 0) is the only stake certificate needing no witness
WITNESSED_CERTIFICATE_KINDS = _STAKE_CREDENTIAL_KINDS - {0}

_POOL_KINDS = frozenset({2, 10, 11, 13})


def _items(value: Any) -> list:
    """Flatten a CBOR array or tag-258 set into a list."""
    if isinstance(value, cbor2.CBORTag) and value.tag == SET_TAG:
        value = value.value
    if value is None:
        return []
    return list(value)


def _bytes(value: Any, what: str) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError(f"{what} must be a byte string, got {type(value).__name__}")
    return bytes(value)


def _uint(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise TypeError(f"{what} must be an unsigned integer, got {value!r}")
    return value


def _witness_key(witness: "VKeyWitness") -> tuple[bytes, bytes]:
    return witness.vkey, witness.signature


@dataclass(frozen=True)
class TransactionInput:
    """Reference to a previous transaction output."""
    tx_id: TxId
    index: int

    def __str__(self) -> str:
        return f"{self.tx_id}#{self.index}"


@dataclass(frozen=True)
class TransactionOutput:
    """Transaction output (address kept as raw header + payload bytes)."""
    address: bytes
    coin: Lovelace
    has_multi_asset: bool = False


@dataclass(frozen=True)
class Certificate:
    """Certificate with the stake credential it touches, when it has one."""
    kind: Union[CertificateKind, int]
    stake_credential: Optional[bytes] = None
    credential_is_script: bool = False
    pool_key_hash: Optional[bytes] = None

    @property
    def name(self) -> str:
        if isinstance(self.kind, CertificateKind):
            return self.kind.name.lower()
        return f"unknown_{self.kind}"

    @property
    def requires_stake_witness(self) -> bool:
        return (
            int(self.kind) in WITNESSED_CERTIFICATE_KINDS
            and self.stake_credential is not None
            and not self.credential_is_script
        )

    @classmethod
    def from_cbor(cls, value: Any) -> "Certificate":
        items = _items(value)
        if not items:
            raise ValueError("certificate is empty")
        tag = _uint(items[0], "certificate kind")
        try:
            kind: Union[CertificateKind, int] = CertificateKind(tag)
        except ValueError:
            kind = tag

        credential = None
        is_script = False
        pool = None
        if tag in _STAKE_CREDENTIAL_KINDS and len(items) > 1:
            cred_kind, cred_hash = items[1]
            credential = _bytes(cred_hash, "stake credential")
            is_script = _uint(cred_kind, "credential kind") == 1
        if tag in _POOL_KINDS and len(items) > 2:
            pool = _bytes(items[2], "pool key hash")

        return cls(
            kind=kind,
            stake_credential=credential,
            credential_is_script=is_script,
            pool_key_hash=pool,
        )


@dataclass(frozen=True)
class Withdrawal:
    """Reward withdrawal from a reward address."""
    address: bytes
    amount: Lovelace

    @property
    def stake_credential(self) -> bytes:
        return self.address[1:29]

    @property
    def credential_is_script(self) -> bool:
        return bool(self.address[0] & 0x10)


@dataclass(frozen=True)
class VKeyWitness:
    """Verification key witness: public key plus signature over the body hash."""
    vkey: bytes
    signature: bytes

    def to_cbor(self) -> list:
        return [self.vkey, self.signature]

    @classmethod
    def from_cbor(cls, value: Any) -> "VKeyWitness":
        vkey, signature = value
        return cls(vkey=_bytes(vkey, "vkey"), signature=_bytes(signature, "signature"))


@dataclass(frozen=True)
class WitnessSet:
    """Transaction witness set.

    Only verification key witnesses (map key 0) are interpreted. Every other
    entry is carried through unchanged in ``other``.
    """
    vkey_witnesses: tuple[VKeyWitness, ...] = ()
    other: dict = field(default_factory=dict)
    use_set_tag: bool = field(default=False, compare=False)

    @property
    def is_empty(self) -> bool:
        return not self.vkey_witnesses and not self.other

    @property
    def has_duplicates(self) -> bool:
        return len(set(self.vkey_witnesses)) != len(self.vkey_witnesses)

    @classmethod
    def from_cbor(cls, value: dict) -> "WitnessSet":
        raw_vkeys = value.get(0)
        tagged = isinstance(raw_vkeys, (set, frozenset)) or (
            isinstance(raw_vkeys, cbor2.CBORTag) and raw_vkeys.tag == SET_TAG
        )
        witnesses = [VKeyWitness.from_cbor(w) for w in _items(raw_vkeys)]
        if isinstance(raw_vkeys, (set, frozenset)):
            # Decoded sets have no order of their own
            witnesses.sort(key=_witness_key)
        return cls(
            vkey_witnesses=tuple(witnesses),
            other={k: v for k, v in value.items() if k != 0},
            use_set_tag=tagged,
        )

    def to_cbor(self) -> dict:
        result: dict = {}
        if self.vkey_witnesses:
            vkeys = [w.to_cbor() for w in self.vkey_witnesses]
            # A set cannot carry repeated witnesses, so those go out as a plain array
            tagged = self.use_set_tag and not self.has_duplicates
            result[0] = cbor2.CBORTag(SET_TAG, vkeys) if tagged else vkeys
        result.update(self.other)
        return result

    def with_witnesses(self, witnesses: list[VKeyWitness]) -> "WitnessSet":
        """
        Return a copy with ``witnesses`` appended after the existing ones.

        Set-tagged witnesses are kept sorted, the order they decode in.
        """
        combined = self.vkey_witnesses + tuple(witnesses)
        if self.use_set_tag and len(set(combined)) == len(combined):
            combined = tuple(sorted(combined, key=_witness_key))
        return WitnessSet(
            vkey_witnesses=combined,
            other=dict(self.other),
            use_set_tag=self.use_set_tag,
        )


@dataclass(frozen=True)
class TransactionBody:
    """Transaction body.

    ``raw`` holds the exact bytes received; they are what gets hashed and
    what gets written back out. ``fields`` is the decoded map, for reading.
    """
    raw: bytes
    fields: dict = field(compare=False, repr=False)

    @classmethod
    def from_fields(cls, fields: dict) -> "TransactionBody":
        return cls(raw=cbor2.dumps(fields), fields=fields)

    @classmethod
    def from_bytes(cls, raw: bytes) -> "TransactionBody":
        return cls(raw=bytes(raw), fields=cbor2.loads(raw))

    def to_cbor(self) -> bytes:
        return self.raw

    @property
    def inputs(self) -> list[TransactionInput]:
        value = self.fields.get(0)
        inputs = [
            TransactionInput(
                tx_id=TxId(_bytes(tx_id, "input transaction id").hex()),
                index=_uint(index, "input index"),
            )
            for tx_id, index in _items(value)
        ]
        if isinstance(value, (set, frozenset, cbor2.CBORTag)):
            inputs.sort(key=lambda i: (i.tx_id, i.index))
        return inputs

    @property
    def outputs(self) -> list[TransactionOutput]:
        outputs = []
        for out in _items(self.fields.get(1)):
            # Legacy outputs are arrays, post-Alonzo outputs are maps; both index 0 and 1
            address, amount = out[0], out[1]
            if isinstance(amount, int):
                coin, multi_asset = amount, False
            else:
                coin, multi_asset = amount[0], bool(amount[1])
            outputs.append(TransactionOutput(
                address=_bytes(address, "output address"),
                coin=Lovelace(_uint(coin, "output coin")),
                has_multi_asset=multi_asset,
            ))
        return outputs

    @property
    def fee(self) -> Lovelace:
        return Lovelace(_uint(self.fields.get(2, 0), "fee"))

    @property
    def ttl(self) -> Optional[int]:
        value = self.fields.get(3)
        return None if value is None else _uint(value, "ttl")

    @property
    def validity_start(self) -> Optional[int]:
        value = self.fields.get(8)
        return None if value is None else _uint(value, "validity start")

    @property
    def certificates(self) -> list[Certificate]:
        return [Certificate.from_cbor(c) for c in _items(self.fields.get(4))]

    @property
    def withdrawals(self) -> list[Withdrawal]:
        value = self.fields.get(5) or {}
        if not isinstance(value, dict):
            raise TypeError(f"withdrawals must be a map, got {type(value).__name__}")
        withdrawals = []
        for addr, amount in value.items():
            addr = _bytes(addr, "withdrawal address")
            if len(addr) != 29:
                raise ValueError(f"withdrawal address must be 29 bytes, got {len(addr)}")
            withdrawals.append(Withdrawal(address=addr, amount=Lovelace(_uint(amount, "withdrawal amount"))))
        return withdrawals

    @property
    def auxiliary_data_hash(self) -> Optional[bytes]:
        value = self.fields.get(7)
        return _bytes(value, "auxiliary data hash") if value is not None else None

    @property
    def required_signers(self) -> list[KeyHash]:
        return [KeyHash(_bytes(h, "required signer")) for h in _items(self.fields.get(14))]

    def check(self) -> None:
        """
        Interpret every known field once.

        Raises:
            ValueError: Naming the first field whose shape is wrong
        """
        for name in _BODY_FIELDS:
            try:
                getattr(self, name)
            except (TypeError, ValueError, KeyError, IndexError, AttributeError) as e:
                raise ValueError(f"{name}: {e}") from e


# Body properties read by signing and inspection
_BODY_FIELDS = (
    "inputs",
    "outputs",
    "fee",
    "ttl",
    "validity_start",
    "certificates",
    "withdrawals",
    "auxiliary_data_hash",
    "required_signers",
)


@dataclass(frozen=True)
class TransactionEnvelope:
    """Top-level transaction: body, witness set, validity flag, auxiliary data.

    ``is_valid`` is None for the three element (pre-Alonzo) layout.
    ``auxiliary_data`` holds the raw CBOR of the auxiliary data, if any.
    """
    body: TransactionBody
    witness_set: WitnessSet = field(default_factory=WitnessSet)
    is_valid: Optional[bool] = True
    auxiliary_data: Optional[bytes] = None


@dataclass(frozen=True)
class TransactionSummary:
    """Diagnostic view of a transaction. Never used for control decisions."""
    tx_hash: HexStr
    fee: Lovelace
    ttl: Optional[int]
    validity_start: Optional[int]
    inputs: list[str]
    outputs: list[dict[str, Any]]
    certificates: list[str]
    delegated_pools: list[HexStr]
    withdrawals: list[dict[str, Any]]
    required_signers: list[HexStr]
    has_auxiliary_data: bool
    has_witness_set: bool
    vkey_witness_count: int
    size: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TransactionStatus:
    """Chain status of a submitted transaction."""
    tx_id: TxId
    confirmed: bool
    block: Optional[str] = None
    block_height: Optional[int] = None
    block_time: Optional[int] = None
    slot: Optional[int] = None
    fees: Optional[Lovelace] = None


@dataclass(frozen=True)
class SubmissionReceipt:
    """Outcome of a submission.

    ``status`` is None when no confirmation check ran. ``status_error`` is
    set when the transaction was submitted but its status could not be read.
    """
    tx_id: TxId
    status: Optional[TransactionStatus] = None
    status_error: Optional[str] = None

    @property
    def confirmed(self) -> bool:
        return self.status is not None and self.status.confirmed

    @property
    def status_known(self) -> bool:
        return self.status_error is None
