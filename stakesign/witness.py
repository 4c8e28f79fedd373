"""Witness engine for stakesign.

Hashes a transaction body, signs the hash with each required key and
reassembles the envelope around the untouched body bytes.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Union

from .codec import decode, encode_bytes
from .crypto.hd import AddressKeys
from .crypto.keys import PrivateKey, PublicKey
from .crypto.signature import SigningBackend, get_signing_backend
from .exceptions import HashMismatch, SigningError
from .types.common import HexStr, KeyHash, TxHash, TxId
from .types.transaction import (
    SubmissionReceipt,
    TransactionBody,
    TransactionEnvelope,
    VKeyWitness,
)
from .utils.encoding import blake2b_256, bytes_to_hex, hex_to_bytes

if TYPE_CHECKING:
    from .modules.transaction import TransactionModule

__all__ = [
    "hash_body",
    "witness",
    "witness_all",
    "reassemble",
    "sign_envelope",
    "required_key_hashes",
    "select_signing_keys",
    "SigningState",
    "SigningSession",
]

logger = logging.getLogger(__name__)


def hash_body(body: Union[TransactionBody, bytes]) -> TxHash:
    """Blake2b-256 of the serialized body: the signing payload and transaction id."""
    raw = body.to_cbor() if isinstance(body, TransactionBody) else bytes(body)
    return TxHash(blake2b_256(raw))


def _as_hash(tx_hash: Union[bytes, str]) -> bytes:
    if isinstance(tx_hash, str):
        tx_hash = hex_to_bytes(tx_hash)
    if len(tx_hash) != 32:
        raise SigningError(f"Transaction hash must be 32 bytes, got {len(tx_hash)}")
    return bytes(tx_hash)


def witness(
    tx_hash: Union[bytes, str],
    private_key: PrivateKey,
    backend: Optional[SigningBackend] = None
) -> VKeyWitness:
    """Sign ``tx_hash`` with one key."""
    message = _as_hash(tx_hash)
    return VKeyWitness(
        vkey=private_key.public_key().to_bytes(),
        signature=private_key.sign(message, backend),
    )


def witness_all(
    tx_hash: Union[bytes, str],
    private_keys: Iterable[PrivateKey],
    backend: Optional[SigningBackend] = None
) -> list[VKeyWitness]:
    """
    Sign ``tx_hash`` with every key, in order.

    Duplicate keys produce duplicate witnesses; no deduplication happens here.
    """
    backend = backend or get_signing_backend()
    return [witness(tx_hash, key, backend) for key in private_keys]


def _check_witnesses(tx_hash: bytes, witnesses: Sequence[VKeyWitness]) -> None:
    for position, w in enumerate(witnesses):
        if not PublicKey(w.vkey).verify(w.signature, tx_hash):
            raise SigningError(
                f"Witness {position} for key {w.vkey.hex()} does not verify against {tx_hash.hex()}"
            )


def reassemble(
    source: Union[TransactionEnvelope, TransactionBody],
    witnesses: Sequence[VKeyWitness],
    auxiliary_data: Optional[bytes] = None
) -> TransactionEnvelope:
    """
    Wrap the original body with a witness set holding ``witnesses``.

    Witnesses already on the envelope stay first; the new ones are appended.
    The envelope's validity flag and auxiliary data are kept unless
    ``auxiliary_data`` is given.

    Args:
        source: Decoded envelope, or a bare body
        witnesses: New verification key witnesses
        auxiliary_data: Raw auxiliary data CBOR to attach

    Returns:
        Signed TransactionEnvelope

    Raises:
        SigningError: If a witness does not verify or the body bytes changed
    """
    if isinstance(source, TransactionBody):
        source = TransactionEnvelope(body=source)

    tx_hash = hash_body(source.body)
    _check_witnesses(tx_hash, witnesses)

    aux = auxiliary_data if auxiliary_data is not None else source.auxiliary_data
    if aux is not None and source.body.auxiliary_data_hash is not None:
        if blake2b_256(aux) != source.body.auxiliary_data_hash:
            logger.warning(
                f"Auxiliary data does not match the hash committed in body {tx_hash.hex()}"
            )

    signed = TransactionEnvelope(
        body=source.body,
        witness_set=source.witness_set.with_witnesses(list(witnesses)),
        is_valid=source.is_valid,
        auxiliary_data=aux,
    )

    raw = source.body.to_cbor()
    if encode_bytes(signed)[1:1 + len(raw)] != raw:
        raise SigningError("Transaction body bytes changed during reassembly")

    logger.debug(
        f"Reassembled {tx_hash.hex()} with {len(signed.witness_set.vkey_witnesses)} vkey witnesses"
    )
    return signed


def sign_envelope(
    envelope: TransactionEnvelope,
    keys: Sequence[PrivateKey],
    tx_hash: Optional[Union[bytes, str]] = None,
    backend: Optional[SigningBackend] = None
) -> TransactionEnvelope:
    """
    Hash, witness and reassemble in one step.

    Args:
        envelope: Unsigned (or partially signed) envelope
        keys: Signing keys
        tx_hash: Hash the caller expects; checked against the body
        backend: Signing backend

    Raises:
        HashMismatch: If ``tx_hash`` differs from the body hash
    """
    computed = hash_body(envelope.body)
    if tx_hash is not None and _as_hash(tx_hash) != computed:
        raise HashMismatch(computed.hex(), bytes_to_hex(_as_hash(tx_hash)))

    return reassemble(envelope, witness_all(computed, keys, backend))


def required_key_hashes(body: TransactionBody) -> set[KeyHash]:
    """
    Key hashes the body itself asks witnesses for.

    Covers stake credentials of witnessed certificates, reward withdrawals and
    the required signers field. Input ownership is not visible in the body, so
    payment keys never appear here.
    """
    hashes: set[KeyHash] = set()
    for cert in body.certificates:
        if cert.requires_stake_witness:
            hashes.add(KeyHash(cert.stake_credential))
    for withdrawal in body.withdrawals:
        if not withdrawal.credential_is_script:
            hashes.add(KeyHash(withdrawal.stake_credential))
    hashes.update(body.required_signers)
    return hashes


def select_signing_keys(body: TransactionBody, keys: AddressKeys) -> list[PrivateKey]:
    """
    Choose which of a wallet's keys must sign ``body``.

    The payment key always signs. The stake key signs too when the body
    references its credential.
    """
    selected = [keys.payment_key]
    if keys.stake_public_key.hash() in required_key_hashes(body):
        selected.append(keys.stake_key)

    logger.debug(f"Selected {len(selected)} signing keys")
    return selected


class SigningState(str, Enum):
    """Lifecycle of one signing operation."""

    BODY_RECEIVED = "body_received"
    HASHED = "hashed"
    WITNESSED = "witnessed"
    REASSEMBLED = "reassembled"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    PENDING = "pending"


_TRANSITIONS = {
    SigningState.BODY_RECEIVED: {SigningState.HASHED},
    SigningState.HASHED: {SigningState.WITNESSED},
    SigningState.WITNESSED: {SigningState.WITNESSED, SigningState.REASSEMBLED},
    SigningState.REASSEMBLED: {SigningState.SUBMITTED},
    SigningState.SUBMITTED: {SigningState.CONFIRMED, SigningState.PENDING},
    SigningState.PENDING: {SigningState.CONFIRMED, SigningState.PENDING},
    SigningState.CONFIRMED: set(),
}


class SigningSession:
    """
    One pass of the witness engine over a single transaction.

    The body hash is computed once and reused for every signer. Steps must be
    taken in order; anything else raises SigningError.
    """

    def __init__(
        self,
        envelope: TransactionEnvelope,
        backend: Optional[SigningBackend] = None
    ) -> None:
        self._envelope = envelope
        self._backend = backend or get_signing_backend()
        self._state = SigningState.BODY_RECEIVED
        self._tx_hash: Optional[TxHash] = None
        self._witnesses: list[VKeyWitness] = []
        self._signed: Optional[TransactionEnvelope] = None
        self._receipt: Optional[SubmissionReceipt] = None
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @classmethod
    def from_hex(
        cls,
        unsigned_hex: str,
        backend: Optional[SigningBackend] = None
    ) -> "SigningSession":
        """Start a session from a hex envelope (raises MalformedEnvelope)."""
        return cls(decode(unsigned_hex), backend)

    @property
    def state(self) -> SigningState:
        return self._state

    @property
    def envelope(self) -> TransactionEnvelope:
        return self._envelope

    @property
    def witnesses(self) -> list[VKeyWitness]:
        return list(self._witnesses)

    @property
    def tx_hash(self) -> TxHash:
        if self._tx_hash is None:
            raise SigningError("Transaction has not been hashed yet")
        return self._tx_hash

    @property
    def tx_id(self) -> TxId:
        return TxId(self.tx_hash.hex())

    @property
    def receipt(self) -> Optional[SubmissionReceipt]:
        return self._receipt

    def _advance(self, new_state: SigningState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise SigningError(
                f"Cannot move signing session from {self._state.value} to {new_state.value}"
            )
        self._logger.debug(f"{self._state.value} -> {new_state.value}")
        self._state = new_state

    def hash(self, expected: Optional[Union[bytes, str]] = None) -> TxHash:
        """
        Hash the body.

        Args:
            expected: Hash the caller was told to sign, if any

        Raises:
            HashMismatch: If ``expected`` differs from the computed hash
        """
        if self._tx_hash is None:
            self._advance(SigningState.HASHED)
            self._tx_hash = hash_body(self._envelope.body)
            self._logger.info(f"Transaction hash {self._tx_hash.hex()}")

        if expected is not None and _as_hash(expected) != self._tx_hash:
            raise HashMismatch(self._tx_hash.hex(), bytes_to_hex(_as_hash(expected)))
        return self._tx_hash

    def add_witnesses(self, keys: Sequence[PrivateKey]) -> list[VKeyWitness]:
        """Sign the hash with ``keys`` and keep the witnesses for reassembly."""
        if not keys:
            raise SigningError("At least one signing key is required")
        self._advance(SigningState.WITNESSED)

        new = witness_all(self.tx_hash, keys, self._backend)
        self._witnesses.extend(new)
        return new

    def sign(
        self,
        keys: Sequence[PrivateKey],
        expected_hash: Optional[Union[bytes, str]] = None
    ) -> TransactionEnvelope:
        """Hash, witness and reassemble."""
        self.hash(expected_hash)
        self.add_witnesses(keys)
        return self.reassemble()

    def reassemble(self) -> TransactionEnvelope:
        self._advance(SigningState.REASSEMBLED)
        self._signed = reassemble(self._envelope, self._witnesses)
        return self._signed

    @property
    def signed_envelope(self) -> TransactionEnvelope:
        if self._signed is None:
            raise SigningError("Transaction has not been reassembled yet")
        return self._signed

    @property
    def signed_bytes(self) -> bytes:
        return encode_bytes(self.signed_envelope)

    @property
    def signed_hex(self) -> HexStr:
        return bytes_to_hex(self.signed_bytes)

    async def submit(self, transactions: "TransactionModule") -> TxId:
        """
        Submit the signed transaction once. Errors propagate without retry.

        Args:
            transactions: Transaction module bound to a provider

        Returns:
            Transaction id reported by the relay
        """
        if self._state != SigningState.REASSEMBLED:
            raise SigningError(f"Cannot submit from state {self._state.value}")

        tx_id = await transactions.submit(self.signed_bytes)
        self._advance(SigningState.SUBMITTED)

        if tx_id != self.tx_id:
            self._logger.warning(f"Relay returned id {tx_id}, body hashes to {self.tx_id}")
        return tx_id

    async def confirm(
        self,
        transactions: "TransactionModule",
        delay: Optional[float] = None,
        attempts: int = 1,
        backoff: float = 2.0
    ) -> SubmissionReceipt:
        """Poll for confirmation and record CONFIRMED or PENDING."""
        if self._state not in (SigningState.SUBMITTED, SigningState.PENDING):
            raise SigningError(f"Cannot confirm from state {self._state.value}")

        receipt = await transactions.wait_for_confirmation(
            self.tx_id, delay=delay, attempts=attempts, backoff=backoff
        )
        self._advance(SigningState.CONFIRMED if receipt.confirmed else SigningState.PENDING)
        self._receipt = receipt
        return receipt

    def __repr__(self) -> str:
        tx = self._tx_hash.hex() if self._tx_hash is not None else None
        return f"SigningSession(state={self._state.value}, tx_hash={tx})"
