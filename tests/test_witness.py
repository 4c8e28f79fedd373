import hashlib

import cbor2
import pytest
from nacl.signing import SigningKey

from stakesign.codec import decode, decode_bytes, encode_bytes
from stakesign.crypto.keys import PrivateKey, PublicKey
from stakesign.exceptions import HashMismatch, SigningError
from stakesign.types.transaction import SubmissionReceipt, TransactionStatus, VKeyWitness
from stakesign.utils.encoding import blake2b_256
from stakesign.witness import (
    SigningSession,
    SigningState,
    hash_body,
    reassemble,
    required_key_hashes,
    select_signing_keys,
    sign_envelope,
    witness,
    witness_all,
)

from conftest import make_body, make_envelope


def test_signing_matches_standard_ed25519():
    seed = bytes(range(32))
    expanded = bytearray(hashlib.sha512(seed).digest())
    expanded[0] &= 248
    expanded[31] &= 127
    expanded[31] |= 64
    key = PrivateKey(bytes(expanded))
    signing_key = SigningKey(seed)

    assert key.public_key().to_bytes() == bytes(signing_key.verify_key)
    assert key.sign(b"message") == signing_key.sign(b"message").signature


def test_hash_body_is_stable(unsigned_hex):
    envelope = decode(unsigned_hex)
    first = hash_body(envelope.body)
    assert hash_body(envelope.body) == first
    assert hash_body(decode(unsigned_hex).body) == first
    assert first == blake2b_256(envelope.body.raw)


def test_witness_verifies(address_keys, unsigned_hex):
    tx_hash = hash_body(decode(unsigned_hex).body)
    w = witness(tx_hash, address_keys.payment_key)
    assert w.vkey == address_keys.payment_public_key.to_bytes()
    assert PublicKey(w.vkey).verify(w.signature, tx_hash)
    assert not PublicKey(w.vkey).verify(w.signature, b"\x00" * 32)


def test_witness_all_keeps_order_and_duplicates(address_keys, unsigned_hex):
    tx_hash = hash_body(decode(unsigned_hex).body)
    keys = [address_keys.payment_key, address_keys.stake_key, address_keys.payment_key]
    witnesses = witness_all(tx_hash, keys)
    assert [w.vkey for w in witnesses] == [k.public_key().to_bytes() for k in keys]
    assert witnesses[0] == witnesses[2]
    assert witnesses[0].signature != witnesses[1].signature


def test_reassemble_two_keys(address_keys, unsigned_hex):
    envelope = decode(unsigned_hex)
    tx_hash = hash_body(envelope.body)
    witnesses = witness_all(tx_hash, [address_keys.payment_key, address_keys.stake_key])

    signed = decode_bytes(encode_bytes(reassemble(envelope, witnesses)))
    assert signed.body.raw == envelope.body.raw
    assert len(signed.witness_set.vkey_witnesses) == 2
    for w in signed.witness_set.vkey_witnesses:
        assert PublicKey(w.vkey).verify(w.signature, tx_hash)


def test_reassemble_keeps_existing_witnesses_and_aux(address_keys):
    existing = [b"\x05" * 32, b"\x06" * 64]
    aux = {0: {674: {"msg": ["memo"]}}}
    data = make_envelope(witness_set={0: [existing], 1: [b"native script"]}, aux=aux, is_valid=False)
    envelope = decode(data.hex())

    signed = sign_envelope(envelope, [address_keys.payment_key])
    vkeys = signed.witness_set.vkey_witnesses
    assert vkeys[0] == VKeyWitness(existing[0], existing[1])
    assert vkeys[1].vkey == address_keys.payment_public_key.to_bytes()
    assert signed.witness_set.other == {1: [b"native script"]}
    assert signed.auxiliary_data == cbor2.dumps(aux)
    assert signed.is_valid is False


def test_reassemble_rejects_bad_witness(address_keys, unsigned_hex):
    envelope = decode(unsigned_hex)
    bogus = VKeyWitness(address_keys.payment_public_key.to_bytes(), b"\x00" * 64)
    with pytest.raises(SigningError):
        reassemble(envelope, [bogus])


def test_sign_envelope_hash_mismatch(address_keys, unsigned_hex):
    envelope = decode(unsigned_hex)
    with pytest.raises(HashMismatch) as exc:
        sign_envelope(envelope, [address_keys.payment_key], tx_hash=b"\x00" * 32)
    assert exc.value.expected == hash_body(envelope.body).hex()

    signed = sign_envelope(envelope, [address_keys.payment_key], tx_hash=hash_body(envelope.body).hex())
    assert len(signed.witness_set.vkey_witnesses) == 1


def _body(extra=None):
    return decode(make_envelope(body=make_body(extra)).hex()).body


def test_required_signers_payment_only(address_keys):
    assert select_signing_keys(_body(), address_keys) == [address_keys.payment_key]


def test_registration_needs_no_stake_witness(address_keys):
    stake_hash = address_keys.stake_public_key.hash()
    body = _body({4: [[0, [0, stake_hash]]]})
    assert select_signing_keys(body, address_keys) == [address_keys.payment_key]


@pytest.mark.parametrize("certificate", [
    lambda h: [1, [0, h]],
    lambda h: [2, [0, h], b"\x01" * 28],
    lambda h: [7, [0, h], 2_000_000],
    lambda h: [9, [0, h], [2]],
])
def test_certificates_need_stake_witness(address_keys, certificate):
    stake_hash = address_keys.stake_public_key.hash()
    body = _body({4: [certificate(stake_hash)]})
    assert select_signing_keys(body, address_keys) == [address_keys.payment_key, address_keys.stake_key]


def test_withdrawal_and_required_signers(address_keys):
    stake_hash = address_keys.stake_public_key.hash()
    body = _body({5: {bytes([0xE0]) + stake_hash: 5_000}})
    assert address_keys.stake_key in select_signing_keys(body, address_keys)

    body = _body({14: [stake_hash]})
    assert stake_hash in required_key_hashes(body)
    assert address_keys.stake_key in select_signing_keys(body, address_keys)


def test_script_credentials_ignored(address_keys):
    stake_hash = address_keys.stake_public_key.hash()
    body = _body({4: [[1, [1, stake_hash]]]})
    assert required_key_hashes(body) == set()


class FakeTransactions:
    def __init__(self, confirmed=True):
        self.submitted = []
        self.confirmed = confirmed

    async def submit(self, signed_tx):
        self.submitted.append(signed_tx)
        return hash_body(decode_bytes(signed_tx).body).hex()

    async def wait_for_confirmation(self, tx_id, delay=None, attempts=1, backoff=2.0):
        return SubmissionReceipt(
            tx_id=tx_id,
            status=TransactionStatus(tx_id=tx_id, confirmed=self.confirmed),
        )


def test_session_steps_must_be_in_order(address_keys, unsigned_hex):
    session = SigningSession.from_hex(unsigned_hex)
    assert session.state == SigningState.BODY_RECEIVED
    with pytest.raises(SigningError):
        session.add_witnesses([address_keys.payment_key])
    with pytest.raises(SigningError):
        session.reassemble()

    session.hash()
    assert session.state == SigningState.HASHED
    with pytest.raises(SigningError):
        session.reassemble()

    session.add_witnesses([address_keys.payment_key])
    session.add_witnesses([address_keys.stake_key])
    assert session.state == SigningState.WITNESSED

    signed = session.reassemble()
    assert session.state == SigningState.REASSEMBLED
    assert len(signed.witness_set.vkey_witnesses) == 2
    assert decode(session.signed_hex) == signed
    with pytest.raises(SigningError):
        session.add_witnesses([address_keys.payment_key])


def test_session_hash_mismatch(unsigned_hex):
    session = SigningSession.from_hex(unsigned_hex)
    with pytest.raises(HashMismatch):
        session.hash("00" * 32)


@pytest.mark.asyncio
async def test_session_submit_and_confirm(address_keys, unsigned_hex):
    session = SigningSession.from_hex(unsigned_hex)
    transactions = FakeTransactions(confirmed=False)

    with pytest.raises(SigningError):
        await session.submit(transactions)

    session.sign([address_keys.payment_key])
    tx_id = await session.submit(transactions)
    assert tx_id == session.tx_id
    assert transactions.submitted == [session.signed_bytes]
    assert session.state == SigningState.SUBMITTED

    with pytest.raises(SigningError):
        await session.submit(transactions)

    receipt = await session.confirm(transactions)
    assert not receipt.confirmed
    assert session.state == SigningState.PENDING

    transactions.confirmed = True
    await session.confirm(transactions)
    assert session.state == SigningState.CONFIRMED
    with pytest.raises(SigningError):
        await session.confirm(transactions)
