"""Transaction envelope codec for stakesign.

Envelopes are CBOR arrays ``[body, witness_set, is_valid, auxiliary_data]``
(or ``[body, witness_set, auxiliary_data]`` before Alonzo). The body and
auxiliary data are kept as the exact bytes received: the body hash is the
transaction id, so re-serializing the body would change what gets signed.
"""

import logging
from typing import Union

import cbor2

from .address import address_from_bytes
from .exceptions import MalformedEnvelope, MalformedReason
from .types.common import HexStr
from .types.transaction import (
    TransactionBody,
    TransactionEnvelope,
    TransactionSummary,
    WitnessSet,
)
from .utils.encoding import HEX_PATTERN, blake2b_256, bytes_to_hex

__all__ = [
    "decode",
    "decode_bytes",
    "encode",
    "encode_bytes",
    "inspect",
]

logger = logging.getLogger(__name__)

# Below this many hex characters an envelope cannot hold a real transaction
MIN_PLAUSIBLE_HEX_LENGTH = 100
MAX_NESTING = 256

_CBOR_NULL = b"\xf6"
_BREAK = 0xFF


class _ScanError(Exception):
    pass


def _read_head(data: bytes, pos: int) -> tuple[int, int, int | None, int]:
    """
    Read one CBOR initial byte plus its argument.

    Returns:
        Tuple of (major type, additional info, argument or None when
        indefinite, position after the head)
    """
    if pos >= len(data):
        raise _ScanError(f"unexpected end of data at byte {pos}")

    initial = data[pos]
    major, info = initial >> 5, initial & 0x1F
    pos += 1

    if info < 24:
        return major, info, info, pos
    if info in (24, 25, 26, 27):
        size = 1 << (info - 24)
        if pos + size > len(data):
            raise _ScanError(f"unexpected end of data at byte {pos}")
        return major, info, int.from_bytes(data[pos:pos + size], "big"), pos + size
    if info == 31 and major in (2, 3, 4, 5, 7):
        return major, info, None, pos

    raise _ScanError(f"reserved additional info {info} at byte {pos - 1}")


def _skip(data: bytes, pos: int, depth: int = 0) -> int:
    """Return the position just past the CBOR item starting at ``pos``."""
    if depth > MAX_NESTING:
        raise _ScanError("nesting too deep")

    major, info, value, pos = _read_head(data, pos)

    if major in (0, 1):
        return pos

    if major in (2, 3):
        if value is None:
            while True:
                if pos >= len(data):
                    raise _ScanError("unterminated indefinite-length string")
                if data[pos] == _BREAK:
                    return pos + 1
                chunk_major, _, length, pos = _read_head(data, pos)
                if chunk_major != major or length is None:
                    raise _ScanError("invalid chunk in indefinite-length string")
                pos += length
        pos += value
        if pos > len(data):
            raise _ScanError("string runs past end of data")
        return pos

    if major in (4, 5):
        per_entry = 1 if major == 4 else 2
        if value is None:
            while True:
                if pos >= len(data):
                    raise _ScanError("unterminated indefinite-length container")
                if data[pos] == _BREAK:
                    return pos + 1
                for _ in range(per_entry):
                    pos = _skip(data, pos, depth + 1)
        for _ in range(value * per_entry):
            pos = _skip(data, pos, depth + 1)
        return pos

    if major == 6:
        return _skip(data, pos, depth + 1)

    # Major type 7: simple values and floats; a lone break is not an item
    if value is None:
        raise _ScanError(f"unexpected break at byte {pos - 1}")
    return pos


def _element_spans(data: bytes) -> list[tuple[int, int]]:
    """Byte ranges of each element of the top-level array."""
    _, _, count, pos = _read_head(data, 0)
    spans = []
    while (count is None and data[pos] != _BREAK) or (count is not None and len(spans) < count):
        end = _skip(data, pos)
        spans.append((pos, end))
        pos = end
    return spans


def _undecodable(hex_length: int, detail: str) -> MalformedEnvelope:
    message = f"Envelope is not decodable CBOR ({detail}); hex length {hex_length}"
    if hex_length < MIN_PLAUSIBLE_HEX_LENGTH:
        message += ", input looks too short to be a transaction"
    return MalformedEnvelope(MalformedReason.UNDECODABLE, message, length=hex_length)


def _invalid(hex_length: int, detail: str) -> MalformedEnvelope:
    return MalformedEnvelope(
        MalformedReason.INVALID_STRUCTURE,
        f"Envelope has an invalid structure ({detail}); hex length {hex_length}",
        length=hex_length,
    )


def decode_bytes(data: bytes, hex_length: int | None = None) -> TransactionEnvelope:
    """
    Decode envelope bytes.

    Args:
        data: Raw CBOR
        hex_length: Length of the hex form, for diagnostics

    Raises:
        MalformedEnvelope: UNDECODABLE or INVALID_STRUCTURE
    """
    if hex_length is None:
        hex_length = len(data) * 2
    if not data:
        raise MalformedEnvelope(MalformedReason.EMPTY, "Envelope is empty", length=0)

    try:
        end = _skip(data, 0)
    except _ScanError as e:
        raise _undecodable(hex_length, str(e)) from e
    if end != len(data):
        raise _undecodable(hex_length, f"{len(data) - end} trailing bytes")

    try:
        value = cbor2.loads(data)
    except (cbor2.CBORDecodeError, ValueError) as e:
        raise _undecodable(hex_length, str(e)) from e

    if not isinstance(value, list):
        raise _invalid(hex_length, f"expected an array, got {type(value).__name__}")
    if len(value) not in (3, 4):
        raise _invalid(hex_length, f"expected 3 or 4 elements, got {len(value)}")

    body_fields, witness_fields = value[0], value[1]
    if not isinstance(body_fields, dict):
        raise _invalid(hex_length, "transaction body is not a map")
    if not isinstance(witness_fields, dict):
        raise _invalid(hex_length, "witness set is not a map")

    is_valid = None
    if len(value) == 4:
        is_valid = value[2]
        if not isinstance(is_valid, bool):
            raise _invalid(hex_length, "is_valid flag is not a boolean")

    spans = _element_spans(data)
    body_start, body_end = spans[0]
    aux_start, aux_end = spans[-1]
    aux_raw = data[aux_start:aux_end]

    try:
        witness_set = WitnessSet.from_cbor(witness_fields)
    except (TypeError, ValueError) as e:
        raise _invalid(hex_length, f"bad witness set: {e}") from e

    body = TransactionBody(raw=data[body_start:body_end], fields=body_fields)
    try:
        body.check()
    except ValueError as e:
        raise _invalid(hex_length, f"bad transaction body field {e}") from e

    envelope = TransactionEnvelope(
        body=body,
        witness_set=witness_set,
        is_valid=is_valid,
        auxiliary_data=None if aux_raw == _CBOR_NULL else aux_raw,
    )

    logger.debug(
        f"Decoded {len(value)}-element envelope ({len(data)} bytes), "
        f"{len(witness_set.vkey_witnesses)} vkey witnesses"
    )
    return envelope


def decode(hex_envelope: str) -> TransactionEnvelope:
    """
    Decode a hex transaction envelope.

    Format problems are reported before any CBOR decoding is attempted, in the
    order: empty, non-hex characters, odd length.

    Args:
        hex_envelope: Hex string (surrounding whitespace is ignored)

    Returns:
        Decoded TransactionEnvelope

    Raises:
        MalformedEnvelope: With the reason and the exact hex length
    """
    if not isinstance(hex_envelope, str):
        raise MalformedEnvelope(
            MalformedReason.NON_HEX,
            f"Envelope must be a hex string, got {type(hex_envelope).__name__}",
        )

    hex_envelope = hex_envelope.strip()
    length = len(hex_envelope)

    if not length:
        raise MalformedEnvelope(MalformedReason.EMPTY, "Envelope is empty", length=0)

    if not HEX_PATTERN.match(hex_envelope):
        position = next(i for i, c in enumerate(hex_envelope) if c not in "0123456789abcdefABCDEF")
        raise MalformedEnvelope(
            MalformedReason.NON_HEX,
            f"Envelope contains a non-hex character at position {position}; hex length {length}",
            length=length,
        )

    if length % 2:
        raise MalformedEnvelope(
            MalformedReason.ODD_LENGTH,
            f"Envelope has odd hex length {length}",
            length=length,
        )

    return decode_bytes(bytes.fromhex(hex_envelope), hex_length=length)


def encode_bytes(envelope: TransactionEnvelope) -> bytes:
    """Serialize an envelope, writing the body and auxiliary data verbatim."""
    parts = [envelope.body.to_cbor(), cbor2.dumps(envelope.witness_set.to_cbor())]
    if envelope.is_valid is not None:
        parts.append(cbor2.dumps(envelope.is_valid))
    parts.append(envelope.auxiliary_data if envelope.auxiliary_data is not None else _CBOR_NULL)

    header = bytes([0x80 | len(parts)])
    return header + b"".join(parts)


def encode(envelope: TransactionEnvelope) -> HexStr:
    """Serialize an envelope to hex."""
    return bytes_to_hex(encode_bytes(envelope))


def inspect(envelope: Union[TransactionEnvelope, str]) -> TransactionSummary:
    """
    Summarize an envelope for logs and pre-submission review.

    Args:
        envelope: Decoded envelope, or its hex form

    Returns:
        TransactionSummary
    """
    if isinstance(envelope, str):
        envelope = decode(envelope)

    body = envelope.body
    summary = TransactionSummary(
        tx_hash=bytes_to_hex(blake2b_256(body.raw)),
        fee=body.fee,
        ttl=body.ttl,
        validity_start=body.validity_start,
        inputs=[str(i) for i in body.inputs],
        outputs=[
            {
                "address": address_from_bytes(out.address),
                "coin": out.coin,
                "multi_asset": out.has_multi_asset,
            }
            for out in body.outputs
        ],
        certificates=[cert.name for cert in body.certificates],
        delegated_pools=[
            bytes_to_hex(cert.pool_key_hash)
            for cert in body.certificates
            if cert.pool_key_hash is not None
        ],
        withdrawals=[
            {"address": address_from_bytes(w.address), "amount": w.amount}
            for w in body.withdrawals
        ],
        required_signers=[bytes_to_hex(h) for h in body.required_signers],
        has_auxiliary_data=envelope.auxiliary_data is not None,
        has_witness_set=not envelope.witness_set.is_empty,
        vkey_witness_count=len(envelope.witness_set.vkey_witnesses),
        size=len(encode_bytes(envelope)),
    )

    logger.debug(f"Inspected transaction {summary.tx_hash}: {summary.to_dict()}")
    return summary
