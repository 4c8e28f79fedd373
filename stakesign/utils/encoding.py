"""Encoding and decoding utilities for stakesign."""

import hashlib
import re
from typing import Tuple, List, Union

from ..exceptions import ValidationError
from ..types.common import HexStr

__all__ = [
    "HEX_PATTERN",
    "hex_to_bytes",
    "bytes_to_hex",
    "blake2b_224",
    "blake2b_256",
    "convert_bits",
    "encode_bech32",
    "decode_bech32",
    "encode_base58",
]

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"

HEX_PATTERN = re.compile(r"^[0-9a-fA-F]*$")


def hex_to_bytes(hex_str: Union[HexStr, str]) -> bytes:
    """
    Convert hex string to bytes.

    Args:
        hex_str: Hex string with or without 0x prefix

    Returns:
        Decoded bytes

    Raises:
        ValidationError: If hex string is invalid
    """
    try:
        if isinstance(hex_str, str) and hex_str.startswith("0x"):
            hex_str = hex_str[2:]
        return bytes.fromhex(hex_str)
    except ValueError as e:
        raise ValidationError(f"Invalid hex string of length {len(hex_str)}") from e


def bytes_to_hex(data: bytes, prefix: bool = False) -> HexStr:
    """
    Convert bytes to hex string.

    Args:
        data: Bytes to encode
        prefix: Add 0x prefix

    Returns:
        Hex string
    """
    hex_str = data.hex()
    if prefix:
        hex_str = f"0x{hex_str}"
    return HexStr(hex_str)


def blake2b_224(data: bytes) -> bytes:
    """Blake2b with a 28-byte digest (key and script hashes)."""
    return hashlib.blake2b(data, digest_size=28).digest()


def blake2b_256(data: bytes) -> bytes:
    """Blake2b with a 32-byte digest (transaction and data hashes)."""
    return hashlib.blake2b(data, digest_size=32).digest()


def _bech32_polymod(values: List[int]) -> int:
    """Compute Bech32 checksum polymod."""
    generator = [0x3b6a57b2, 0x26508e6d, 0x1ea119fa, 0x3d4233dd, 0x2a1462b3]
    chk = 1
    for value in values:
        top = chk >> 25
        chk = (chk & 0x1ffffff) << 5 ^ value
        for i in range(5):
            chk ^= generator[i] if ((top >> i) & 1) else 0
    return chk


def _bech32_hrp_expand(hrp: str) -> List[int]:
    """Expand human-readable part for Bech32."""
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def convert_bits(data: bytes | List[int], from_bits: int, to_bits: int, pad: bool = True) -> List[int]:
    """
    Regroup a sequence of ``from_bits`` wide values into ``to_bits`` wide values.

    Raises:
        ValidationError: If non-zero padding is left over when ``pad`` is False
    """
    value = 0
    bits = 0
    result = []
    max_value = (1 << to_bits) - 1

    for item in data:
        value = (value << from_bits) | item
        bits += from_bits
        while bits >= to_bits:
            bits -= to_bits
            result.append((value >> bits) & max_value)

    if pad:
        if bits:
            result.append((value << (to_bits - bits)) & max_value)
    elif bits >= from_bits or ((value << (to_bits - bits)) & max_value):
        raise ValidationError("Invalid padding in Bech32 data")

    return result


def encode_bech32(hrp: str, data: bytes) -> str:
    """
    Encode bytes as a Bech32 string.

    Shelley addresses exceed the 90 character limit of BIP-173, so no length
    limit is enforced.

    Args:
        hrp: Human-readable part
        data: Payload bytes

    Returns:
        Bech32 encoded string
    """
    values = convert_bits(data, 8, 5)

    polymod = _bech32_polymod(_bech32_hrp_expand(hrp) + values + [0, 0, 0, 0, 0, 0]) ^ 1
    checksum = [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]

    return hrp + "1" + "".join(BECH32_CHARSET[v] for v in values + checksum)


def decode_bech32(string: str) -> Tuple[str, bytes]:
    """
    Decode a Bech32 string.

    Args:
        string: Bech32 string

    Returns:
        Tuple of (hrp, payload bytes)

    Raises:
        ValidationError: If the string is invalid
    """
    if string.lower() != string and string.upper() != string:
        raise ValidationError("Invalid Bech32 string: mixed case")
    string = string.lower()

    pos = string.rfind("1")
    if pos < 1 or pos + 7 > len(string):
        raise ValidationError("Invalid Bech32 string: no separator")

    hrp = string[:pos]
    data = string[pos + 1:]

    values = []
    for char in data:
        try:
            values.append(BECH32_CHARSET.index(char))
        except ValueError:
            raise ValidationError(f"Invalid Bech32 character: {char}")

    if _bech32_polymod(_bech32_hrp_expand(hrp) + values) != 1:
        raise ValidationError("Invalid Bech32 checksum")

    return hrp, bytes(convert_bits(values[:-6], 5, 8, pad=False))


def encode_base58(data: bytes) -> str:
    """
    Encode bytes as Base58 string (Byron era addresses).

    Args:
        data: Bytes to encode

    Returns:
        Base58 encoded string
    """
    n = int.from_bytes(data, byteorder="big")

    encoded = ""
    while n:
        n, remainder = divmod(n, 58)
        encoded = BASE58_ALPHABET[remainder] + encoded

    for byte in data:
        if byte == 0:
            encoded = "1" + encoded
        else:
            break

    return encoded
