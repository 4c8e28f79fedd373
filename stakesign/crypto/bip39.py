"""BIP39 mnemonic handling for stakesign."""

from mnemonic import Mnemonic

from ..exceptions import InvalidMnemonic

__all__ = [
    "VALID_WORD_COUNTS",
    "generate_mnemonic",
    "normalize_mnemonic",
    "mnemonic_to_entropy",
    "validate_mnemonic",
]

VALID_WORD_COUNTS = (12, 15, 18, 21, 24)

_ENGLISH = Mnemonic("english")


def generate_mnemonic(strength: int = 128) -> str:
    """Generate BIP39 mnemonic phrase."""
    if strength not in (128, 160, 192, 224, 256):
        raise ValueError("Strength must be 128, 160, 192, 224, or 256")
    return _ENGLISH.generate(strength=strength)


def normalize_mnemonic(mnemonic: str) -> list[str]:
    """Split a phrase into lowercase words, collapsing any whitespace."""
    return mnemonic.lower().split()


def mnemonic_to_entropy(mnemonic: str) -> bytes:
    """
    Convert a recovery phrase to its entropy bytes.

    Args:
        mnemonic: BIP39 phrase (English wordlist)

    Returns:
        16 to 32 bytes of entropy

    Raises:
        InvalidMnemonic: On wrong word count, unknown words or bad checksum
    """
    if not isinstance(mnemonic, str):
        raise InvalidMnemonic("Mnemonic must be a string")

    words = normalize_mnemonic(mnemonic)
    if len(words) not in VALID_WORD_COUNTS:
        raise InvalidMnemonic(
            f"Mnemonic has {len(words)} words, expected one of {VALID_WORD_COUNTS}"
        )

    wordlist = set(_ENGLISH.wordlist)
    unknown = [i + 1 for i, word in enumerate(words) if word not in wordlist]
    if unknown:
        # Positions only; the words themselves are secret
        raise InvalidMnemonic(f"Mnemonic contains unknown words at positions {unknown}")

    try:
        return bytes(_ENGLISH.to_entropy(words))
    except (ValueError, LookupError) as e:
        raise InvalidMnemonic("Mnemonic checksum mismatch") from e


def validate_mnemonic(mnemonic: str) -> bool:
    """Check whether ``mnemonic`` is a valid BIP39 phrase."""
    try:
        mnemonic_to_entropy(mnemonic)
    except InvalidMnemonic:
        return False
    return True
