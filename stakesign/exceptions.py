"""stakesign exceptions hierarchy."""

from enum import Enum
from typing import Any, Optional

__all__ = [
    "StakeSignError",
    "ConfigurationError",
    "ValidationError",
    "InvalidDerivationIndex",
    "CryptoError",
    "InvalidMnemonic",
    "SerializationError",
    "MalformedReason",
    "MalformedEnvelope",
    "SigningError",
    "HashMismatch",
    "SigningKeyMismatch",
    "ProviderError",
    "NetworkError",
    "TimeoutError",
    "RateLimitError",
    "APIError",
    "SubmissionError",
    "StatusCheckFailed",
]


class StakeSignError(Exception):
    """Base exception for all stakesign errors."""

    # True once a relay has accepted the transaction; callers must not resubmit blindly
    transaction_sent = False

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Optional[Any] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigurationError(StakeSignError):
    """Raised when required configuration is missing or invalid."""
    pass


class ValidationError(StakeSignError):
    """Raised when validation fails."""
    pass


class InvalidDerivationIndex(ValidationError):
    """Raised when an address index is outside the soft derivation range."""

    def __init__(self, index: Any, message: Optional[str] = None) -> None:
        if message is None:
            message = (
                f"Invalid derivation index {index!r}: "
                f"must be an integer in [0, {0x7FFFFFFF}]"
            )
        super().__init__(message)
        self.index = index


class CryptoError(StakeSignError):
    """Raised when cryptographic operation fails."""
    pass


class InvalidMnemonic(CryptoError):
    """Raised when a recovery phrase fails BIP-39 validation."""
    pass


class SerializationError(StakeSignError):
    """Raised when serialization/deserialization fails."""
    pass


class MalformedReason(str, Enum):
    """Why an envelope could not be decoded."""

    EMPTY = "empty"
    NON_HEX = "non_hex"
    ODD_LENGTH = "odd_length"
    UNDECODABLE = "undecodable"
    INVALID_STRUCTURE = "invalid_structure"


class MalformedEnvelope(SerializationError):
    """Raised when a transaction envelope is not valid hex or CBOR."""

    def __init__(
        self,
        reason: MalformedReason,
        message: str,
        length: Optional[int] = None
    ) -> None:
        super().__init__(message, data={"reason": reason.value, "length": length})
        self.reason = reason
        self.length = length


class SigningError(StakeSignError):
    """Raised when the witness engine cannot proceed."""
    pass


class HashMismatch(SigningError):
    """Raised when a supplied transaction hash differs from the body hash."""

    def __init__(self, expected: str, supplied: str) -> None:
        super().__init__(
            f"Transaction hash mismatch: body hashes to {expected}, got {supplied}"
        )
        self.expected = expected
        self.supplied = supplied


class ProviderError(StakeSignError):
    """Raised when provider encounters an error."""
    pass


class NetworkError(ProviderError):
    """Raised when network communication fails."""
    pass


class TimeoutError(NetworkError):
    """Raised when operation times out."""
    pass


class RateLimitError(NetworkError):
    """Raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[int] = None,
        data: Optional[Any] = None
    ) -> None:
        super().__init__(message, code=429, data=data)
        self.retry_after = retry_after


class APIError(ProviderError):
    """Raised when API returns an error response."""
    pass


class SubmissionError(APIError):
    """Raised when a relay rejects a signed transaction. Nothing was accepted."""

    def __init__(self, code: int, body: str) -> None:
        super().__init__(f"Transaction submission failed: {body}", code=code)
        self.body = body


class SigningKeyMismatch(SubmissionError, SigningError):
    """Raised when a relay rejects a transaction for missing or invalid witnesses."""
    pass


class StatusCheckFailed(ProviderError):
    """Raised when a status query fails for reasons other than 'not found'."""

    transaction_sent = True

    def __init__(self, tx_id: str, message: str, code: Optional[int] = None) -> None:
        super().__init__(f"Status check for {tx_id} failed: {message}", code=code)
        self.tx_id = tx_id
