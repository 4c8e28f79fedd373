"""Raw Ed25519 key pairs for stakesign."""

import hmac
from typing import Optional, Union

from ..crypto.signature import SigningBackend, get_signing_backend, scalarmult_base
from ..exceptions import CryptoError, ValidationError
from ..types.common import KeyHash, PublicKeyBytes, Signature
from ..utils.encoding import blake2b_224, hex_to_bytes

__all__ = ["PrivateKey", "PublicKey"]


class PublicKey:
    """
    Ed25519 public key (32 bytes).

    Hashes to the 28-byte credential used in addresses and certificates.
    """

    def __init__(self, key: Union[bytes, str, "PublicKey"]) -> None:
        """
        Initialize public key.

        Args:
            key: 32 raw bytes, hex string, or another PublicKey

        Raises:
            ValidationError: If key is not 32 bytes
        """
        if isinstance(key, PublicKey):
            self._key = key._key
            return

        if isinstance(key, str):
            key = hex_to_bytes(key)

        if len(key) != 32:
            raise ValidationError(f"Public key must be 32 bytes, got {len(key)}")

        self._key = PublicKeyBytes(bytes(key))

    def to_bytes(self) -> PublicKeyBytes:
        return self._key

    def hex(self) -> str:
        return self._key.hex()

    def hash(self) -> KeyHash:
        """Blake2b-224 key hash."""
        return KeyHash(blake2b_224(self._key))

    def verify(
        self,
        signature: bytes,
        message: bytes,
        backend: Optional[SigningBackend] = None
    ) -> bool:
        """Check ``signature`` over ``message``."""
        backend = backend or get_signing_backend()
        return backend.verify(self._key, signature, message)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PublicKey):
            return self._key == other._key
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._key)

    def __repr__(self) -> str:
        return f"PublicKey({self.hex()})"


class PrivateKey:
    """
    Raw signing key: the 64-byte extended Ed25519 secret kL || kR.

    This is an HD node with its chain code stripped. It cannot derive
    children, only sign.
    """

    def __init__(self, secret: bytes) -> None:
        if len(secret) != 64:
            raise CryptoError(f"Extended secret must be 64 bytes, got {len(secret)}")
        self._secret = bytes(secret)
        self._public_key: Optional[PublicKey] = None

    @property
    def secret(self) -> bytes:
        return self._secret

    def public_key(self) -> PublicKey:
        if self._public_key is None:
            self._public_key = PublicKey(scalarmult_base(self._secret[:32]))
        return self._public_key

    def sign(
        self,
        message: bytes,
        backend: Optional[SigningBackend] = None
    ) -> Signature:
        """
        Sign message bytes.

        Args:
            message: Bytes to sign
            backend: Signing backend (default: libsodium)

        Returns:
            64-byte Ed25519 signature
        """
        backend = backend or get_signing_backend()
        return backend.sign(self._secret, message)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PrivateKey):
            return hmac.compare_digest(self._secret, other._secret)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.public_key())

    def __repr__(self) -> str:
        return f"PrivateKey(public={self.public_key().hex()})"
