"""Signing backends for stakesign.

A backend turns a 64-byte extended Ed25519 secret (kL || kR, as produced by
BIP32-Ed25519 derivation) into signatures. Backends are looked up by name so
the choice can come from configuration.
"""

import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Optional

from nacl import bindings
from nacl import exceptions as nacl_exceptions
from nacl.signing import VerifyKey

from ..exceptions import ConfigurationError, CryptoError
from ..types.common import Signature

__all__ = [
    "SigningBackend",
    "NaclSigningBackend",
    "DEFAULT_BACKEND",
    "register_signing_backend",
    "get_signing_backend",
    "reduce_scalar",
    "scalarmult_base",
    "point_add",
]

logger = logging.getLogger(__name__)

DEFAULT_BACKEND = "nacl"


def reduce_scalar(data: bytes) -> bytes:
    """Reduce a little-endian integer of up to 64 bytes modulo the group order."""
    return bindings.crypto_core_ed25519_scalar_reduce(data.ljust(64, b"\x00"))


def scalarmult_base(scalar: bytes) -> bytes:
    """Multiply the Ed25519 base point by ``scalar`` without clamping."""
    try:
        return bindings.crypto_scalarmult_ed25519_base_noclamp(reduce_scalar(scalar))
    except nacl_exceptions.CryptoError as e:
        raise CryptoError("Scalar multiplication failed") from e


def point_add(p: bytes, q: bytes) -> bytes:
    """Add two Ed25519 points."""
    try:
        return bindings.crypto_core_ed25519_add(p, q)
    except nacl_exceptions.CryptoError as e:
        raise CryptoError("Point addition failed") from e


class SigningBackend(ABC):
    """Capability to sign with, and verify against, Ed25519 keys."""

    name: str = ""

    @abstractmethod
    def sign(self, secret: bytes, message: bytes) -> Signature:
        """
        Sign ``message`` with a 64-byte extended secret.

        Args:
            secret: kL || kR
            message: Bytes to sign (a transaction body hash)

        Returns:
            64-byte signature
        """
        raise NotImplementedError

    @abstractmethod
    def verify(self, public_key: bytes, signature: bytes, message: bytes) -> bool:
        """Check a signature against a 32-byte public key."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class NaclSigningBackend(SigningBackend):
    """Ed25519 over libsodium, signing directly with the expanded secret."""

    name = "nacl"

    def sign(self, secret: bytes, message: bytes) -> Signature:
        if len(secret) != 64:
            raise CryptoError(f"Extended secret must be 64 bytes, got {len(secret)}")

        a = reduce_scalar(secret[:32])
        public_key = scalarmult_base(a)

        # Deterministic nonce from the right half, as in RFC 8032 with a pre-expanded key
        r = reduce_scalar(hashlib.sha512(secret[32:] + message).digest())
        big_r = scalarmult_base(r)
        h = reduce_scalar(hashlib.sha512(big_r + public_key + message).digest())
        s = bindings.crypto_core_ed25519_scalar_add(
            r, bindings.crypto_core_ed25519_scalar_mul(h, a)
        )
        return Signature(big_r + s)

    def verify(self, public_key: bytes, signature: bytes, message: bytes) -> bool:
        try:
            VerifyKey(public_key).verify(message, signature)
        except (nacl_exceptions.BadSignatureError, ValueError):
            return False
        return True


_BACKENDS: dict[str, type[SigningBackend]] = {
    NaclSigningBackend.name: NaclSigningBackend,
}


def register_signing_backend(backend: type[SigningBackend]) -> None:
    """Make a backend class available to :func:`get_signing_backend`."""
    if not backend.name:
        raise ValueError("Signing backend must define a name")
    _BACKENDS[backend.name] = backend
    logger.debug(f"Registered signing backend {backend.name}")


def get_signing_backend(name: Optional[str] = None) -> SigningBackend:
    """
    Instantiate a signing backend by name.

    Raises:
        ConfigurationError: If no backend is registered under ``name``
    """
    name = name or DEFAULT_BACKEND
    try:
        return _BACKENDS[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown signing backend {name!r}; available: {sorted(_BACKENDS)}"
        ) from None
