"""Wallet module for stakesign."""

import logging
from typing import Optional, Sequence, Union

from ..address import (
    Credential,
    KeyRole,
    base_address,
    credential_from_public_key,
    enterprise_address,
    reward_address,
)
from ..crypto.hd import AddressKeys, derive_address_keys, format_path, payment_path, stake_path
from ..crypto.keys import PrivateKey
from ..crypto.signature import SigningBackend, get_signing_backend
from ..exceptions import StakeSignError
from ..network import NetworkContext
from ..types.common import Bech32Address
from ..types.transaction import TransactionBody
from ..utils.validation import validate_address_index
from ..witness import SigningSession, select_signing_keys

__all__ = ["Wallet"]

logger = logging.getLogger(__name__)


class Wallet:
    """
    Single-mnemonic wallet for one address index.

    Keys are derived on first use and dropped when the wallet is closed or
    its ``with`` block exits.
    """

    def __init__(
        self,
        mnemonic: str,
        network: Union[NetworkContext, str],
        address_index: int = 0,
        passphrase: str = "",
        backend: Optional[Union[SigningBackend, str]] = None
    ) -> None:
        """
        Initialize wallet.

        Args:
            mnemonic: BIP39 recovery phrase
            network: Network context or name
            address_index: Payment address index
            passphrase: Optional BIP39 passphrase
            backend: Signing backend or its registered name
        """
        if isinstance(network, str):
            network = NetworkContext.from_name(network)
        if backend is None or isinstance(backend, str):
            backend = get_signing_backend(backend)

        self.network = network
        self.address_index = validate_address_index(address_index)
        self._mnemonic: Optional[str] = mnemonic
        self._passphrase = passphrase
        self._backend = backend
        self._keys: Optional[AddressKeys] = None
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def keys(self) -> AddressKeys:
        if self._keys is None:
            if self._mnemonic is None:
                raise StakeSignError("Wallet is closed")
            self._keys = derive_address_keys(self._mnemonic, self.address_index, self._passphrase)
            self._logger.info(
                f"Derived keys at {self.payment_path} and {self.stake_path}"
            )
        return self._keys

    @property
    def payment_path(self) -> str:
        return format_path(payment_path(self.address_index))

    @property
    def stake_path(self) -> str:
        return format_path(stake_path())

    @property
    def payment_credential(self) -> Credential:
        return credential_from_public_key(self.keys.payment_public_key, KeyRole.PAYMENT)

    @property
    def stake_credential(self) -> Credential:
        return credential_from_public_key(self.keys.stake_public_key, KeyRole.STAKING)

    @property
    def payment_address(self) -> Bech32Address:
        return base_address(self.network, self.payment_credential, self.stake_credential)

    @property
    def enterprise_address(self) -> Bech32Address:
        return enterprise_address(self.network, self.payment_credential)

    @property
    def stake_address(self) -> Bech32Address:
        return reward_address(self.network, self.stake_credential)

    def keys_for(self, body: TransactionBody) -> list[PrivateKey]:
        """Signing keys ``body`` needs from this wallet."""
        return select_signing_keys(body, self.keys)

    def sign(
        self,
        unsigned_hex: str,
        keys: Optional[Sequence[PrivateKey]] = None,
        expected_hash: Optional[str] = None
    ) -> SigningSession:
        """
        Sign an unsigned transaction envelope.

        Args:
            unsigned_hex: Envelope from the crafting API
            keys: Keys to sign with (default: chosen from the body)
            expected_hash: Transaction hash the caller expects

        Returns:
            SigningSession in the REASSEMBLED state

        Raises:
            MalformedEnvelope: If the envelope cannot be decoded
            HashMismatch: If ``expected_hash`` does not match the body
        """
        session = SigningSession.from_hex(unsigned_hex, self._backend)
        signing_keys = list(keys) if keys is not None else self.keys_for(session.envelope.body)
        session.sign(signing_keys, expected_hash)

        self._logger.info(
            f"Signed {session.tx_id} with {len(signing_keys)} keys"
        )
        return session

    def close(self) -> None:
        """Drop the mnemonic and derived keys."""
        self._keys = None
        self._mnemonic = None
        self._passphrase = ""

    @property
    def closed(self) -> bool:
        return self._mnemonic is None

    def __enter__(self) -> "Wallet":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Wallet(network={self.network}, address_index={self.address_index}, "
            f"closed={self.closed})"
        )
