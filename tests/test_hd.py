import pytest

from stakesign.crypto.hd import (
    ExtendedPrivateKey,
    derive,
    derive_address_keys,
    format_path,
    harden,
    parse_path,
    payment_path,
    root_key,
    stake_path,
)
from stakesign.crypto.bip39 import mnemonic_to_entropy
from stakesign.exceptions import CryptoError, InvalidDerivationIndex

from conftest import MNEMONIC


ICARUS_MNEMONIC = (
    "eight country switch draw meat scout mystery blade tip drift "
    "useless good keep usage title"
)
ICARUS_ROOT = (
    "c065afd2832cd8b087c4d9ab7011f481ee1e0721e78ea5dd609f3ab3f156d245"
    "d176bd8fd4ec60b4731c3918a2a72a0226c0cd119ec35b47e4d55884667f552a"
    "23f7fdcd4a10c6cd2c7393ac61d877873e248f417634aa3d812af327ffe9d620"
)


def _root_bytes(key: ExtendedPrivateKey) -> bytes:
    return key.to_private_key().secret + key.chain_code


def test_icarus_root_vector():
    root = root_key(mnemonic_to_entropy(ICARUS_MNEMONIC))
    assert _root_bytes(root).hex() == ICARUS_ROOT


def test_root_key_is_clamped():
    secret = root_key(bytes(16)).to_private_key().secret
    assert secret[0] & 0b111 == 0
    assert secret[31] & 0b1110_0000 == 0b0100_0000


def test_passphrase_changes_root():
    assert root_key(bytes(16)) != root_key(bytes(16), "secret")


def test_paths():
    assert format_path(stake_path()) == "m/1852'/1815'/0'/2/0"
    assert format_path(payment_path(0)) == "m/1852'/1815'/0'/0/0"
    assert format_path(payment_path(3)) == "m/1852'/1815'/0'/0/3"
    assert parse_path("m/1852'/1815'/0'/0/3") == payment_path(3)
    assert parse_path("m/1852h/1815h/0h/2/0") == stake_path()
    assert harden(0) == 0x80000000


def test_derive_path_string_matches_indices():
    root = root_key(bytes(16))
    assert root.derive_path("m/1852'/1815'/0'/0/0") == derive(root, payment_path(0))


def test_derivation_is_deterministic():
    first = derive_address_keys(MNEMONIC, 0)
    second = derive_address_keys(MNEMONIC, 0)
    assert first.payment_public_key == second.payment_public_key
    assert first.stake_public_key == second.stake_public_key
    assert first.payment_key == second.payment_key


def test_path_isolation():
    keys = [derive_address_keys(MNEMONIC, i) for i in range(3)]
    assert len({k.payment_public_key for k in keys}) == 3
    assert len({k.stake_public_key for k in keys}) == 1
    assert keys[0].payment_public_key != keys[0].stake_public_key


def test_public_soft_derivation_matches_private():
    account = root_key(bytes(16)).derive_path("m/1852'/1815'/0'")
    from_private = account.derive(0).derive(7).public_key()
    from_public = account.to_public().derive(0).derive(7).public_key
    assert from_private == from_public


def test_public_hardened_derivation_rejected():
    account = root_key(bytes(16)).derive_path("m/1852'/1815'/0'")
    with pytest.raises(CryptoError):
        account.to_public().derive(harden(0))


@pytest.mark.parametrize("index", [-1, 2 ** 31, True, "1", 1.0])
def test_invalid_address_index(index):
    with pytest.raises(InvalidDerivationIndex):
        derive_address_keys(MNEMONIC, index)


def test_max_address_index():
    keys = derive_address_keys(MNEMONIC, 2 ** 31 - 1)
    assert keys.payment_path[-1] == 2 ** 31 - 1


def test_reprs_hide_secrets():
    keys = derive_address_keys(MNEMONIC, 0)
    secret_hex = keys.payment_key.secret.hex()
    assert secret_hex not in repr(keys)
    assert secret_hex not in repr(keys.payment_key)
    root = root_key(bytes(16))
    assert root.to_private_key().secret.hex() not in repr(root)
