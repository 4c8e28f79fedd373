import pytest

from stakesign.address import (
    AddressType,
    Credential,
    KeyRole,
    address_from_bytes,
    base_address,
    credential_from_public_key,
    decode_address,
    enterprise_address,
    reward_address,
)
from stakesign.exceptions import ValidationError
from stakesign.network import NetworkContext
from stakesign.utils.encoding import blake2b_224

from conftest import PAYMENT_KEY_HASH, STAKE_KEY_HASH


PAYMENT = Credential(PAYMENT_KEY_HASH, KeyRole.PAYMENT)
STAKE = Credential(STAKE_KEY_HASH, KeyRole.STAKING)


def test_base_address_vectors(mainnet, preview):
    assert base_address(mainnet, PAYMENT, STAKE) == (
        "addr1qx2fxv2umyhttkxyxp8x0dlpdt3k6cwng5pxj3jhsydzer3n0d3vllmyqwsx5wktcd8cc3sq835lu7drv2xwl2wywfgse35a3x"
    )
    assert base_address(preview, PAYMENT, STAKE) == (
        "addr_test1qz2fxv2umyhttkxyxp8x0dlpdt3k6cwng5pxj3jhsydzer3n0d3vllmyqwsx5wktcd8cc3sq835lu7drv2xwl2wywfgs68faae"
    )


def test_reward_address_vectors(mainnet):
    assert reward_address(mainnet, STAKE) == (
        "stake1uyehkck0lajq8gr28t9uxnuvgcqrc6070x3k9r8048z8y5gh6ffgw"
    )
    preprod = NetworkContext.from_name("preprod")
    assert reward_address(preprod, STAKE) == (
        "stake_test1uqehkck0lajq8gr28t9uxnuvgcqrc6070x3k9r8048z8y5gssrtvn"
    )


def test_enterprise_address(mainnet):
    address = enterprise_address(mainnet, PAYMENT)
    assert address.startswith("addr1v")
    decoded = decode_address(address)
    assert decoded.address_type == AddressType.ENTERPRISE_KEY
    assert decoded.payment_hash == PAYMENT_KEY_HASH
    assert decoded.stake_hash is None


def test_roles_are_checked(mainnet):
    with pytest.raises(ValidationError):
        base_address(mainnet, STAKE, PAYMENT)
    with pytest.raises(ValidationError):
        reward_address(mainnet, PAYMENT)


def test_credential_from_public_key(address_keys):
    credential = credential_from_public_key(address_keys.stake_public_key, KeyRole.STAKING)
    assert credential.key_hash == blake2b_224(address_keys.stake_public_key.to_bytes())
    assert len(credential.key_hash) == 28


def test_credential_size_checked():
    with pytest.raises(ValidationError):
        Credential(b"\x00" * 27, KeyRole.PAYMENT)


def test_decode_base_address(mainnet):
    decoded = decode_address(base_address(mainnet, PAYMENT, STAKE))
    assert decoded.network_id == 1
    assert decoded.payment_hash == PAYMENT_KEY_HASH
    assert decoded.stake_hash == STAKE_KEY_HASH
    assert decoded.to_bech32() == base_address(mainnet, PAYMENT, STAKE)


def test_decode_rejects_wrong_prefix(mainnet):
    from stakesign.utils.encoding import encode_bech32

    raw = decode_address(reward_address(mainnet, STAKE)).raw
    with pytest.raises(ValidationError):
        decode_address(encode_bech32("addr", raw))


def test_address_from_bytes():
    raw = bytes([0x00]) + PAYMENT_KEY_HASH + STAKE_KEY_HASH
    assert address_from_bytes(raw).startswith("addr_test1qz2fxv2")
    # Byron addresses are CBOR arrays, header 0x82
    assert address_from_bytes(bytes([0x82, 0xd8, 0x18])) != "82d818"
    assert address_from_bytes(b"\x90\x01") == "9001"
    assert address_from_bytes(b"") == ""


def test_network_context():
    preview = NetworkContext.from_name("Preview")
    assert preview.network_id == 0
    assert preview.relay_url == "https://cardano-preview.blockfrost.io/api/v0"
    assert preview.address_hrp == "addr_test"
    mainnet = NetworkContext.from_name("mainnet")
    assert mainnet.network_id == 1
    assert mainnet.stake_hrp == "stake"
    with pytest.raises(ValidationError):
        NetworkContext.from_name("testnet")


def test_derived_keys_vector(mainnet, address_keys):
    payment = credential_from_public_key(address_keys.payment_public_key, KeyRole.PAYMENT)
    stake = credential_from_public_key(address_keys.stake_public_key, KeyRole.STAKING)
    assert base_address(mainnet, payment, stake) == (
        "addr1qy8ac7qqy0vtulyl7wntmsxc6wex80gvcyjy33qffrhm7sh927ysx5sftuw0dlft05dz3c7revpf7jx0xnlcjz3g69mq4afdhv"
    )
    assert reward_address(mainnet, stake) == "stake1u8j40zgr2gy4788kl54h6x3gu0pukq5lfr8nflufpg5dzaskqlx2l"
