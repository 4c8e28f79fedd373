import pytest

from stakesign import connect
from stakesign.client import StakeSign
from stakesign.codec import decode_bytes
from stakesign.config import Settings
from stakesign.crypto.keys import PublicKey
from stakesign.exceptions import (
    ConfigurationError,
    MalformedEnvelope,
    MalformedReason,
    StakeSignError,
    TimeoutError,
)
from stakesign.modules import Wallet
from stakesign.providers import BlockfrostProvider, StakingAPIProvider
from stakesign.witness import SigningState, hash_body

from conftest import MNEMONIC, TX_ID, ScriptedProvider, make_body, make_envelope


def test_wallet_addresses(preview, mainnet):
    with Wallet(MNEMONIC, preview) as wallet:
        assert wallet.payment_address.startswith("addr_test1q")
        assert wallet.stake_address.startswith("stake_test1u")
        assert wallet.enterprise_address.startswith("addr_test1v")
        assert wallet.payment_path == "m/1852'/1815'/0'/0/0"
        assert wallet.stake_path == "m/1852'/1815'/0'/2/0"
        preview_stake_hash = wallet.stake_credential.key_hash

    with Wallet(MNEMONIC, mainnet) as wallet:
        assert wallet.payment_address.startswith("addr1q")
        assert wallet.stake_address.startswith("stake1u")
        assert wallet.stake_credential.key_hash == preview_stake_hash


def test_wallet_mainnet_vector(mainnet):
    with Wallet(MNEMONIC, mainnet) as wallet:
        assert wallet.payment_address == (
            "addr1qy8ac7qqy0vtulyl7wntmsxc6wex80gvcyjy33qffrhm7sh927ysx5sftuw0dlft05dz3c7revpf7jx0xnlcjz3g69mq4afdhv"
        )
        assert wallet.stake_address == "stake1u8j40zgr2gy4788kl54h6x3gu0pukq5lfr8nflufpg5dzaskqlx2l"


def test_wallet_indices_share_stake_address():
    first = Wallet(MNEMONIC, "preprod", 0)
    second = Wallet(MNEMONIC, "preprod", 1)
    assert first.payment_address != second.payment_address
    assert first.stake_address == second.stake_address


def test_wallet_close_drops_keys(preview):
    wallet = Wallet(MNEMONIC, preview)
    assert wallet.keys
    wallet.close()
    assert wallet.closed
    with pytest.raises(StakeSignError):
        wallet.keys
    assert "abandon" not in repr(wallet)


def test_wallet_sign_selects_keys(preview, address_keys):
    stake_hash = address_keys.stake_public_key.hash()
    delegation = make_envelope(body=make_body({4: [[2, [0, stake_hash], b"\x01" * 28]]}))

    with Wallet(MNEMONIC, preview) as wallet:
        session = wallet.sign(make_envelope().hex())
        assert session.state == SigningState.REASSEMBLED
        assert len(session.signed_envelope.witness_set.vkey_witnesses) == 1

        session = wallet.sign(delegation.hex())
        vkeys = [w.vkey for w in session.signed_envelope.witness_set.vkey_witnesses]
        assert vkeys == [
            address_keys.payment_public_key.to_bytes(),
            address_keys.stake_public_key.to_bytes(),
        ]


@pytest.mark.parametrize("certificates", [[5], [[2, [0]]]])
def test_wallet_sign_rejects_malformed_certificates(preview, certificates):
    unsigned = make_envelope(body=make_body({4: certificates})).hex()
    with Wallet(MNEMONIC, preview) as wallet:
        with pytest.raises(MalformedEnvelope) as exc:
            wallet.sign(unsigned)
    assert exc.value.reason == MalformedReason.INVALID_STRUCTURE
    assert "certificates" in str(exc.value)


@pytest.mark.asyncio
async def test_sign_and_submit(preview, unsigned_hex):
    provider = ScriptedProvider([True])
    client = StakeSign(provider, preview, confirmation_delay=0)

    async with client:
        with client.wallet(MNEMONIC) as wallet:
            receipt = await client.sign_and_submit(unsigned_hex, wallet)
            assert receipt.tx_id == TX_ID
            assert receipt.status is None

            receipt = await client.sign_and_submit(unsigned_hex, wallet, wait=True)
            assert receipt.confirmed

    signed = decode_bytes(provider.submitted[0])
    tx_hash = hash_body(signed.body)
    (witness,) = signed.witness_set.vkey_witnesses
    assert PublicKey(witness.vkey).verify(witness.signature, tx_hash)


@pytest.mark.asyncio
async def test_sign_and_submit_status_timeout_keeps_receipt(preview, unsigned_hex):
    provider = ScriptedProvider([TimeoutError("GET timed out")])
    client = StakeSign(provider, preview, confirmation_delay=0)

    with client.wallet(MNEMONIC) as wallet:
        receipt = await client.sign_and_submit(unsigned_hex, wallet, wait=True)

    assert len(provider.submitted) == 1
    assert receipt.tx_id == TX_ID
    assert not receipt.confirmed
    assert not receipt.status_known
    assert "timed out" in receipt.status_error


@pytest.mark.asyncio
async def test_sign_and_submit_rejects_other_network(unsigned_hex):
    client = StakeSign(ScriptedProvider(), "preview")
    with pytest.raises(StakeSignError):
        await client.sign_and_submit(unsigned_hex, Wallet(MNEMONIC, "mainnet"))


def test_connect_factory():
    client = connect("preprod", project_id="key")
    assert isinstance(client.provider, BlockfrostProvider)
    assert client.network.relay_segment == "preprod"

    client = connect("mainnet", provider="staking-api", api_key="secret")
    assert isinstance(client.provider, StakingAPIProvider)

    with pytest.raises(ValueError):
        connect("preview", provider="websocket")


def test_client_from_settings():
    settings = Settings.from_env(environ={"CARDANO_NETWORK": "preprod", "BLOCKFROST_API_KEY": "bf"})
    client = StakeSign.from_settings(settings)
    assert isinstance(client.provider, BlockfrostProvider)

    with pytest.raises(ConfigurationError):
        StakeSign.from_settings(settings, provider="staking-api")
