import os

import pytest

from stakesign.config import Settings
from stakesign.exceptions import ConfigurationError


def test_defaults():
    settings = Settings.from_env(environ={})
    assert settings.network == "preview"
    assert settings.api_base_url == "http://localhost:3000"
    assert settings.address_index == 0
    assert settings.request_timeout == 30
    assert settings.signing_backend == "nacl"
    assert settings.verbose is False
    assert settings.network_context().network_id == 0


def test_values_from_environment():
    settings = Settings.from_env(environ={
        "CARDANO_NETWORK": "MAINNET",
        "API_BASE_URL": "https://api.example.com/",
        "API_KEY": "secret-api-key",
        "ADDRESS_INDEX": "7",
        "REQUEST_TIMEOUT": "12.5",
        "CONFIRMATION_DELAY": "0",
        "VERBOSE": "true",
    })
    assert settings.network == "mainnet"
    assert settings.api_base_url == "https://api.example.com"
    assert settings.require_api_key() == "secret-api-key"
    assert settings.address_index == 7
    assert settings.request_timeout == 12.5
    assert settings.confirmation_delay == 0
    assert settings.verbose is True


def test_env_file(tmp_path, monkeypatch):
    monkeypatch.delenv("ADDRESS_INDEX", raising=False)
    monkeypatch.setenv("CARDANO_NETWORK", "mainnet")
    env_file = tmp_path / ".env"
    env_file.write_text("CARDANO_NETWORK=preprod\nADDRESS_INDEX=4\n")
    try:
        settings = Settings.from_env(env_file)
    finally:
        os.environ.pop("ADDRESS_INDEX", None)

    assert settings.address_index == 4
    # Variables already set win over the file
    assert settings.network == "mainnet"


@pytest.mark.parametrize("environ", [
    {"ADDRESS_INDEX": "-1"},
    {"ADDRESS_INDEX": "two"},
    {"ADDRESS_INDEX": str(2 ** 31)},
    {"REQUEST_TIMEOUT": "soon"},
    {"CONFIRMATION_DELAY": "-5"},
])
def test_invalid_values(environ):
    with pytest.raises(ConfigurationError):
        Settings.from_env(environ=environ)


def test_required_values():
    settings = Settings.from_env(environ={"CARDANO_NETWORK": "testnet"})
    for accessor in (
        settings.require_api_key,
        settings.require_blockfrost_api_key,
        settings.require_mnemonic,
    ):
        with pytest.raises(ConfigurationError):
            accessor()
    with pytest.raises(ConfigurationError):
        settings.network_context()


def test_repr_masks_secrets():
    mnemonic = "abandon " * 11 + "about"
    settings = Settings.from_env(environ={
        "CARDANO_MNEMONIC": mnemonic,
        "API_KEY": "supersecretvalue",
    })
    text = repr(settings)
    assert "about" not in text
    assert "supersecretvalue" not in text
    assert settings.require_mnemonic() == mnemonic
