import cbor2
import pytest

from stakesign.crypto.hd import derive_address_keys
from stakesign.network import NetworkContext
from stakesign.providers.base import BaseProvider
from stakesign.types.transaction import TransactionStatus


MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)

# CIP-19 test keys
PAYMENT_KEY_HASH = bytes.fromhex("9493315cd92eb5d8c4304e67b7e16ae36d61d34502694657811a2c8e")
STAKE_KEY_HASH = bytes.fromhex("337b62cfff6403a06a3acbc34f8c46003c69fe79a3628cefa9c47251")

INPUT_TX = bytes.fromhex("11" * 32)

TX_ID = "ef" * 32


def make_body(extra=None):
    body = {
        0: [[INPUT_TX, 0]],
        1: [[bytes([0x01]) + PAYMENT_KEY_HASH + STAKE_KEY_HASH, 2_000_000]],
        2: 170_000,
        3: 50_000_000,
    }
    body.update(extra or {})
    return body


def make_envelope(body=None, witness_set=None, is_valid=True, aux=None, legacy=False):
    items = [body if body is not None else make_body(), witness_set or {}]
    if not legacy:
        items.append(is_valid)
    items.append(aux)
    return cbor2.dumps(items)


@pytest.fixture
def mnemonic():
    return MNEMONIC


@pytest.fixture
def preview():
    return NetworkContext.from_name("preview")


@pytest.fixture
def mainnet():
    return NetworkContext.from_name("mainnet")


@pytest.fixture(scope="session")
def address_keys():
    return derive_address_keys(MNEMONIC, 0)


@pytest.fixture
def unsigned_hex():
    return make_envelope().hex()


class ScriptedProvider(BaseProvider):
    """Provider answering status queries from a list of outcomes."""

    def __init__(self, outcomes=()):
        super().__init__("preview")
        self.outcomes = list(outcomes)
        self.submitted = []
        self.checks = 0

    async def submit_transaction(self, signed_tx):
        self.submitted.append(signed_tx)
        return TX_ID

    async def get_transaction_status(self, tx_id):
        self.checks += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return TransactionStatus(tx_id=tx_id, confirmed=outcome, block="b" if outcome else None)

    async def connect(self):
        pass

    async def disconnect(self):
        pass

    @property
    def is_connected(self):
        return True
