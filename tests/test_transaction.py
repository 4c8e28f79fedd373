import pytest

from stakesign.exceptions import StatusCheckFailed, TimeoutError, ValidationError
from stakesign.modules import TransactionModule

from conftest import TX_ID, ScriptedProvider


@pytest.mark.asyncio
async def test_submit_accepts_hex_and_bytes():
    provider = ScriptedProvider()
    module = TransactionModule(provider)
    assert await module.submit("84a0a0f5f6") == TX_ID
    assert await module.submit(b"\x84\xa0\xa0\xf5\xf6") == TX_ID
    assert provider.submitted == [b"\x84\xa0\xa0\xf5\xf6"] * 2
    with pytest.raises(ValidationError):
        await module.submit(b"")


@pytest.mark.asyncio
async def test_single_check_by_default():
    provider = ScriptedProvider([False, True])
    receipt = await TransactionModule(provider).wait_for_confirmation(TX_ID, delay=0)
    assert provider.checks == 1
    assert not receipt.confirmed
    assert receipt.status_known


@pytest.mark.asyncio
async def test_polls_until_confirmed():
    provider = ScriptedProvider([False, False, True, True])
    receipt = await TransactionModule(provider).wait_for_confirmation(TX_ID, delay=0, attempts=5)
    assert provider.checks == 3
    assert receipt.confirmed
    assert receipt.status.block == "b"


@pytest.mark.asyncio
async def test_status_failure_becomes_warning(caplog):
    provider = ScriptedProvider([StatusCheckFailed(TX_ID, "bad gateway", code=502)])
    receipt = await TransactionModule(provider).wait_for_confirmation(TX_ID, delay=0)
    assert receipt.tx_id == TX_ID
    assert receipt.status is None
    assert not receipt.status_known
    assert "bad gateway" in receipt.status_error
    assert any(r.levelname == "WARNING" for r in caplog.records)


@pytest.mark.asyncio
async def test_recovers_after_failed_check():
    provider = ScriptedProvider([StatusCheckFailed(TX_ID, "oops"), True])
    receipt = await TransactionModule(provider).wait_for_confirmation(TX_ID, delay=0, attempts=2)
    assert receipt.confirmed
    assert receipt.status_error is None


@pytest.mark.asyncio
async def test_invalid_arguments():
    module = TransactionModule(ScriptedProvider())
    with pytest.raises(ValidationError):
        await module.wait_for_confirmation("nothex", delay=0)
    with pytest.raises(ValidationError):
        await module.wait_for_confirmation(TX_ID, delay=0, attempts=0)


@pytest.mark.asyncio
async def test_status_timeout_becomes_warning(caplog):
    provider = ScriptedProvider([TimeoutError("GET timed out")])
    receipt = await TransactionModule(provider).wait_for_confirmation(TX_ID, delay=0)
    assert receipt.tx_id == TX_ID
    assert not receipt.status_known
    assert "timed out" in receipt.status_error
    assert any(r.levelname == "WARNING" for r in caplog.records)


@pytest.mark.asyncio
async def test_get_status_still_raises_timeout():
    module = TransactionModule(ScriptedProvider([TimeoutError("GET timed out")]))
    with pytest.raises(TimeoutError):
        await module.get_status(TX_ID)
