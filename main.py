"""
stakesign Usage Examples

Reads configuration from the environment (or a .env file) and walks through
key derivation, inspection of an unsigned transaction, signing and submission.
"""

import asyncio
import json
import logging
import sys

from stakesign import Settings, StakeSign, StakeSignError, Wallet, inspect
from stakesign.crypto import format_path, payment_path, stake_path
from stakesign.providers import StakingAPIProvider
from stakesign.client import resolve_network
from stakesign.utils import mask_secret

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def addresses_example(settings: Settings) -> None:
    """Example 1: Derive addresses for the configured index."""
    print("\n=== Address Example ===")

    network = settings.network_context()
    with Wallet(
        settings.require_mnemonic(),
        network,
        settings.address_index,
        backend=settings.signing_backend,
    ) as wallet:
        print(f"Mnemonic: {mask_secret(settings.mnemonic, visible=8)}")
        print(f"Network: {network}")
        print(f"Stake path: {format_path(stake_path())}")
        print(f"Payment path: {format_path(payment_path(settings.address_index))}")
        print(f"Payment address: {wallet.payment_address}")
        print(f"Stake address: {wallet.stake_address}")


async def network_example(settings: Settings) -> None:
    """Example 2: Ask the staking API which network it serves."""
    print("\n=== Network Example ===")

    async with StakingAPIProvider(
        settings.network_context(),
        settings.require_api_key(),
        endpoint=settings.api_base_url,
        timeout=settings.request_timeout,
    ) as api:
        if not await api.health():
            print("Staking API is not healthy")
            return
        network = await resolve_network(api)
        print(f"API network: {network} (network id {network.network_id})")


async def sign_and_submit_example(settings: Settings, unsigned_hex: str) -> None:
    """Example 3: Inspect, sign and submit an unsigned transaction."""
    print("\n=== Sign and Submit Example ===")

    print(json.dumps(inspect(unsigned_hex).to_dict(), indent=2, default=str))

    async with StakeSign.from_settings(settings) as client:
        with client.wallet(
            settings.require_mnemonic(),
            settings.address_index,
            backend=settings.signing_backend,
        ) as wallet:
            receipt = await client.sign_and_submit(unsigned_hex, wallet, wait=True)

    print(f"Transaction: {receipt.tx_id}")
    if receipt.confirmed:
        print(f"Block: {receipt.status.block} (slot {receipt.status.slot})")
    elif receipt.status_known:
        print("Submitted, not yet confirmed")
    else:
        print(f"Submitted, status unknown: {receipt.status_error}")


async def main() -> int:
    """Run examples."""
    try:
        settings = Settings.from_env()
        if settings.verbose:
            logging.getLogger("stakesign").setLevel(logging.DEBUG)

        addresses_example(settings)

        if settings.api_key:
            await network_example(settings)

        if len(sys.argv) > 1:
            await sign_and_submit_example(settings, sys.argv[1])
    except StakeSignError as e:
        logging.error(f"{e.__class__.__name__}: {e}")
        if e.transaction_sent:
            logging.error("The transaction was submitted; do not resubmit blindly")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
