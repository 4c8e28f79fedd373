"""stakesign modules."""

from ..modules.transaction import TransactionModule
from ..modules.wallet import Wallet

__all__ = [
    "TransactionModule",
    "Wallet",
]
