"""Provider implementations for stakesign."""

from ..providers.base import BaseProvider
from ..providers.http import HTTPProvider
from ..providers.blockfrost import BlockfrostProvider
from ..providers.staking_api import StakingAPIProvider

__all__ = [
    "BaseProvider",
    "HTTPProvider",
    "BlockfrostProvider",
    "StakingAPIProvider",
]
