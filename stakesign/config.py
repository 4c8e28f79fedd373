"""Runtime configuration for stakesign.

Values come from the process environment, optionally seeded from a ``.env``
file. Settings are read once and passed around; nothing here is global.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import load_dotenv

from .constants import CONFIRMATION_DELAY, DEFAULT_TIMEOUT, STAKING_API_ENDPOINT, Network
from .crypto.signature import DEFAULT_BACKEND
from .exceptions import ConfigurationError, ValidationError
from .network import NetworkContext
from .utils.validation import mask_secret, validate_address_index

__all__ = ["Settings"]

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def _parse_number(env: Mapping[str, str], name: str, default: float, kind: type) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = kind(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative")
    return value


@dataclass(frozen=True)
class Settings:
    """Configuration for one run."""
    network: str = Network.PREVIEW.value
    api_base_url: str = STAKING_API_ENDPOINT
    api_key: Optional[str] = field(default=None, repr=False)
    blockfrost_api_key: Optional[str] = field(default=None, repr=False)
    mnemonic: Optional[str] = field(default=None, repr=False)
    address_index: int = 0
    request_timeout: float = DEFAULT_TIMEOUT
    signing_backend: str = DEFAULT_BACKEND
    confirmation_delay: float = CONFIRMATION_DELAY
    verbose: bool = False

    @classmethod
    def from_env(
        cls,
        env_file: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> "Settings":
        """
        Load settings from the environment.

        Args:
            env_file: ``.env`` file to load first (default: search from the
                working directory); existing variables are not overridden
            environ: Mapping to read instead of ``os.environ``; no ``.env``
                file is loaded when given

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        if environ is None:
            load_dotenv(env_file)
            environ = os.environ

        try:
            address_index = validate_address_index(int(environ.get("ADDRESS_INDEX", "0")))
        except (ValueError, ValidationError) as e:
            raise ConfigurationError(
                f"ADDRESS_INDEX must be an integer in [0, 2^31 - 1], got {environ.get('ADDRESS_INDEX')!r}"
            ) from e

        settings = cls(
            network=environ.get("CARDANO_NETWORK", Network.PREVIEW.value).strip().lower(),
            api_base_url=environ.get("API_BASE_URL", STAKING_API_ENDPOINT).rstrip("/"),
            api_key=environ.get("API_KEY") or None,
            blockfrost_api_key=environ.get("BLOCKFROST_API_KEY") or None,
            mnemonic=environ.get("CARDANO_MNEMONIC") or None,
            address_index=address_index,
            request_timeout=_parse_number(environ, "REQUEST_TIMEOUT", DEFAULT_TIMEOUT, float),
            signing_backend=environ.get("SIGNING_BACKEND", DEFAULT_BACKEND),
            confirmation_delay=_parse_number(environ, "CONFIRMATION_DELAY", CONFIRMATION_DELAY, float),
            verbose=environ.get("VERBOSE", "").strip().lower() in _TRUTHY,
        )
        logger.debug(f"Loaded settings: {settings!r}")
        return settings

    def network_context(self) -> NetworkContext:
        """Resolve the configured network (raises ConfigurationError if unknown)."""
        try:
            return NetworkContext.from_name(self.network)
        except ValidationError as e:
            raise ConfigurationError(f"CARDANO_NETWORK: {e.message}") from e

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("API_KEY is not set")
        return self.api_key

    def require_blockfrost_api_key(self) -> str:
        if not self.blockfrost_api_key:
            raise ConfigurationError("BLOCKFROST_API_KEY is not set")
        return self.blockfrost_api_key

    def require_mnemonic(self) -> str:
        if not self.mnemonic:
            raise ConfigurationError("CARDANO_MNEMONIC is not set")
        return self.mnemonic

    def __repr__(self) -> str:
        return (
            f"Settings(network={self.network!r}, api_base_url={self.api_base_url!r}, "
            f"api_key={mask_secret(self.api_key or '')!r}, "
            f"blockfrost_api_key={mask_secret(self.blockfrost_api_key or '')!r}, "
            f"mnemonic={'<set>' if self.mnemonic else None}, "
            f"address_index={self.address_index}, request_timeout={self.request_timeout}, "
            f"signing_backend={self.signing_backend!r}, verbose={self.verbose})"
        )
