"""Network context for stakesign."""

from dataclasses import dataclass
from typing import Union

from .constants import (
    ADDRESS_HRP,
    BLOCKFROST_ENDPOINT,
    NETWORK_IDS,
    RELAY_SEGMENTS,
    STAKE_HRP,
    Network,
)
from .exceptions import ValidationError

__all__ = ["NetworkContext"]


@dataclass(frozen=True)
class NetworkContext:
    """
    Everything network-dependent, resolved once per operation.

    Address builders and providers take this instead of reading globals.
    """
    network: Network
    network_id: int
    relay_segment: str
    address_hrp: str
    stake_hrp: str

    @property
    def relay_url(self) -> str:
        return BLOCKFROST_ENDPOINT.format(segment=self.relay_segment)

    @property
    def is_mainnet(self) -> bool:
        return self.network_id == 1

    @classmethod
    def from_name(cls, name: Union[str, Network]) -> "NetworkContext":
        """
        Build the context for a network name.

        Args:
            name: "mainnet", "preprod" or "preview" (case-insensitive)

        Raises:
            ValidationError: If the name is not a known network
        """
        try:
            network = Network(name.lower() if isinstance(name, str) else name)
        except ValueError:
            choices = ", ".join(n.value for n in Network)
            raise ValidationError(
                f"Unknown network {name!r}; expected one of: {choices}"
            ) from None

        network_id = NETWORK_IDS[network]
        return cls(
            network=network,
            network_id=network_id,
            relay_segment=RELAY_SEGMENTS[network],
            address_hrp=ADDRESS_HRP[network_id],
            stake_hrp=STAKE_HRP[network_id],
        )

    def __str__(self) -> str:
        return self.network.value
