"""
D2 Event Listener.

Watches the D2 idea NFT gate contract for on-chain events and fans each
observed event out to internal handlers (idea minting, user notification,
order persistence) through an in-process event bus.
"""

__version__ = "0.1.0"


class EventListenerError(Exception):
    """Base exception for all event listener errors."""

    pass


class UnknownNetworkError(EventListenerError):
    """Network name is not in the supported network table."""
    pass


class MissingCredentialError(EventListenerError):
    """Private key is absent or empty."""
    pass


class ChainIdMismatchError(EventListenerError):
    """RPC endpoint reports a different chain id than expected."""

    def __init__(self, network: str, expected: int, actual: int):
        super().__init__(
            f"RPC for {network} reports chain id {actual}, expected {expected}"
        )
        self.network = network
        self.expected = expected
        self.actual = actual
