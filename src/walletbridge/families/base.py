"""Base interface for chain-family handlers.

One handler per chain family (EVM, Solana) owns everything that differs
between them:

1. Asking the wallet for an account
2. Making sure the wallet is on the right network
3. Pricing a transfer
4. Building the transaction and handing it to the wallet for signing

Components above this layer only dispatch on ``network.family``.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from walletbridge.chains import ChainFamily, Network
from walletbridge.config import Settings, get_settings
from walletbridge.models import FeeEstimate, WalletConnection
from walletbridge.validation import PreparedTransfer


class ChainHandler(ABC):
    """Abstract base class for chain-family handlers."""

    family: ChainFamily

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    @abstractmethod
    def validate_address(self, address: str) -> str:
        """Validate an address and return its canonical form.

        Raises:
            InvalidAddress: If the address is malformed for this family
        """
        pass

    @abstractmethod
    async def connect(self, provider: Any) -> tuple[str, Optional[int]]:
        """Request account access from the wallet.

        Args:
            provider: Provider handle for this family

        Returns:
            (validated address, chain id reported by the wallet or None)
        """
        pass

    async def disconnect(self, provider: Any) -> None:
        """Drop the wallet's session. Default: nothing to do."""
        return None

    @abstractmethod
    async def ensure_network(self, provider: Any, network: Network) -> Optional[int]:
        """Make sure the wallet operates on ``network``.

        Returns:
            The chain id now active (EVM) or None
        """
        pass

    @abstractmethod
    async def estimate_fee(
        self, connection: WalletConnection, transfer: PreparedTransfer
    ) -> FeeEstimate:
        """Estimate the network fee for a prepared transfer."""
        pass

    @abstractmethod
    async def submit_transfer(
        self, connection: WalletConnection, transfer: PreparedTransfer
    ) -> str:
        """Build the transaction, have the wallet sign and send it.

        Returns:
            Transaction hash (EVM) or signature (Solana)
        """
        pass
