"""Transient data model shared by detection, connection and transfer.

Nothing here is persisted; every object lives for one UI operation or, for
WalletConnection, one UI session.
"""

import secrets
from dataclasses import dataclass, field
from typing import Any, Optional

from walletbridge.chains import Network


@dataclass
class DetectedWallet:
    """A wallet identity and the provider objects found for it."""

    id: str
    display_name: str
    installed: bool
    supported_networks: frozenset[Network]
    install_url: str = ""
    evm_provider: Optional[Any] = None
    solana_provider: Optional[Any] = None

    def provider_for(self, network: Network) -> Optional[Any]:
        """Provider handle serving the network's chain family."""
        if network.is_evm:
            return self.evm_provider
        return self.solana_provider

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.display_name,
            "installed": self.installed,
            "networks": sorted(n.value for n in self.supported_networks),
            "install_url": self.install_url,
        }


@dataclass
class WalletConnection:
    """Normalized handle returned by ConnectionManager.connect()."""

    address: str
    network: Network
    provider: Any
    wallet_id: str
    connected: bool = True
    chain_id: Optional[int] = None  # last chain id reported by an EVM wallet
    id: str = field(default_factory=lambda: secrets.token_hex(8))


@dataclass
class TransferRequest:
    """A native or token transfer, amounts in human units."""

    recipient: str
    amount_human: str
    decimals: int
    token_identifier: Optional[str] = None  # ERC-20 contract or SPL mint; None = native
    balance_human: Optional[str] = None     # caller-supplied balance for the local pre-check

    @property
    def is_native(self) -> bool:
        return not self.token_identifier


@dataclass
class FeeEstimate:
    """Estimated network fee for a pending transfer."""

    gas_limit_or_units: int        # gas units (EVM) or signatures (Solana)
    unit_price: int                # wei per gas / lamports per signature
    estimated_cost_human: str      # in the native currency
    fee_symbol: str = "ETH"
    is_approximate: bool = False   # True when a nominal constant was used

    @property
    def total_base_units(self) -> int:
        return self.gas_limit_or_units * self.unit_price


@dataclass
class TransferResult:
    """Submitted transaction; confirmation is left to the caller."""

    tx_identifier: str  # EVM tx hash or Solana signature
    network: Network
    explorer_url: str = ""
