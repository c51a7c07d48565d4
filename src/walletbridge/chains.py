"""Network definitions for the three supported chains.

Two chain families share one interface:
- EVM: Ethereum mainnet, Base (L2)
- Solana

EVM entries carry everything a wallet needs for ``wallet_addEthereumChain``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from walletbridge.config import get_settings


class ChainFamily(str, Enum):
    """Account/transaction model a network belongs to."""

    EVM = "evm"
    SOLANA = "solana"


class Network(str, Enum):
    """Supported networks."""

    ETHEREUM = "ethereum"
    BASE = "base"
    SOLANA = "solana"

    @property
    def family(self) -> ChainFamily:
        if self is Network.SOLANA:
            return ChainFamily.SOLANA
        return ChainFamily.EVM

    @property
    def is_evm(self) -> bool:
        return self.family is ChainFamily.EVM

    @classmethod
    def parse(cls, value: "str | Network") -> "Network":
        """Accept an enum member or its case-insensitive name/value."""
        if isinstance(value, Network):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown network '{value}'. Available: {[n.value for n in cls]}"
            ) from None


@dataclass(frozen=True)
class NativeCurrency:
    """Native currency descriptor (EIP-3085 shape)."""

    name: str
    symbol: str
    decimals: int


@dataclass
class ChainConfig:
    """Configuration for a network."""

    # Required fields (no defaults) - must come first
    network: Network
    name: str
    native_currency: NativeCurrency
    explorer_url: str

    # Optional fields (with defaults)
    chain_id: Optional[int] = None  # EVM chains only
    rpc_urls: list[str] = field(default_factory=list)
    explorer_tx_path: str = "/tx/"

    @property
    def family(self) -> ChainFamily:
        return self.network.family

    @property
    def chain_id_hex(self) -> Optional[str]:
        """Canonical ``0x``-prefixed chain id used by EVM wallets."""
        if self.chain_id is None:
            return None
        return hex(self.chain_id)

    def add_chain_params(self) -> dict:
        """Full descriptor for ``wallet_addEthereumChain``.

        Raises:
            ValueError: For non-EVM networks
        """
        if self.chain_id is None:
            raise ValueError(f"{self.name} cannot be registered on an EVM wallet")
        return {
            "chainId": self.chain_id_hex,
            "chainName": self.name,
            "nativeCurrency": {
                "name": self.native_currency.name,
                "symbol": self.native_currency.symbol,
                "decimals": self.native_currency.decimals,
            },
            "rpcUrls": list(self.rpc_urls),
            "blockExplorerUrls": [self.explorer_url],
        }

    def explorer_tx_url(self, tx_identifier: str) -> str:
        """Block explorer link for a transaction hash or signature."""
        return f"{self.explorer_url}{self.explorer_tx_path}{tx_identifier}"


ETHER = NativeCurrency(name="Ethereum", symbol="ETH", decimals=18)
SOL = NativeCurrency(name="Solana", symbol="SOL", decimals=9)


def _build_chains() -> dict[Network, ChainConfig]:
    settings = get_settings()
    return {
        # Ethereum mainnet
        Network.ETHEREUM: ChainConfig(
            network=Network.ETHEREUM,
            name="Ethereum Mainnet",
            native_currency=ETHER,
            explorer_url="https://etherscan.io",
            chain_id=1,
            rpc_urls=[settings.get_rpc_url(Network.ETHEREUM.value)],
        ),
        # Base (OP-stack L2), 0x2105
        Network.BASE: ChainConfig(
            network=Network.BASE,
            name="Base",
            native_currency=ETHER,
            explorer_url="https://basescan.org",
            chain_id=8453,
            rpc_urls=[settings.get_rpc_url(Network.BASE.value)],
        ),
        # Solana mainnet-beta
        Network.SOLANA: ChainConfig(
            network=Network.SOLANA,
            name="Solana Mainnet",
            native_currency=SOL,
            explorer_url="https://solscan.io",
            rpc_urls=settings.solana_endpoints,
        ),
    }


CHAINS: dict[Network, ChainConfig] = _build_chains()


# ======================
# Helper Functions
# ======================

def get_chain(network: "str | Network") -> ChainConfig:
    """Get chain configuration. Raises ``ValueError`` for unknown networks."""
    return CHAINS[Network.parse(network)]


def get_all_chains() -> list[ChainConfig]:
    """Get all chain configurations."""
    return list(CHAINS.values())


def get_evm_chains() -> list[ChainConfig]:
    """Get EVM-compatible chains (Ethereum, Base)."""
    return [c for c in CHAINS.values() if c.chain_id is not None]


def network_for_chain_id(chain_id: int) -> Optional[Network]:
    """Map an EVM chain id reported by a wallet back to a supported network."""
    for chain in get_evm_chains():
        if chain.chain_id == chain_id:
            return chain.network
    return None
