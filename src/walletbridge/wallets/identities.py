"""Known wallet identities and how injected providers are attributed to them.

Several extensions register under the same EVM namespace and most of them set
``is_metamask`` for compatibility, so flags cannot be read independently.
Identities are checked in a fixed priority order and the first match claims
the provider object:

1. phantom   - ``is_phantom``
2. coinbase  - ``is_coinbase_wallet`` (or its ``selected_provider`` is Coinbase)
3. rabby     - ``is_rabby``
4. trust     - ``is_trust``
5. rainbow   - ``is_rainbow``
6. metamask  - ``is_metamask`` and no other wallet flag

A provider object therefore resolves to at most one identity.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from walletbridge.chains import Network
from walletbridge.providers.base import EVM_WALLET_FLAGS

EVM_NETWORKS = frozenset({Network.ETHEREUM, Network.BASE})
ALL_NETWORKS = frozenset(Network)


def _flag(provider: Any, name: str) -> bool:
    return bool(getattr(provider, name, False))


def _is_coinbase(provider: Any) -> bool:
    if _flag(provider, "is_coinbase_wallet"):
        return True
    selected = getattr(provider, "selected_provider", None)
    return selected is not None and _flag(selected, "is_coinbase_wallet")


def _is_genuine_metamask(provider: Any) -> bool:
    if not _flag(provider, "is_metamask"):
        return False
    others = [flag for flag in EVM_WALLET_FLAGS if flag != "is_metamask"]
    return not any(_flag(provider, flag) for flag in others)


@dataclass(frozen=True)
class WalletIdentity:
    """Registration of a wallet the detector knows about."""

    id: str
    display_name: str
    supported_networks: frozenset[Network]
    install_url: str
    priority: int
    evm_predicate: Optional[Callable[[Any], bool]] = field(default=None, compare=False)
    solana_predicate: Optional[Callable[[Any], bool]] = field(default=None, compare=False)

    def supports(self, network: Network) -> bool:
        return network in self.supported_networks


DEFAULT_IDENTITIES: tuple[WalletIdentity, ...] = (
    WalletIdentity(
        id="phantom",
        display_name="Phantom",
        supported_networks=ALL_NETWORKS,
        install_url="https://phantom.app/download",
        priority=1,
        evm_predicate=lambda p: _flag(p, "is_phantom"),
        solana_predicate=lambda p: _flag(p, "is_phantom"),
    ),
    WalletIdentity(
        id="coinbase",
        display_name="Coinbase Wallet",
        supported_networks=EVM_NETWORKS,
        install_url="https://www.coinbase.com/wallet",
        priority=2,
        evm_predicate=_is_coinbase,
    ),
    WalletIdentity(
        id="rabby",
        display_name="Rabby",
        supported_networks=EVM_NETWORKS,
        install_url="https://rabby.io",
        priority=3,
        evm_predicate=lambda p: _flag(p, "is_rabby"),
    ),
    WalletIdentity(
        id="trust",
        display_name="Trust Wallet",
        supported_networks=EVM_NETWORKS,
        install_url="https://trustwallet.com/download",
        priority=4,
        evm_predicate=lambda p: _flag(p, "is_trust"),
    ),
    WalletIdentity(
        id="rainbow",
        display_name="Rainbow",
        supported_networks=EVM_NETWORKS,
        install_url="https://rainbow.me/download",
        priority=5,
        evm_predicate=lambda p: _flag(p, "is_rainbow"),
    ),
    WalletIdentity(
        id="metamask",
        display_name="MetaMask",
        supported_networks=EVM_NETWORKS,
        install_url="https://metamask.io/download/",
        priority=6,
        evm_predicate=_is_genuine_metamask,
    ),
)


def _ordered(identities: Iterable[WalletIdentity]) -> list[WalletIdentity]:
    return sorted(identities, key=lambda identity: identity.priority)


def resolve_evm_identity(
    provider: Any, identities: Iterable[WalletIdentity] = DEFAULT_IDENTITIES
) -> Optional[str]:
    """Attribute an EVM provider object to exactly one wallet id (or None)."""
    for identity in _ordered(identities):
        if identity.evm_predicate is not None and identity.evm_predicate(provider):
            return identity.id
    return None


def resolve_solana_identity(
    provider: Any, identities: Iterable[WalletIdentity] = DEFAULT_IDENTITIES
) -> Optional[str]:
    """Attribute a Solana provider object to exactly one wallet id (or None)."""
    for identity in _ordered(identities):
        if identity.solana_predicate is not None and identity.solana_predicate(provider):
            return identity.id
    return None


def get_identity(
    wallet_id: str, identities: Iterable[WalletIdentity] = DEFAULT_IDENTITIES
) -> Optional[WalletIdentity]:
    """Look up an identity by id (case-insensitive)."""
    wanted = wallet_id.strip().lower()
    for identity in identities:
        if identity.id == wanted:
            return identity
    return None
