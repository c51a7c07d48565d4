"""Injected wallet provider interfaces.

Browser extensions expose their capabilities through injected objects. Here
those objects are plain Python classes handed to the detector through a
:class:`ProviderEnvironment` instead of being read from globals.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Optional

# Flag attributes wallets set on their EVM provider object
EVM_WALLET_FLAGS = (
    "is_metamask",
    "is_coinbase_wallet",
    "is_phantom",
    "is_trust",
    "is_rainbow",
    "is_rabby",
)


class ProviderRpcError(Exception):
    """Error raised by a provider request (EIP-1193 shape)."""

    def __init__(self, code: int, message: str, data: Optional[Any] = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"[{code}] {message}")


class EvmProvider(ABC):
    """EIP-1193 style provider: one ``request`` entry point plus events."""

    is_metamask: bool = False
    is_coinbase_wallet: bool = False
    is_phantom: bool = False
    is_trust: bool = False
    is_rainbow: bool = False
    is_rabby: bool = False

    def __init__(self) -> None:
        # Multi-injection: some extensions expose every provider in a list
        self.providers: list["EvmProvider"] = []
        # Coinbase's multi-provider wrapper points at the active one here
        self.selected_provider: Optional["EvmProvider"] = None
        self._listeners: dict[str, list[Callable]] = defaultdict(list)

    @abstractmethod
    async def request(self, method: str, params: Optional[list] = None) -> Any:
        """Send an RPC request to the wallet.

        Args:
            method: JSON-RPC method (eth_requestAccounts, eth_chainId, ...)
            params: Positional parameters

        Returns:
            The method result

        Raises:
            ProviderRpcError: On rejection or failure
        """
        raise NotImplementedError()

    def on(self, event: str, handler: Callable) -> None:
        """Subscribe to ``accountsChanged`` / ``chainChanged``."""
        self._listeners[event].append(handler)

    def remove_listener(self, event: str, handler: Callable) -> None:
        """Unsubscribe a handler; unknown handlers are ignored."""
        handlers = self._listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, *args: Any) -> None:
        """Deliver an event to subscribers (called by the provider itself)."""
        for handler in list(self._listeners.get(event, [])):
            handler(*args)


class SolanaProvider(ABC):
    """Solana wallet-standard style provider."""

    is_phantom: bool = False

    def __init__(self) -> None:
        self.public_key: Optional[Any] = None
        self.is_connected: bool = False

    @abstractmethod
    async def connect(self) -> Any:
        """Ask the user for access; returns the public key (``str()``-able)."""
        raise NotImplementedError()

    @abstractmethod
    async def disconnect(self) -> None:
        """Drop the site's access."""
        raise NotImplementedError()

    @abstractmethod
    async def sign_and_send_transaction(self, transaction: Any) -> Any:
        """Sign with the wallet key and broadcast.

        The wallet fills the recent blockhash if the transaction carries the
        default (all-zero) one.

        Returns:
            ``{"signature": str}`` or the signature itself
        """
        raise NotImplementedError()


@dataclass
class PhantomNamespace:
    """Phantom's namespaced injection (``window.phantom``)."""

    ethereum: Optional[EvmProvider] = None
    solana: Optional[SolanaProvider] = None


@dataclass
class ProviderEnvironment:
    """Everything a page could see injected by wallet extensions."""

    ethereum: Optional[EvmProvider] = None
    solana: Optional[SolanaProvider] = None
    phantom: Optional[PhantomNamespace] = None

    def evm_candidates(self) -> list[EvmProvider]:
        """Every distinct EVM provider object, ambient one first."""
        candidates: list[EvmProvider] = []

        def add(provider: Optional[EvmProvider]) -> None:
            if provider is not None and all(provider is not c for c in candidates):
                candidates.append(provider)

        if self.ethereum is not None:
            add(self.ethereum)
            for sub in getattr(self.ethereum, "providers", None) or []:
                add(sub)
        if self.phantom is not None:
            add(self.phantom.ethereum)
        return candidates

    def solana_candidates(self) -> list[SolanaProvider]:
        """Every distinct Solana provider object, namespaced one first."""
        candidates: list[SolanaProvider] = []
        if self.phantom is not None and self.phantom.solana is not None:
            candidates.append(self.phantom.solana)
        if self.solana is not None and all(self.solana is not c for c in candidates):
            candidates.append(self.solana)
        return candidates
