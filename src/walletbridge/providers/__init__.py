"""Injected wallet provider interfaces and dry-run implementations."""

from walletbridge.providers.base import (
    EvmProvider,
    PhantomNamespace,
    ProviderEnvironment,
    ProviderRpcError,
    SolanaProvider,
)

__all__ = [
    "EvmProvider",
    "PhantomNamespace",
    "ProviderEnvironment",
    "ProviderRpcError",
    "SolanaProvider",
]
