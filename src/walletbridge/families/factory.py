"""Factory for chain-family handlers."""

from typing import Mapping, Optional

from walletbridge.chains import ChainFamily, Network
from walletbridge.config import Settings, get_settings
from walletbridge.families.base import ChainHandler
from walletbridge.rpc.fallback import RpcFallbackResolver

# Cache for default handler instances
_handler_cache: dict[ChainFamily, ChainHandler] = {}

HandlerMap = Mapping[ChainFamily, ChainHandler]


def create_chain_handlers(
    settings: Optional[Settings] = None,
    resolver: Optional[RpcFallbackResolver] = None,
) -> dict[ChainFamily, ChainHandler]:
    """Build one handler per chain family.

    Args:
        settings: Settings override
        resolver: Solana endpoint resolver override (tests inject fake clients)
    """
    from walletbridge.families.evm import EvmChainHandler
    from walletbridge.families.solana import SolanaChainHandler

    settings = settings or get_settings()
    return {
        ChainFamily.EVM: EvmChainHandler(settings=settings),
        ChainFamily.SOLANA: SolanaChainHandler(settings=settings, resolver=resolver),
    }


def get_chain_handler(
    network: "str | Network", handlers: Optional[HandlerMap] = None
) -> ChainHandler:
    """Get the handler serving a network's chain family.

    Args:
        network: Target network
        handlers: Explicit handler map; the cached defaults are used if None

    Raises:
        ValueError: For unknown networks
    """
    family = Network.parse(network).family

    if handlers is not None:
        return handlers[family]

    if not _handler_cache:
        _handler_cache.update(create_chain_handlers())
    return _handler_cache[family]


def reset_handler_cache() -> None:
    """Drop cached default handlers (useful for testing)."""
    _handler_cache.clear()
