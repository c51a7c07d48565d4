"""Chain-family handlers (EVM, Solana)."""

from walletbridge.families.base import ChainHandler
from walletbridge.families.factory import create_chain_handlers, get_chain_handler

__all__ = ["ChainHandler", "create_chain_handlers", "get_chain_handler"]
