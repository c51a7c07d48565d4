"""Solana RPC access with ordered endpoint fallback."""

from walletbridge.rpc.fallback import AllEndpointsFailed, RpcFallbackResolver, try_in_order
from walletbridge.rpc.solana_client import RpcError, SolanaRpcClient

__all__ = [
    "AllEndpointsFailed",
    "RpcError",
    "RpcFallbackResolver",
    "SolanaRpcClient",
    "try_in_order",
]
