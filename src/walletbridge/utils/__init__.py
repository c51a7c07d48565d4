"""Utility modules for walletbridge."""

from walletbridge.utils.locks import PendingRequestGuard, get_connection_lock

__all__ = ["PendingRequestGuard", "get_connection_lock"]
