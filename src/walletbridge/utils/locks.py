"""Concurrency control for wallet requests.

A wallet can only show one confirmation prompt at a time, so each connection
allows a single in-flight transfer. A second request on the same connection
is rejected immediately instead of queueing behind the first.
"""

import asyncio
import logging
from typing import Optional

from walletbridge.errors import RequestAlreadyPending

logger = logging.getLogger(__name__)

# Global lock registry: connection id -> asyncio.Lock
_connection_locks: dict[str, asyncio.Lock] = {}
_registry_lock = asyncio.Lock()


async def get_connection_lock(connection_id: str) -> asyncio.Lock:
    """Get or create the lock for a connection.

    Args:
        connection_id: WalletConnection.id

    Returns:
        asyncio.Lock for the connection
    """
    async with _registry_lock:
        if connection_id not in _connection_locks:
            _connection_locks[connection_id] = asyncio.Lock()
        return _connection_locks[connection_id]


class PendingRequestGuard:
    """Context manager holding a connection's request slot.

    Example:
        async with PendingRequestGuard(connection.id, operation="transfer"):
            tx_hash = await provider.request("eth_sendTransaction", [tx])

    Raises:
        RequestAlreadyPending: If another request holds the slot
    """

    def __init__(self, connection_id: str, operation: str = "request"):
        self.connection_id = connection_id
        self.operation = operation
        self._lock: Optional[asyncio.Lock] = None
        self._acquired = False

    async def __aenter__(self) -> "PendingRequestGuard":
        self._lock = await get_connection_lock(self.connection_id)

        # No await between the check and acquire(): an unlocked asyncio.Lock
        # is taken without yielding to the loop.
        if self._lock.locked():
            logger.warning(
                f"Rejected {self.operation} on connection {self.connection_id}: request pending"
            )
            raise RequestAlreadyPending(
                f"A {self.operation} is already pending on this connection"
            )

        await self._lock.acquire()
        self._acquired = True
        logger.debug(f"Request slot taken on {self.connection_id}: {self.operation}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._acquired and self._lock:
            self._lock.release()
            self._acquired = False
            logger.debug(f"Request slot released on {self.connection_id}: {self.operation}")
        return False


def is_request_pending(connection_id: str) -> bool:
    """Check whether a connection currently has a request in flight."""
    lock = _connection_locks.get(connection_id)
    return lock is not None and lock.locked()


def release_connection_lock(connection_id: str) -> None:
    """Forget a connection's lock (called on disconnect)."""
    lock = _connection_locks.get(connection_id)
    if lock is not None and not lock.locked():
        del _connection_locks[connection_id]


def clear_connection_locks() -> None:
    """Clear all connection locks (useful for testing)."""
    _connection_locks.clear()
