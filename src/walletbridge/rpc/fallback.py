"""Ordered endpoint fallback.

``try_in_order`` is the reusable combinator: run an operation against each
endpoint in turn, stop at the first success. Attempts are strictly
sequential so a transaction is never submitted through two endpoints.
"""

import logging
from typing import Awaitable, Callable, Iterable, Optional, TypeVar

from walletbridge.config import get_settings
from walletbridge.errors import RpcUnavailable, UserRejected, WalletError, map_provider_error
from walletbridge.rpc.solana_client import SolanaRpcClient

logger = logging.getLogger(__name__)

T = TypeVar("T")
E = TypeVar("E")


class AllEndpointsFailed(Exception):
    """Raised by :func:`try_in_order` when no endpoint succeeded."""

    def __init__(self, errors: list[tuple[str, Exception]]):
        self.errors = errors
        if errors:
            detail = "; ".join(f"{endpoint}: {error}" for endpoint, error in errors)
        else:
            detail = "no endpoints configured"
        super().__init__(f"All endpoints failed ({detail})")


async def try_in_order(
    endpoints: Iterable[E],
    operation: Callable[[E], Awaitable[T]],
    label: str = "operation",
) -> T:
    """Run ``operation`` against each endpoint until one succeeds.

    Wallet-layer errors (user rejection, failed transaction, ...) are final
    and propagate immediately; anything else moves on to the next endpoint.

    Args:
        endpoints: Ordered endpoints (URLs or any descriptor)
        operation: Coroutine function taking one endpoint
        label: Name used in log lines

    Returns:
        Result of the first successful attempt

    Raises:
        AllEndpointsFailed: With the per-endpoint errors, in order
    """
    errors: list[tuple[str, Exception]] = []

    for attempt, endpoint in enumerate(endpoints, start=1):
        try:
            result = await operation(endpoint)
        except WalletError:
            raise
        except Exception as e:
            logger.warning(f"{label} failed on endpoint #{attempt} ({endpoint}): {e}")
            errors.append((str(endpoint), e))
            continue

        if errors:
            logger.info(f"{label} succeeded on fallback endpoint #{attempt} ({endpoint})")
        return result

    raise AllEndpointsFailed(errors)


class RpcFallbackResolver:
    """Solana endpoint fallback chain with a final degraded attempt."""

    def __init__(
        self,
        endpoints: Optional[Iterable[str]] = None,
        client_factory: Optional[Callable[[str], SolanaRpcClient]] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.endpoints = list(endpoints) if endpoints is not None else settings.solana_endpoints
        self.timeout = timeout if timeout is not None else settings.rpc_timeout
        self.client_factory = client_factory or self._default_client

    def _default_client(self, endpoint: str) -> SolanaRpcClient:
        return SolanaRpcClient(endpoint, timeout=self.timeout)

    async def with_endpoint(
        self,
        operation: Callable[[SolanaRpcClient], Awaitable[T]],
        degraded: Optional[Callable[[], Awaitable[T]]] = None,
        remediation: Optional[str] = None,
        label: str = "solana rpc",
    ) -> T:
        """Run ``operation`` with a client for the first endpoint that works.

        Args:
            operation: Coroutine function taking a SolanaRpcClient
            degraded: Tried once, without any RPC, after every endpoint failed
            remediation: User-facing hint for the final RpcUnavailable
            label: Name used in log lines

        Raises:
            RpcUnavailable: Every endpoint and the degraded attempt failed
            UserRejected: The user declined during the degraded attempt
        """
        try:
            return await try_in_order(
                self.endpoints,
                lambda endpoint: operation(self.client_factory(endpoint)),
                label=label,
            )
        except AllEndpointsFailed as e:
            failure: Exception = e

        if degraded is not None:
            logger.warning(f"{label}: all {len(self.endpoints)} endpoints failed, trying degraded mode")
            try:
                return await degraded()
            except UserRejected:
                raise
            except Exception as e:
                mapped = map_provider_error(e, label)
                if isinstance(mapped, UserRejected):
                    raise mapped from e
                logger.error(f"{label}: degraded attempt failed: {e}")
                failure = e

        raise RpcUnavailable(
            f"{label}: no Solana RPC endpoint available ({failure})",
            hint=remediation,
        ) from failure
