"""Minimal Solana JSON-RPC client over httpx.

Read-only: blockhash, balance, fee-for-message and account lookups. Errors
are raised (not swallowed) so the fallback resolver can move on to the next
endpoint.
"""

import base64
from typing import Any, Optional

import httpx
from solders.hash import Hash
from solders.message import Message

DEFAULT_COMMITMENT = "confirmed"


class RpcError(Exception):
    """Transport or JSON-RPC level failure of a single endpoint."""

    def __init__(self, endpoint: str, message: str, code: Optional[int] = None):
        self.endpoint = endpoint
        self.code = code
        super().__init__(f"{endpoint}: {message}")


class SolanaRpcClient:
    """JSON-RPC client bound to one endpoint."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client.

        Args:
            endpoint: RPC URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self.transport = transport

    async def _call(self, method: str, params: Optional[list] = None) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params or [],
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.endpoint, json=payload)
        except httpx.HTTPError as e:
            raise RpcError(self.endpoint, f"{method} transport error: {e}") from e

        if response.status_code != 200:
            raise RpcError(
                self.endpoint, f"{method} HTTP {response.status_code}: {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RpcError(self.endpoint, f"{method} returned invalid JSON") from e

        error = data.get("error")
        if error:
            raise RpcError(
                self.endpoint,
                f"{method} error: {error.get('message', error)}",
                code=error.get("code"),
            )

        if "result" not in data:
            raise RpcError(self.endpoint, f"{method} response has no result")
        return data["result"]

    async def get_latest_blockhash(self, commitment: str = DEFAULT_COMMITMENT) -> Hash:
        """Most recent blockhash usable for a new transaction."""
        result = await self._call("getLatestBlockhash", [{"commitment": commitment}])
        try:
            return Hash.from_string(result["value"]["blockhash"])
        except (KeyError, TypeError, ValueError) as e:
            raise RpcError(self.endpoint, f"malformed getLatestBlockhash result: {result}") from e

    async def get_balance(self, address: str, commitment: str = DEFAULT_COMMITMENT) -> int:
        """Balance in lamports."""
        result = await self._call("getBalance", [address, {"commitment": commitment}])
        return int(result["value"])

    async def get_fee_for_message(
        self, message: Message, commitment: str = DEFAULT_COMMITMENT
    ) -> Optional[int]:
        """Fee in lamports for a compiled message, or None if the node can't price it."""
        encoded = base64.b64encode(bytes(message)).decode()
        result = await self._call("getFeeForMessage", [encoded, {"commitment": commitment}])
        value = result.get("value") if isinstance(result, dict) else None
        return int(value) if value is not None else None

    async def get_account_info(
        self, address: str, commitment: str = DEFAULT_COMMITMENT
    ) -> Optional[dict]:
        """Raw account info, or None if the account does not exist."""
        result = await self._call(
            "getAccountInfo", [address, {"encoding": "base64", "commitment": commitment}]
        )
        return result.get("value") if isinstance(result, dict) else None
