"""Pytest configuration and fixtures."""

import os

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["SOL_RPC_URL"] = "https://primary.solana.test"
os.environ["SOL_RPC_FALLBACK_URLS"] = "https://fallback-1.solana.test,https://fallback-2.solana.test"

from solders.hash import Hash
from solders.pubkey import Pubkey

from walletbridge.families.factory import reset_handler_cache
from walletbridge.rpc.fallback import RpcFallbackResolver
from walletbridge.rpc.solana_client import RpcError
from walletbridge.utils.locks import clear_connection_locks

EVM_ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
EVM_RECIPIENT = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"
SOLANA_SENDER = str(Pubkey(bytes([1] * 32)))
SOLANA_RECIPIENT = str(Pubkey(bytes([2] * 32)))
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
TEST_BLOCKHASH = Hash(bytes([7] * 32))


class FakeSolanaRpc:
    """Stands in for SolanaRpcClient; records calls, optionally fails all of them."""

    def __init__(self, endpoint, fail=False, fee=5000, token_account_exists=True):
        self.endpoint = endpoint
        self.fail = fail
        self.fee = fee
        self.token_account_exists = token_account_exists
        self.calls = []

    def _record(self, method):
        self.calls.append(method)
        if self.fail:
            raise RpcError(self.endpoint, f"{method} transport error: connection refused")

    async def get_latest_blockhash(self, commitment="confirmed"):
        self._record("getLatestBlockhash")
        return TEST_BLOCKHASH

    async def get_fee_for_message(self, message, commitment="confirmed"):
        self._record("getFeeForMessage")
        return self.fee

    async def get_account_info(self, address, commitment="confirmed"):
        self._record("getAccountInfo")
        if not self.token_account_exists:
            return None
        return {"owner": "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA", "lamports": 2039280}

    async def get_balance(self, address, commitment="confirmed"):
        self._record("getBalance")
        return 10**9


@pytest.fixture(autouse=True)
def clean_state():
    """Clear connection locks and cached handlers before each test."""
    clear_connection_locks()
    reset_handler_cache()
    yield
    clear_connection_locks()
    reset_handler_cache()


@pytest.fixture
def fake_rpc():
    """Build a resolver over fake endpoints.

    Usage:
        resolver, clients = fake_rpc({"https://a": {"fail": True}, "https://b": {}})
    """

    def build(endpoints):
        clients = {url: FakeSolanaRpc(url, **options) for url, options in endpoints.items()}
        resolver = RpcFallbackResolver(
            endpoints=list(clients), client_factory=clients.__getitem__
        )
        return resolver, clients

    return build
