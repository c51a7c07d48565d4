"""Dry-run providers for development and testing (no real wallet).

They behave like the injected objects of the real extensions closely enough
to drive detection, connection, chain switching and transfers, and they
record every request so callers can assert on what was sent.
"""

import logging
import secrets
from typing import Any, Optional

import base58
from solders.pubkey import Pubkey

from walletbridge.errors import UNRECOGNIZED_CHAIN_CODE, USER_REJECTED_CODE
from walletbridge.providers.base import (
    EvmProvider,
    PhantomNamespace,
    ProviderEnvironment,
    ProviderRpcError,
    SolanaProvider,
)

logger = logging.getLogger(__name__)

# Gas used by the simulated wallet for eth_estimateGas
NATIVE_TRANSFER_GAS = 21000
TOKEN_TRANSFER_GAS = 65000


class DryRunEvmProvider(EvmProvider):
    """Simulated EIP-1193 provider.

    Args:
        address: Account returned by eth_requestAccounts
        chain_id: Chain the wallet starts on
        known_chain_ids: Chains the wallet can switch to without registration
        flags: ``is_*`` flags to set (e.g. ``{"is_metamask"}``)
        reject_methods: Methods that fail with a user rejection (4001)
        gas_price: Value returned by eth_gasPrice (wei)
    """

    def __init__(
        self,
        address: str = "0x" + "11" * 20,
        chain_id: int = 1,
        known_chain_ids: Optional[set[int]] = None,
        flags: Optional[set[str]] = None,
        reject_methods: Optional[set[str]] = None,
        gas_price: int = 20 * 10**9,
    ):
        super().__init__()
        self.address = address
        self.chain_id = chain_id
        self.known_chain_ids = set(known_chain_ids or {1})
        self.known_chain_ids.add(chain_id)
        self.reject_methods = set(reject_methods or ())
        self.gas_price = gas_price
        self.requests: list[tuple[str, Optional[list]]] = []
        self.sent_transactions: list[dict] = []
        for flag in flags or ():
            setattr(self, flag, True)

    def calls(self, method: str) -> list[Optional[list]]:
        """Params of every recorded request for ``method``."""
        return [params for name, params in self.requests if name == method]

    async def request(self, method: str, params: Optional[list] = None) -> Any:
        self.requests.append((method, params))

        if method in self.reject_methods:
            raise ProviderRpcError(USER_REJECTED_CODE, "User rejected the request.")

        if method in ("eth_requestAccounts", "eth_accounts"):
            return [self.address]

        if method == "eth_chainId":
            return hex(self.chain_id)

        if method == "wallet_switchEthereumChain":
            target = int(params[0]["chainId"], 16)
            if target not in self.known_chain_ids:
                raise ProviderRpcError(
                    UNRECOGNIZED_CHAIN_CODE,
                    f"Unrecognized chain ID {params[0]['chainId']}. "
                    "Try adding the chain using wallet_addEthereumChain first.",
                )
            if target != self.chain_id:
                self.chain_id = target
                self.emit("chainChanged", hex(target))
            return None

        if method == "wallet_addEthereumChain":
            self.known_chain_ids.add(int(params[0]["chainId"], 16))
            return None

        if method == "eth_estimateGas":
            tx = params[0]
            if tx.get("data") and tx["data"] != "0x":
                return hex(TOKEN_TRANSFER_GAS)
            return hex(NATIVE_TRANSFER_GAS)

        if method == "eth_gasPrice":
            return hex(self.gas_price)

        if method == "eth_sendTransaction":
            self.sent_transactions.append(params[0])
            tx_hash = "0x" + secrets.token_hex(32)
            logger.info(f"[SIMULATED] eth_sendTransaction -> {tx_hash}")
            return tx_hash

        raise ProviderRpcError(4200, f"Method {method} not supported by dry-run provider")


class DryRunSolanaProvider(SolanaProvider):
    """Simulated Solana provider that 'sends' by returning a random signature."""

    def __init__(
        self,
        public_key: str = "11111111111111111111111111111112",
        is_phantom: bool = True,
        reject_connect: bool = False,
        reject_sign: bool = False,
    ):
        super().__init__()
        self._public_key = Pubkey.from_string(public_key)
        self.is_phantom = is_phantom
        self.reject_connect = reject_connect
        self.reject_sign = reject_sign
        self.sent_transactions: list[Any] = []
        self.disconnect_calls = 0

    async def connect(self) -> Pubkey:
        if self.reject_connect:
            raise ProviderRpcError(USER_REJECTED_CODE, "User rejected the request.")
        self.public_key = self._public_key
        self.is_connected = True
        return self._public_key

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.public_key = None
        self.is_connected = False

    async def sign_and_send_transaction(self, transaction: Any) -> dict:
        if self.reject_sign:
            raise ProviderRpcError(USER_REJECTED_CODE, "User rejected the request.")
        self.sent_transactions.append(transaction)
        signature = base58.b58encode(secrets.token_bytes(64)).decode()
        logger.info(f"[SIMULATED] signAndSendTransaction -> {signature}")
        return {"signature": signature}


def create_dryrun_environment(
    wallets: list[str],
    evm_address: str = "0x" + "11" * 20,
    solana_public_key: str = "11111111111111111111111111111112",
) -> ProviderEnvironment:
    """Build an environment as if the given extensions were installed.

    The last EVM wallet listed owns the ambient ``ethereum`` slot and earlier
    ones appear in its ``providers`` list, the way stacked extensions inject.
    Phantom also sets ``is_metamask`` on its EVM provider, like the real one.

    Args:
        wallets: Wallet ids ("metamask", "coinbase", "phantom", ...)
    """
    flag_for = {
        "metamask": {"is_metamask"},
        "coinbase": {"is_coinbase_wallet"},
        "trust": {"is_trust", "is_metamask"},
        "rainbow": {"is_rainbow", "is_metamask"},
        "rabby": {"is_rabby", "is_metamask"},
    }

    env = ProviderEnvironment()
    evm_providers: list[DryRunEvmProvider] = []

    for wallet_id in wallets:
        if wallet_id == "phantom":
            solana = DryRunSolanaProvider(public_key=solana_public_key)
            env.phantom = PhantomNamespace(
                ethereum=DryRunEvmProvider(
                    address=evm_address, flags={"is_phantom", "is_metamask"}
                ),
                solana=solana,
            )
            env.solana = solana
        elif wallet_id in flag_for:
            evm_providers.append(
                DryRunEvmProvider(address=evm_address, flags=flag_for[wallet_id])
            )
        else:
            raise ValueError(f"Unknown dry-run wallet '{wallet_id}'")

    if evm_providers:
        ambient = evm_providers[-1]
        if len(evm_providers) > 1:
            ambient.providers = list(evm_providers)
        env.ethereum = ambient

    return env
