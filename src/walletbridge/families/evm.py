"""EVM family handler (Ethereum, Base).

Everything goes through the wallet's EIP-1193 ``request`` entry point: the
wallet holds the key, picks the nonce and broadcasts. Supports native ETH
and ERC-20 transfers.
"""

import logging
from typing import Any, Optional

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_utils import function_signature_to_4byte_selector

from walletbridge.addresses import validate_evm_address
from walletbridge.chains import ChainConfig, ChainFamily, Network, get_chain
from walletbridge.errors import (
    NetworkSwitchFailed,
    ProviderNotFound,
    TransactionFailed,
    UserRejected,
    WalletError,
    is_unrecognized_chain,
    is_user_rejection,
    map_provider_error,
)
from walletbridge.families.base import ChainHandler
from walletbridge.models import FeeEstimate, WalletConnection
from walletbridge.units import from_base_units
from walletbridge.validation import PreparedTransfer

logger = logging.getLogger(__name__)

# Minimal ERC-20 ABI
TRANSFER_SELECTOR = function_signature_to_4byte_selector("transfer(address,uint256)")
BALANCE_OF_SELECTOR = function_signature_to_4byte_selector("balanceOf(address)")
DECIMALS_SELECTOR = function_signature_to_4byte_selector("decimals()")

WEI_DECIMALS = 18
GWEI = 10**9


def encode_transfer_call(recipient: str, amount: int) -> str:
    """Calldata for ``transfer(recipient, amount)`` as a 0x-prefixed hex string."""
    arguments = abi_encode(["address", "uint256"], [recipient, amount])
    return "0x" + (TRANSFER_SELECTOR + arguments).hex()


def encode_balance_of_call(owner: str) -> str:
    """Calldata for ``balanceOf(owner)``."""
    return "0x" + (BALANCE_OF_SELECTOR + abi_encode(["address"], [owner])).hex()


def encode_decimals_call() -> str:
    """Calldata for ``decimals()``."""
    return "0x" + DECIMALS_SELECTOR.hex()


def decode_uint256(result: str) -> int:
    """Decode a single ``uint256`` returned by ``eth_call``.

    Raises:
        ValueError: If the result is empty or malformed
    """
    data = bytes.fromhex(result[2:] if result.startswith("0x") else result)
    if len(data) < 32:
        raise ValueError(f"Expected a 32-byte word, got {len(data)} bytes")
    (value,) = abi_decode(["uint256"], data[:32])
    return value


def parse_quantity(value: Any) -> int:
    """Parse a JSON-RPC quantity (hex string or int)."""
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    raise ValueError(f"Unexpected quantity: {value!r}")


class EvmChainHandler(ChainHandler):
    """Handler for EIP-1193 wallets on Ethereum and Base."""

    family = ChainFamily.EVM

    def validate_address(self, address: str) -> str:
        return validate_evm_address(address)

    async def connect(self, provider: Any) -> tuple[str, Optional[int]]:
        try:
            accounts = await provider.request("eth_requestAccounts")
        except Exception as e:
            raise map_provider_error(e, "connection request") from e

        if not accounts:
            raise ProviderNotFound(
                "Wallet returned no accounts",
                hint="Unlock your wallet and try again.",
            )

        address = self.validate_address(accounts[0])
        chain_id = await self.get_chain_id(provider)
        return address, chain_id

    async def get_chain_id(self, provider: Any) -> int:
        """Chain id the wallet is currently on."""
        try:
            return parse_quantity(await provider.request("eth_chainId"))
        except WalletError:
            raise
        except Exception as e:
            raise map_provider_error(e, "chain id lookup") from e

    async def ensure_network(self, provider: Any, network: Network) -> Optional[int]:
        """Switch the wallet to ``network``, registering the chain if needed.

        Flow:
        1. Already on the target chain: return without prompting
        2. ``wallet_switchEthereumChain``
        3. On 4902 (chain unknown to the wallet): one
           ``wallet_addEthereumChain`` with the full descriptor, then one
           more switch

        Raises:
            UserRejected: User declined the switch or the registration
            NetworkSwitchFailed: Anything else
        """
        chain = get_chain(network)
        if chain.chain_id is None:
            raise NetworkSwitchFailed(f"{chain.name} is not an EVM network")

        current = await self.get_chain_id(provider)
        if current == chain.chain_id:
            logger.debug(f"Wallet already on {chain.name} ({chain.chain_id_hex})")
            return current

        logger.info(f"Switching wallet from chain {hex(current)} to {chain.name}")
        try:
            await self._switch(provider, chain)
        except Exception as e:
            if not is_unrecognized_chain(e):
                raise self._switch_error(e, chain) from e

            logger.info(f"{chain.name} not registered in wallet, adding it")
            try:
                await provider.request("wallet_addEthereumChain", [chain.add_chain_params()])
                await self._switch(provider, chain)
            except Exception as add_error:
                raise self._switch_error(add_error, chain) from add_error

        return chain.chain_id

    async def _switch(self, provider: Any, chain: ChainConfig) -> None:
        await provider.request("wallet_switchEthereumChain", [{"chainId": chain.chain_id_hex}])

    @staticmethod
    def _switch_error(error: Exception, chain: ChainConfig) -> WalletError:
        if isinstance(error, WalletError):
            return error
        if is_user_rejection(error):
            return UserRejected(f"User rejected switching to {chain.name}: {error}")
        return NetworkSwitchFailed(f"Could not switch wallet to {chain.name}: {error}")

    def build_transaction(self, sender: str, transfer: PreparedTransfer) -> dict:
        """Transaction object for ``eth_estimateGas`` / ``eth_sendTransaction``.

        Nonce, gas and fee fields are left for the wallet to fill.
        """
        if transfer.is_native:
            return {
                "from": sender,
                "to": transfer.recipient,
                "value": hex(transfer.amount_base_units),
            }
        return {
            "from": sender,
            "to": transfer.token_identifier,
            "value": "0x0",
            "data": encode_transfer_call(transfer.recipient, transfer.amount_base_units),
        }

    async def read_token_decimals(self, provider: Any, token: str) -> int:
        """Ask the token contract for its ``decimals()`` through the wallet.

        Raises:
            InvalidAddress: Token address is malformed
            TransactionFailed: Call failed or returned garbage (not an ERC-20)
        """
        token = self.validate_address(token)
        try:
            result = await provider.request(
                "eth_call", [{"to": token, "data": encode_decimals_call()}, "latest"]
            )
        except Exception as e:
            raise map_provider_error(e, "decimals lookup") from e

        if not isinstance(result, str):
            raise TransactionFailed(f"{token} did not return decimals: {result!r}")
        try:
            return decode_uint256(result)
        except ValueError as e:
            raise TransactionFailed(f"{token} did not return decimals: {e}") from e

    async def _get_gas_price(self, provider: Any) -> int:
        fallback = self.settings.evm_fallback_gas_price_gwei * GWEI
        try:
            price = parse_quantity(await provider.request("eth_gasPrice"))
        except Exception as e:
            logger.warning(f"eth_gasPrice failed, using {fallback} wei: {e}")
            return fallback
        return price or fallback

    async def estimate_fee(
        self, connection: WalletConnection, transfer: PreparedTransfer
    ) -> FeeEstimate:
        """Gas units from ``eth_estimateGas`` times the current gas price."""
        provider = connection.provider
        tx = self.build_transaction(connection.address, transfer)

        try:
            gas_limit = parse_quantity(await provider.request("eth_estimateGas", [tx]))
        except Exception as e:
            raise map_provider_error(e, "gas estimation") from e

        gas_price = await self._get_gas_price(provider)
        cost = from_base_units(gas_limit * gas_price, WEI_DECIMALS)
        chain = get_chain(connection.network)

        logger.debug(f"{chain.name} fee: {gas_limit} gas @ {gas_price} wei = {cost} ETH")
        return FeeEstimate(
            gas_limit_or_units=gas_limit,
            unit_price=gas_price,
            estimated_cost_human=cost,
            fee_symbol=chain.native_currency.symbol,
        )

    async def submit_transfer(
        self, connection: WalletConnection, transfer: PreparedTransfer
    ) -> str:
        """Hand the transaction to the wallet; returns the hash without waiting."""
        tx = self.build_transaction(connection.address, transfer)

        try:
            tx_hash = await connection.provider.request("eth_sendTransaction", [tx])
        except Exception as e:
            raise map_provider_error(e, "transaction") from e

        if not isinstance(tx_hash, str) or not tx_hash:
            raise TransactionFailed(f"Wallet returned no transaction hash: {tx_hash!r}")

        logger.info(
            f"Submitted {transfer.amount_human} "
            f"{'native' if transfer.is_native else transfer.token_identifier} "
            f"to {transfer.recipient} on {connection.network.value}: {tx_hash}"
        )
        return tx_hash
