"""Tests for the per-family chain handlers and their building blocks."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from solders.pubkey import Pubkey
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID
from spl.token.instructions import get_associated_token_address

from conftest import EVM_ADDRESS, EVM_RECIPIENT, SOLANA_RECIPIENT, SOLANA_SENDER, USDC_MINT
from walletbridge.chains import Network
from walletbridge.errors import (
    InsufficientFunds,
    InvalidAddress,
    ProviderNotFound,
    TransactionFailed,
    UnsupportedNetworkForWallet,
    UserRejected,
)
from walletbridge.families.evm import (
    BALANCE_OF_SELECTOR,
    EvmChainHandler,
    decode_uint256,
    encode_balance_of_call,
    encode_decimals_call,
    encode_transfer_call,
    parse_quantity,
)
from walletbridge.families.factory import create_chain_handlers, get_chain_handler
from walletbridge.families.solana import (
    SolanaChainHandler,
    build_transfer_instructions,
    create_idempotent_ata_instruction,
)
from walletbridge.models import WalletConnection
from walletbridge.providers.base import ProviderRpcError
from walletbridge.providers.dryrun import create_dryrun_environment
from walletbridge.service import WalletService
from walletbridge.validation import PreparedTransfer

USDC_ETHEREUM = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
UNLISTED_TOKEN = "0x6B175474E89094C44Da98b954EedeAC495271d0F"


def word(value: int) -> str:
    return "0x" + abi_encode(["uint256"], [value]).hex()


class TestErc20Encoding:
    """Tests for the minimal ERC-20 ABI helpers."""

    def test_transfer_selector(self):
        data = encode_transfer_call(EVM_RECIPIENT, 1)
        assert data.startswith("0xa9059cbb")
        assert len(data) == 2 + 8 + 128

    def test_transfer_arguments(self):
        data = encode_transfer_call(EVM_RECIPIENT, 1_500_000)
        recipient, amount = abi_decode(["address", "uint256"], bytes.fromhex(data[10:]))

        assert recipient.lower() == EVM_RECIPIENT.lower()
        assert amount == 1_500_000

    def test_balance_of(self):
        data = encode_balance_of_call(EVM_ADDRESS)
        assert data.startswith("0x70a08231")
        assert bytes.fromhex(data[2:10]) == BALANCE_OF_SELECTOR

    def test_decimals(self):
        assert encode_decimals_call() == "0x313ce567"

    def test_decode_uint256(self):
        assert decode_uint256(word(6)) == 6

    def test_decode_short_result(self):
        with pytest.raises(ValueError):
            decode_uint256("0x")

    def test_parse_quantity(self):
        assert parse_quantity("0x2105") == 8453
        assert parse_quantity(8453) == 8453
        assert parse_quantity("8453") == 8453
        with pytest.raises(ValueError):
            parse_quantity(None)


class TestEvmChainHandler:
    """Tests for EvmChainHandler with mocked providers."""

    @pytest.mark.asyncio
    async def test_connect_checksums_first_account(self):
        provider = MagicMock()
        provider.request = AsyncMock(side_effect=[[EVM_ADDRESS.lower()], "0x1"])

        address, chain_id = await EvmChainHandler().connect(provider)

        assert address == EVM_ADDRESS
        assert chain_id == 1

    @pytest.mark.asyncio
    async def test_connect_locked_wallet(self):
        provider = MagicMock()
        provider.request = AsyncMock(return_value=[])

        with pytest.raises(ProviderNotFound) as exc_info:
            await EvmChainHandler().connect(provider)
        assert "Unlock" in exc_info.value.hint

    @pytest.mark.asyncio
    async def test_connect_rejected(self):
        provider = MagicMock()
        provider.request = AsyncMock(side_effect=ProviderRpcError(4001, "User rejected the request."))

        with pytest.raises(UserRejected):
            await EvmChainHandler().connect(provider)

    def test_native_transaction(self):
        transfer = PreparedTransfer(
            network=Network.ETHEREUM,
            recipient=EVM_RECIPIENT,
            amount_human="1",
            amount_base_units=10**18,
            decimals=18,
        )

        tx = EvmChainHandler().build_transaction(EVM_ADDRESS, transfer)

        assert tx == {"from": EVM_ADDRESS, "to": EVM_RECIPIENT, "value": hex(10**18)}

    @pytest.mark.asyncio
    async def test_read_token_decimals(self):
        provider = MagicMock()
        provider.request = AsyncMock(return_value=word(18))

        decimals = await EvmChainHandler().read_token_decimals(provider, UNLISTED_TOKEN.lower())

        assert decimals == 18
        method, params = provider.request.call_args.args
        assert method == "eth_call"
        assert params[0] == {"to": UNLISTED_TOKEN, "data": "0x313ce567"}

    @pytest.mark.asyncio
    async def test_read_decimals_not_a_token(self):
        provider = MagicMock()
        provider.request = AsyncMock(return_value="0x")

        with pytest.raises(TransactionFailed):
            await EvmChainHandler().read_token_decimals(provider, UNLISTED_TOKEN)

    @pytest.mark.asyncio
    async def test_submit_without_hash(self):
        provider = MagicMock()
        provider.request = AsyncMock(return_value=None)
        connection = WalletConnection(
            address=EVM_ADDRESS, network=Network.ETHEREUM, provider=provider, wallet_id="metamask"
        )
        transfer = PreparedTransfer(
            network=Network.ETHEREUM,
            recipient=EVM_RECIPIENT,
            amount_human="1",
            amount_base_units=10**18,
            decimals=18,
        )

        with pytest.raises(TransactionFailed):
            await EvmChainHandler().submit_transfer(connection, transfer)

    @pytest.mark.asyncio
    async def test_send_insufficient_funds(self):
        provider = MagicMock()
        provider.request = AsyncMock(
            side_effect=ProviderRpcError(-32000, "insufficient funds for gas * price + value")
        )
        connection = WalletConnection(
            address=EVM_ADDRESS, network=Network.ETHEREUM, provider=provider, wallet_id="metamask"
        )
        transfer = PreparedTransfer(
            network=Network.ETHEREUM,
            recipient=EVM_RECIPIENT,
            amount_human="1",
            amount_base_units=10**18,
            decimals=18,
        )

        with pytest.raises(InsufficientFunds):
            await EvmChainHandler().submit_transfer(connection, transfer)


class TestSolanaInstructions:
    """Tests for Solana instruction building."""

    def spl_transfer(self, amount=1_500_000):
        return PreparedTransfer(
            network=Network.SOLANA,
            recipient=SOLANA_RECIPIENT,
            amount_human="1.5",
            amount_base_units=amount,
            decimals=6,
            token_identifier=USDC_MINT,
        )

    def test_native_is_single_system_transfer(self):
        transfer = PreparedTransfer(
            network=Network.SOLANA,
            recipient=SOLANA_RECIPIENT,
            amount_human="0.1",
            amount_base_units=100_000_000,
            decimals=9,
        )

        instructions = build_transfer_instructions(Pubkey.from_string(SOLANA_SENDER), transfer)

        assert len(instructions) == 1
        assert int.from_bytes(bytes(instructions[0].data)[4:12], "little") == 100_000_000

    def test_spl_transfer_between_token_accounts(self):
        sender = Pubkey.from_string(SOLANA_SENDER)
        mint = Pubkey.from_string(USDC_MINT)

        (instruction,) = build_transfer_instructions(sender, self.spl_transfer())

        assert instruction.program_id == TOKEN_PROGRAM_ID
        accounts = [meta.pubkey for meta in instruction.accounts]
        assert accounts[0] == get_associated_token_address(sender, mint)
        assert accounts[1] == mint
        assert accounts[2] == get_associated_token_address(Pubkey.from_string(SOLANA_RECIPIENT), mint)
        data = bytes(instruction.data)
        assert data[0] == 12
        assert int.from_bytes(data[1:9], "little") == 1_500_000
        assert data[9] == 6

    def test_spl_with_account_creation(self):
        sender = Pubkey.from_string(SOLANA_SENDER)

        create, transfer = build_transfer_instructions(
            sender, self.spl_transfer(), create_recipient_account=True
        )

        assert create.program_id == ASSOCIATED_TOKEN_PROGRAM_ID
        assert transfer.program_id == TOKEN_PROGRAM_ID

    def test_idempotent_create_layout(self):
        payer = Pubkey.from_string(SOLANA_SENDER)
        owner = Pubkey.from_string(SOLANA_RECIPIENT)
        mint = Pubkey.from_string(USDC_MINT)

        instruction = create_idempotent_ata_instruction(payer, owner, mint)

        assert bytes(instruction.data) == bytes([1])
        assert instruction.accounts[0].is_signer
        assert instruction.accounts[1].pubkey == get_associated_token_address(owner, mint)


class TestSolanaChainHandler:
    """Tests for SolanaChainHandler with mocked providers."""

    @pytest.mark.asyncio
    async def test_connect_with_public_key_object(self, fake_rpc):
        resolver, _ = fake_rpc({"https://a.test": {}})
        provider = MagicMock()
        provider.connect = AsyncMock(return_value={"publicKey": Pubkey.from_string(SOLANA_SENDER)})

        address, chain_id = await SolanaChainHandler(resolver=resolver).connect(provider)

        assert address == SOLANA_SENDER
        assert chain_id is None

    @pytest.mark.asyncio
    async def test_connect_invalid_key(self, fake_rpc):
        resolver, _ = fake_rpc({"https://a.test": {}})
        provider = MagicMock()
        provider.connect = AsyncMock(return_value={"publicKey": "nope"})

        with pytest.raises(InvalidAddress):
            await SolanaChainHandler(resolver=resolver).connect(provider)

    @pytest.mark.asyncio
    async def test_missing_signature(self, fake_rpc):
        resolver, _ = fake_rpc({"https://a.test": {}})
        provider = MagicMock()
        provider.sign_and_send_transaction = AsyncMock(return_value={"signature": ""})
        connection = WalletConnection(
            address=SOLANA_SENDER, network=Network.SOLANA, provider=provider, wallet_id="phantom"
        )
        transfer = PreparedTransfer(
            network=Network.SOLANA,
            recipient=SOLANA_RECIPIENT,
            amount_human="0.1",
            amount_base_units=100_000_000,
            decimals=9,
        )

        with pytest.raises(TransactionFailed):
            await SolanaChainHandler(resolver=resolver).submit_transfer(connection, transfer)

        provider.sign_and_send_transaction.assert_awaited_once()


class TestHandlerFactory:
    """Tests for handler selection."""

    def test_dispatch_by_family(self, fake_rpc):
        resolver, _ = fake_rpc({"https://a.test": {}})
        handlers = create_chain_handlers(resolver=resolver)

        assert isinstance(get_chain_handler("ethereum", handlers), EvmChainHandler)
        assert get_chain_handler(Network.BASE, handlers) is get_chain_handler("ethereum", handlers)
        assert isinstance(get_chain_handler("solana", handlers), SolanaChainHandler)

    def test_cached_defaults(self):
        assert get_chain_handler("ethereum") is get_chain_handler("base")

    def test_unknown_network(self):
        with pytest.raises(ValueError):
            get_chain_handler("dogecoin")


class TestTokenDecimals:
    """Tests for WalletService.token_decimals()."""

    @pytest.mark.asyncio
    async def test_catalogue_token_needs_no_call(self):
        service = WalletService(create_dryrun_environment(["metamask"], evm_address=EVM_ADDRESS))
        connection = await service.connect("metamask", "ethereum")
        provider = connection.provider
        provider.requests.clear()

        assert await service.token_decimals(connection, USDC_ETHEREUM.lower()) == 6
        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_unlisted_token_queried(self):
        service = WalletService(create_dryrun_environment(["metamask"], evm_address=EVM_ADDRESS))
        connection = await service.connect("metamask", "ethereum")
        connection.provider = MagicMock()
        connection.provider.request = AsyncMock(return_value=word(18))

        assert await service.token_decimals(connection, UNLISTED_TOKEN) == 18

    @pytest.mark.asyncio
    async def test_not_on_solana(self, fake_rpc):
        resolver, _ = fake_rpc({"https://a.test": {}})
        service = WalletService(create_dryrun_environment(["phantom"]), resolver=resolver)
        connection = await service.connect("phantom", "solana")

        with pytest.raises(UnsupportedNetworkForWallet):
            await service.token_decimals(connection, SOLANA_RECIPIENT)
