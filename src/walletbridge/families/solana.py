"""Solana family handler.

Transactions are built here (system transfer for SOL, ``transfer_checked``
for SPL tokens) and handed to the wallet unsigned; the wallet signs with
the connected key and broadcasts. A recent blockhash comes from the RPC
fallback chain. When every endpoint is down the transaction goes out with
the default blockhash and the wallet fills in its own.
"""

import logging
from typing import Any, Optional

from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import ID as SYS_PROGRAM_ID
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID
from spl.token.instructions import (
    TransferCheckedParams,
    get_associated_token_address,
    transfer_checked,
)

from walletbridge.addresses import validate_solana_address
from walletbridge.chains import SOL, ChainFamily, Network
from walletbridge.config import Settings
from walletbridge.errors import RpcUnavailable, TransactionFailed, map_provider_error
from walletbridge.families.base import ChainHandler
from walletbridge.models import FeeEstimate, WalletConnection
from walletbridge.rpc.fallback import RpcFallbackResolver
from walletbridge.rpc.solana_client import SolanaRpcClient
from walletbridge.units import from_base_units
from walletbridge.validation import PreparedTransfer

logger = logging.getLogger(__name__)

# Associated token account program: CreateIdempotent
CREATE_IDEMPOTENT_DISCRIMINATOR = 1


def create_idempotent_ata_instruction(payer: Pubkey, owner: Pubkey, mint: Pubkey) -> Instruction:
    """Create ``owner``'s associated token account for ``mint``; no-op if it exists."""
    ata = get_associated_token_address(owner, mint)
    accounts = [
        AccountMeta(pubkey=payer, is_signer=True, is_writable=True),
        AccountMeta(pubkey=ata, is_signer=False, is_writable=True),
        AccountMeta(pubkey=owner, is_signer=False, is_writable=False),
        AccountMeta(pubkey=mint, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYS_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(
        ASSOCIATED_TOKEN_PROGRAM_ID, bytes([CREATE_IDEMPOTENT_DISCRIMINATOR]), accounts
    )


def build_transfer_instructions(
    sender: Pubkey,
    transfer_request: PreparedTransfer,
    create_recipient_account: bool = False,
) -> list[Instruction]:
    """Instructions for a SOL or SPL transfer.

    SPL transfers move tokens between the sender's and the recipient's
    associated token accounts with ``transfer_checked``, which also pins
    the mint's decimals.

    Args:
        sender: Fee payer and source owner
        transfer_request: Validated transfer
        create_recipient_account: Prepend creation of the recipient's token account
    """
    recipient = Pubkey.from_string(transfer_request.recipient)

    if transfer_request.is_native:
        return [
            transfer(
                TransferParams(
                    from_pubkey=sender,
                    to_pubkey=recipient,
                    lamports=transfer_request.amount_base_units,
                )
            )
        ]

    mint = Pubkey.from_string(transfer_request.token_identifier)
    instructions = []
    if create_recipient_account:
        instructions.append(create_idempotent_ata_instruction(sender, recipient, mint))

    instructions.append(
        transfer_checked(
            TransferCheckedParams(
                program_id=TOKEN_PROGRAM_ID,
                source=get_associated_token_address(sender, mint),
                mint=mint,
                dest=get_associated_token_address(recipient, mint),
                owner=sender,
                amount=transfer_request.amount_base_units,
                decimals=transfer_request.decimals,
                signers=[],
            )
        )
    )
    return instructions


class SolanaChainHandler(ChainHandler):
    """Handler for Solana wallets (Phantom)."""

    family = ChainFamily.SOLANA

    def __init__(
        self,
        settings: Optional[Settings] = None,
        resolver: Optional[RpcFallbackResolver] = None,
    ):
        super().__init__(settings)
        self.resolver = resolver or RpcFallbackResolver(
            endpoints=self.settings.solana_endpoints,
            timeout=self.settings.rpc_timeout,
        )

    def validate_address(self, address: str) -> str:
        return validate_solana_address(address)

    async def connect(self, provider: Any) -> tuple[str, Optional[int]]:
        try:
            result = await provider.connect()
        except Exception as e:
            raise map_provider_error(e, "connection request") from e

        public_key = result.get("publicKey") if isinstance(result, dict) else result
        if public_key is None:
            public_key = getattr(provider, "public_key", None)
        return self.validate_address(str(public_key)), None

    async def disconnect(self, provider: Any) -> None:
        try:
            await provider.disconnect()
        except Exception as e:
            raise map_provider_error(e, "disconnect") from e

    async def ensure_network(self, provider: Any, network: Network) -> Optional[int]:
        # Phantom's Solana provider is always on mainnet-beta
        return None

    async def _needs_recipient_account(
        self, client: Optional[SolanaRpcClient], transfer_request: PreparedTransfer
    ) -> bool:
        """Decide whether to prepend token account creation.

        Without a client (degraded mode) the account can't be looked up, so
        creation is included whenever it is enabled; it is idempotent.
        """
        if transfer_request.is_native:
            return False

        create_enabled = self.settings.create_recipient_token_account
        if client is None:
            return create_enabled

        ata = get_associated_token_address(
            Pubkey.from_string(transfer_request.recipient),
            Pubkey.from_string(transfer_request.token_identifier),
        )
        if await client.get_account_info(str(ata)) is not None:
            return False

        if not create_enabled:
            raise TransactionFailed(
                f"Recipient {transfer_request.recipient} has no token account for "
                f"{transfer_request.token_identifier}",
                hint="Ask the recipient to create a token account first.",
            )
        logger.info(f"Recipient token account {ata} missing, will be created")
        return True

    async def _instructions_for(
        self,
        client: Optional[SolanaRpcClient],
        sender: Pubkey,
        transfer_request: PreparedTransfer,
    ) -> list[Instruction]:
        create = await self._needs_recipient_account(client, transfer_request)
        return build_transfer_instructions(sender, transfer_request, create)

    async def estimate_fee(
        self, connection: WalletConnection, transfer_request: PreparedTransfer
    ) -> FeeEstimate:
        """Fee from ``getFeeForMessage``; nominal per-signature fee if RPC is down."""
        sender = Pubkey.from_string(connection.address)

        async def lookup(client: SolanaRpcClient) -> tuple[Optional[int], int]:
            instructions = await self._instructions_for(client, sender, transfer_request)
            blockhash = await client.get_latest_blockhash()
            message = Message.new_with_blockhash(instructions, sender, blockhash)
            fee = await client.get_fee_for_message(message)
            return fee, message.header.num_required_signatures

        try:
            fee, signatures = await self.resolver.with_endpoint(lookup, label="solana fee estimate")
        except RpcUnavailable as e:
            logger.warning(f"Solana fee lookup unavailable, using nominal fee: {e}")
            fee, signatures = None, 1

        if fee is None:
            nominal = self.settings.solana_nominal_fee_lamports
            return FeeEstimate(
                gas_limit_or_units=signatures,
                unit_price=nominal,
                estimated_cost_human=from_base_units(nominal * signatures, SOL.decimals),
                fee_symbol=SOL.symbol,
                is_approximate=True,
            )

        signatures = max(signatures, 1)
        return FeeEstimate(
            gas_limit_or_units=signatures,
            unit_price=fee // signatures,
            estimated_cost_human=from_base_units(fee, SOL.decimals),
            fee_symbol=SOL.symbol,
        )

    async def _sign_and_send(
        self,
        provider: Any,
        instructions: list[Instruction],
        sender: Pubkey,
        blockhash: Hash,
    ) -> str:
        message = Message.new_with_blockhash(instructions, sender, blockhash)
        transaction = Transaction.new_unsigned(message)

        try:
            result = await provider.sign_and_send_transaction(transaction)
        except Exception as e:
            raise map_provider_error(e, "transaction") from e

        signature = result.get("signature") if isinstance(result, dict) else result
        if not signature:
            raise TransactionFailed(f"Wallet returned no signature: {result!r}")
        return str(signature)

    async def submit_transfer(
        self, connection: WalletConnection, transfer_request: PreparedTransfer
    ) -> str:
        """Build, have the wallet sign and send; returns the signature.

        Wallet-side failures are final and never retried on another
        endpoint.

        Raises:
            UserRejected: User declined in the wallet
            RpcUnavailable: Every endpoint and the degraded attempt failed;
                the hint tells the user how to send manually
        """
        provider = connection.provider
        sender = Pubkey.from_string(connection.address)

        async def send_with_blockhash(client: SolanaRpcClient) -> str:
            instructions = await self._instructions_for(client, sender, transfer_request)
            blockhash = await client.get_latest_blockhash()
            return await self._sign_and_send(provider, instructions, sender, blockhash)

        async def send_degraded() -> str:
            instructions = await self._instructions_for(None, sender, transfer_request)
            return await self._sign_and_send(provider, instructions, sender, Hash.default())

        asset = SOL.symbol if transfer_request.is_native else transfer_request.token_identifier
        remediation = (
            f"Solana RPC is unavailable. Send {transfer_request.amount_human} {asset} "
            f"to {transfer_request.recipient} manually from your wallet."
        )

        signature = await self.resolver.with_endpoint(
            send_with_blockhash,
            degraded=send_degraded,
            remediation=remediation,
            label="solana transfer",
        )
        logger.info(
            f"Submitted {transfer_request.amount_human} {asset} to "
            f"{transfer_request.recipient} on solana: {signature}"
        )
        return signature
