"""Transfer execution.

Flow:
1. Local checks (address, amount, dust threshold, balance); nothing is sent
   to the wallet if any of them fails
2. Take the connection's request slot (one transfer in flight per connection)
3. Make sure the wallet is on the connection's network
4. Build the transaction and hand it to the wallet to sign and broadcast
5. Return the hash / signature; confirmation tracking is left to the caller
"""

import logging
from typing import Optional

from walletbridge.chains import get_chain
from walletbridge.config import Settings, get_settings
from walletbridge.errors import ProviderNotFound
from walletbridge.families.factory import HandlerMap, get_chain_handler
from walletbridge.models import TransferRequest, TransferResult, WalletConnection
from walletbridge.switcher import NetworkSwitcher
from walletbridge.utils.locks import PendingRequestGuard
from walletbridge.validation import prepare_transfer

logger = logging.getLogger(__name__)


class TransferExecutor:
    """Sends native and token transfers through a connected wallet."""

    def __init__(
        self,
        switcher: Optional[NetworkSwitcher] = None,
        handlers: Optional[HandlerMap] = None,
        settings: Optional[Settings] = None,
    ):
        self.handlers = handlers
        self.switcher = switcher or NetworkSwitcher(handlers)
        self.settings = settings or get_settings()

    async def transfer(
        self, connection: WalletConnection, request: TransferRequest
    ) -> TransferResult:
        """Execute a transfer.

        Args:
            connection: Open wallet connection
            request: Recipient, human amount and optional token

        Returns:
            TransferResult with the transaction identifier and explorer link

        Raises:
            ProviderNotFound: Connection is closed
            InvalidAddress, InvalidAmount, AmountTooSmall, InsufficientFunds:
                Local checks (raised before any wallet request)
            RequestAlreadyPending: Another transfer is in flight on this connection
            UserRejected: User declined a prompt
            NetworkSwitchFailed: Wallet could not switch networks
            RpcUnavailable: Solana RPC and the degraded attempt failed
            TransactionFailed: Wallet or node rejected the transaction
        """
        if not connection.connected:
            raise ProviderNotFound(
                "Wallet connection is closed", hint="Reconnect your wallet and try again."
            )

        prepared = prepare_transfer(connection.network, request, self.settings)
        handler = get_chain_handler(connection.network, self.handlers)

        async with PendingRequestGuard(connection.id, operation="transfer"):
            chain_id = await self.switcher.ensure_network(connection.provider, connection.network)
            if chain_id is not None:
                connection.chain_id = chain_id

            tx_identifier = await handler.submit_transfer(connection, prepared)

        chain = get_chain(connection.network)
        explorer_url = chain.explorer_tx_url(tx_identifier)
        logger.info(f"Transfer via {connection.wallet_id} on {chain.name} submitted: {explorer_url}")
        return TransferResult(
            tx_identifier=tx_identifier,
            network=connection.network,
            explorer_url=explorer_url,
        )
