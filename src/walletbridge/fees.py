"""Fee estimation for pending transfers."""

import logging
from typing import Optional

from walletbridge.config import Settings, get_settings
from walletbridge.families.factory import HandlerMap, get_chain_handler
from walletbridge.models import FeeEstimate, TransferRequest, WalletConnection
from walletbridge.switcher import NetworkSwitcher
from walletbridge.validation import prepare_transfer

logger = logging.getLogger(__name__)


class FeeEstimator:
    """Prices a transfer before the user confirms it.

    EVM: ``eth_estimateGas`` x ``eth_gasPrice`` through the wallet.
    Solana: ``getFeeForMessage`` through the RPC fallback chain, or the
    nominal per-signature fee (flagged approximate) when RPC is down.
    """

    def __init__(
        self,
        handlers: Optional[HandlerMap] = None,
        settings: Optional[Settings] = None,
        switcher: Optional[NetworkSwitcher] = None,
    ):
        self.handlers = handlers
        self.settings = settings or get_settings()
        self.switcher = switcher

    async def estimate(
        self, connection: WalletConnection, request: TransferRequest
    ) -> FeeEstimate:
        """Estimate the fee of ``request`` on the connection's network.

        The request goes through the same local checks as a transfer, except
        the balance check, so malformed input never reaches the wallet. With a
        switcher, the wallet is moved to the connection's network afterwards.

        Raises:
            InvalidAddress, InvalidAmount, AmountTooSmall: Local checks
            UserRejected, NetworkSwitchFailed: Switching the wallet failed
            InsufficientFunds: Node reports the sender can't cover it (EVM)
            TransactionFailed: Estimation failed (e.g. the call would revert)
        """
        prepared = prepare_transfer(
            connection.network, request, self.settings, check_balance=False
        )
        if self.switcher is not None:
            chain_id = await self.switcher.ensure_network(connection.provider, connection.network)
            if chain_id is not None:
                connection.chain_id = chain_id

        handler = get_chain_handler(connection.network, self.handlers)
        estimate = await handler.estimate_fee(connection, prepared)

        logger.info(
            f"Fee estimate on {connection.network.value}: {estimate.estimated_cost_human} "
            f"{estimate.fee_symbol}{' (approximate)' if estimate.is_approximate else ''}"
        )
        return estimate
