"""Transfer preflight endpoint."""

import logging

from fastapi import APIRouter, Request

from walletbridge.api.contracts import (
    ErrorResponse,
    TransferPreflightRequest,
    TransferPreflightResponse,
)
from walletbridge.chains import Network
from walletbridge.errors import InvalidAmount, UnsupportedNetworkForWallet
from walletbridge.families.evm import EvmChainHandler
from walletbridge.families.factory import get_chain_handler
from walletbridge.models import TransferRequest
from walletbridge.tokens import build_transfer_request
from walletbridge.validation import prepare_transfer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transfers", tags=["transfers"])


def _to_transfer_request(network: Network, body: TransferPreflightRequest) -> TransferRequest:
    if body.token_address:
        if body.decimals is None:
            raise InvalidAmount(
                "decimals is required with token_address",
                hint="Pass the token's decimals.",
            )
        return TransferRequest(
            recipient=body.recipient,
            amount_human=body.amount,
            decimals=body.decimals,
            token_identifier=body.token_address,
            balance_human=body.balance,
        )

    symbol = body.token or ("ETH" if network.is_evm else "SOL")
    try:
        return build_transfer_request(
            network, symbol, body.recipient, body.amount, balance=body.balance
        )
    except ValueError as e:
        raise InvalidAmount(str(e), hint="Use a listed token or pass token_address.") from e


@router.post(
    "/preflight",
    response_model=TransferPreflightResponse,
    responses={400: {"model": ErrorResponse}},
)
async def preflight(body: TransferPreflightRequest, request: Request) -> TransferPreflightResponse:
    """Run the local transfer checks without touching a wallet.

    Returns the canonical recipient and the base-unit amount; wallet-layer
    errors come back as ``{"success": false, "error": ...}``.
    """
    try:
        network = Network.parse(body.network)
    except ValueError as e:
        raise UnsupportedNetworkForWallet(str(e)) from e

    settings = request.app.state.settings
    prepared = prepare_transfer(network, _to_transfer_request(network, body), settings)

    transaction = None
    if body.from_address and network.is_evm:
        handler = get_chain_handler(network, request.app.state.handlers)
        if isinstance(handler, EvmChainHandler):
            sender = handler.validate_address(body.from_address)
            transaction = handler.build_transaction(sender, prepared)

    logger.debug(f"Preflight ok: {prepared.amount_human} on {network.value} to {prepared.recipient}")
    return TransferPreflightResponse(
        network=network.value,
        recipient=prepared.recipient,
        amount=prepared.amount_human,
        amount_base_units=str(prepared.amount_base_units),
        decimals=prepared.decimals,
        token_address=prepared.token_identifier,
        transaction=transaction,
    )
