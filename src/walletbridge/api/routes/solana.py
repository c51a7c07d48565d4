"""Solana fee endpoint."""

from typing import Optional

from fastapi import APIRouter, Query, Request

from walletbridge.api.contracts import ErrorResponse, FeeEstimateResponse
from walletbridge.chains import SOL, Network
from walletbridge.errors import InvalidAmount
from walletbridge.families.factory import get_chain_handler
from walletbridge.models import TransferRequest, WalletConnection
from walletbridge.tokens import find_token_by_address
from walletbridge.validation import prepare_transfer

router = APIRouter(prefix="/solana", tags=["solana"])


@router.get(
    "/fee",
    response_model=FeeEstimateResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def solana_fee(
    request: Request,
    sender: str = Query(..., description="Fee payer public key"),
    recipient: str = Query(..., description="Recipient public key"),
    amount: str = Query("0.001", description="Human amount"),
    mint: Optional[str] = Query(None, description="SPL mint (SOL transfer if omitted)"),
    decimals: Optional[int] = Query(None, ge=0, description="Mint decimals (catalogue used if omitted)"),
) -> FeeEstimateResponse:
    """Fee for a SOL or SPL transfer, via the RPC fallback chain.

    Falls back to the nominal per-signature fee (``is_approximate``) when no
    endpoint answers.
    """
    handler = get_chain_handler(Network.SOLANA, request.app.state.handlers)
    sender_address = handler.validate_address(sender)

    if mint and decimals is None:
        token = find_token_by_address(Network.SOLANA, mint)
        if token is None:
            raise InvalidAmount(
                f"Unknown mint {mint}: decimals is required",
                hint="Pass the mint's decimals.",
            )
        decimals = token.decimals

    transfer_request = TransferRequest(
        recipient=recipient,
        amount_human=amount,
        decimals=decimals if mint else SOL.decimals,
        token_identifier=mint,
    )
    prepared = prepare_transfer(
        Network.SOLANA, transfer_request, request.app.state.settings, check_balance=False
    )

    # Read-only estimate: no provider is involved
    connection = WalletConnection(
        address=sender_address, network=Network.SOLANA, provider=None, wallet_id="api"
    )
    estimate = await handler.estimate_fee(connection, prepared)

    return FeeEstimateResponse(
        network=Network.SOLANA.value,
        units=estimate.gas_limit_or_units,
        unit_price=estimate.unit_price,
        total_base_units=estimate.total_base_units,
        estimated_cost=estimate.estimated_cost_human,
        fee_symbol=estimate.fee_symbol,
        is_approximate=estimate.is_approximate,
    )
