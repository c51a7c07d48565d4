"""Local transfer checks that run before any wallet or RPC call.

Order: recipient address, token identifier, amount format, dust threshold,
then the caller-supplied balance. The first failing check raises.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from walletbridge.addresses import validate_address
from walletbridge.chains import ChainFamily, Network
from walletbridge.config import Settings, get_settings
from walletbridge.errors import AmountTooSmall, InsufficientFunds, InvalidAmount
from walletbridge.models import TransferRequest
from walletbridge.units import from_base_units, parse_amount, to_base_units

logger = logging.getLogger(__name__)

# uint256 tops out at 78 digits; nothing real uses more than 18 decimals
MAX_DECIMALS = 77

# Largest amount a transfer can carry: uint256 on EVM, u64 on Solana
MAX_BASE_UNITS = {
    ChainFamily.EVM: 2**256 - 1,
    ChainFamily.SOLANA: 2**64 - 1,
}


@dataclass
class PreparedTransfer:
    """A transfer request that passed every local check."""

    network: Network
    recipient: str                 # canonical form (EIP-55 / base58)
    amount_human: str              # canonical, no trailing zeros
    amount_base_units: int
    decimals: int
    token_identifier: Optional[str] = None

    @property
    def is_native(self) -> bool:
        return self.token_identifier is None


def prepare_transfer(
    network: "str | Network",
    request: TransferRequest,
    settings: Optional[Settings] = None,
    check_balance: bool = True,
) -> PreparedTransfer:
    """Validate a transfer request and convert its amount to base units.

    Args:
        network: Network the transfer goes out on
        request: Transfer request in human units
        settings: Settings override (defaults to the cached ones)
        check_balance: Compare against ``request.balance_human`` when given

    Returns:
        PreparedTransfer ready for a chain handler

    Raises:
        InvalidAddress: Recipient or token identifier is malformed
        InvalidAmount: Amount is not a positive number within precision, or
            exceeds what the network can encode
        AmountTooSmall: Amount is below the dust threshold
        InsufficientFunds: Amount exceeds the supplied balance
    """
    settings = settings or get_settings()
    network = Network.parse(network)

    recipient = validate_address(request.recipient, network)
    token = None
    if request.token_identifier:
        token = validate_address(request.token_identifier, network)

    decimals = request.decimals
    if not isinstance(decimals, int) or isinstance(decimals, bool) or not 0 <= decimals <= MAX_DECIMALS:
        raise InvalidAmount(f"Invalid token decimals: {decimals!r}")

    amount = parse_amount(request.amount_human, decimals)

    minimum = settings.min_transfer_amount
    if amount < minimum:
        raise AmountTooSmall(
            f"Amount {amount} is below the minimum of {minimum}",
            hint=f"Minimum amount is {minimum}.",
        )

    base_units = to_base_units(amount, decimals)
    if base_units > MAX_BASE_UNITS[network.family]:
        raise InvalidAmount(
            f"Amount {amount} is too large for {network.value}",
            hint="Enter a smaller amount.",
        )

    if check_balance and request.balance_human is not None:
        try:
            balance = Decimal(str(request.balance_human).strip())
        except InvalidOperation:
            raise InvalidAmount(f"Invalid balance figure: {request.balance_human!r}") from None
        if amount > balance:
            raise InsufficientFunds(
                f"Amount {amount} exceeds available balance {balance}",
                hint=f"Insufficient balance. Available: {balance}",
            )

    prepared = PreparedTransfer(
        network=network,
        recipient=recipient,
        amount_human=from_base_units(base_units, decimals),
        amount_base_units=base_units,
        decimals=decimals,
        token_identifier=token,
    )
    logger.debug(
        f"Prepared {network.value} transfer: {prepared.amount_human} "
        f"({base_units} base units) to {recipient}"
    )
    return prepared
