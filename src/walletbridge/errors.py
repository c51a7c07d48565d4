"""Failure taxonomy for the wallet layer.

Every error carries a stable ``code`` and a short, user-facing ``hint`` that is
distinct from the technical message. Raw provider / RPC errors are converted
with :func:`map_provider_error` before they leave this package.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)

# EIP-1193 / EIP-1474 provider error codes
USER_REJECTED_CODE = 4001
UNAUTHORIZED_CODE = 4100
UNRECOGNIZED_CHAIN_CODE = 4902

_INSUFFICIENT_FUNDS_MARKERS = (
    "insufficient funds",
    "insufficient balance",
    "insufficient lamports",
    "exceeds balance",
)
_REJECTION_MARKERS = (
    "user rejected",
    "user denied",
    "rejected the request",
    "user cancelled",
)


class WalletError(Exception):
    """Base class for all wallet-layer failures."""

    code = "wallet_error"
    default_hint = "Something went wrong. Please try again."

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint or self.default_hint
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "hint": self.hint}


class ProviderNotFound(WalletError):
    """Wallet is unknown or not installed for the requested network."""

    code = "provider_not_found"
    default_hint = "Install the wallet extension and reload the page."


class UnsupportedNetworkForWallet(WalletError):
    """Wallet does not support the requested network."""

    code = "unsupported_network"
    default_hint = "Choose a wallet that supports this network."


class UserRejected(WalletError):
    """User declined a permission or signature prompt."""

    code = "user_rejected"
    default_hint = "The request was declined in your wallet."


class RequestAlreadyPending(WalletError):
    """A transfer is already in flight on this connection."""

    code = "request_pending"
    default_hint = "Finish or cancel the pending request in your wallet first."


class NetworkSwitchFailed(WalletError):
    """Wallet could not switch to (or register) the target chain."""

    code = "network_switch_failed"
    default_hint = "Switch the network manually in your wallet."


class InvalidAddress(WalletError):
    """Address does not match the network's format."""

    code = "invalid_address"
    default_hint = "Check the address and the selected network."


class InvalidAmount(WalletError):
    """Amount is not a positive decimal within the token's precision."""

    code = "invalid_amount"
    default_hint = "Enter a positive number."


class AmountTooSmall(WalletError):
    """Amount is below the dust threshold."""

    code = "amount_too_small"
    default_hint = "Increase the amount."


class InsufficientFunds(WalletError):
    """Balance does not cover the amount (or the fee)."""

    code = "insufficient_funds"
    default_hint = "Insufficient balance. Lower the amount or top up."


class RpcUnavailable(WalletError):
    """Every RPC endpoint and the degraded wallet-only attempt failed."""

    code = "rpc_unavailable"
    default_hint = "Network congested, try again later."


class TransactionFailed(WalletError):
    """Transaction was rejected by the node or failed on-chain."""

    code = "transaction_failed"
    default_hint = "The transaction failed. Check the details and try again."


def get_error_code(error: BaseException) -> Optional[int]:
    """Extract an EIP-1193 style numeric code, looking into nested ``data``."""
    code = getattr(error, "code", None)
    if isinstance(code, int):
        return code
    data = getattr(error, "data", None)
    if isinstance(data, dict):
        original = data.get("originalError")
        if isinstance(original, dict) and isinstance(original.get("code"), int):
            return original["code"]
    return None


def is_user_rejection(error: BaseException) -> bool:
    """Check whether a raw provider error means the user declined."""
    if get_error_code(error) == USER_REJECTED_CODE:
        return True
    text = str(error).lower()
    return any(marker in text for marker in _REJECTION_MARKERS)


def is_unrecognized_chain(error: BaseException) -> bool:
    """Check for the 'chain not added to wallet' condition (code 4902)."""
    if getattr(error, "code", None) == UNRECOGNIZED_CHAIN_CODE:
        return True
    data = getattr(error, "data", None)
    if isinstance(data, dict):
        original = data.get("originalError")
        if isinstance(original, dict) and original.get("code") == UNRECOGNIZED_CHAIN_CODE:
            return True
    return False


def map_provider_error(error: BaseException, operation: str = "request") -> WalletError:
    """Map a raw provider or RPC error into the taxonomy.

    Args:
        error: Exception raised by a wallet provider or RPC call
        operation: Short description for the message ("send", "connect", ...)

    Returns:
        The WalletError to raise (the original error is returned unchanged
        when it already belongs to the taxonomy)
    """
    if isinstance(error, WalletError):
        return error

    text = str(error) or error.__class__.__name__
    lowered = text.lower()

    if is_user_rejection(error):
        return UserRejected(f"User rejected {operation}: {text}")

    if get_error_code(error) == UNAUTHORIZED_CODE:
        return UserRejected(
            f"Wallet has not authorized {operation}: {text}",
            hint="Reconnect the wallet and approve access.",
        )

    if any(marker in lowered for marker in _INSUFFICIENT_FUNDS_MARKERS):
        return InsufficientFunds(f"{operation} failed: {text}")

    logger.debug(f"Unmapped provider error during {operation}: {text}")
    return TransactionFailed(f"{operation} failed: {text}")
