"""Wallet detection and connection management."""

from walletbridge.wallets.connection import ConnectionManager
from walletbridge.wallets.detector import WalletDetector
from walletbridge.wallets.identities import DEFAULT_IDENTITIES, WalletIdentity

__all__ = ["ConnectionManager", "DEFAULT_IDENTITIES", "WalletDetector", "WalletIdentity"]
