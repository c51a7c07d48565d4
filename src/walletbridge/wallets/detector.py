"""Wallet detection over an injected provider environment."""

import logging
from typing import Any, Iterable, Optional

from walletbridge.models import DetectedWallet
from walletbridge.providers.base import ProviderEnvironment
from walletbridge.wallets.identities import (
    DEFAULT_IDENTITIES,
    WalletIdentity,
    resolve_evm_identity,
    resolve_solana_identity,
)

logger = logging.getLogger(__name__)


class WalletDetector:
    """Enumerates known wallets and finds their provider objects.

    Detection only reads provider attributes; it never issues a request, so
    it is safe to call as often as the UI likes.
    """

    def __init__(
        self,
        environment: ProviderEnvironment,
        identities: Iterable[WalletIdentity] = DEFAULT_IDENTITIES,
    ):
        self.environment = environment
        self.identities = tuple(identities)

        ids = [identity.id for identity in self.identities]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate wallet ids in registration: {ids}")

    def _claim_providers(self) -> tuple[dict[str, Any], dict[str, Any]]:
        """Attribute every candidate provider to at most one wallet id.

        The first candidate claimed by an identity wins, so the ambient
        provider takes precedence over sub-providers of the same wallet.
        """
        evm: dict[str, Any] = {}
        solana: dict[str, Any] = {}

        for provider in self.environment.evm_candidates():
            wallet_id = resolve_evm_identity(provider, self.identities)
            if wallet_id is None:
                logger.debug(f"Unrecognized EVM provider: {type(provider).__name__}")
                continue
            evm.setdefault(wallet_id, provider)

        for provider in self.environment.solana_candidates():
            wallet_id = resolve_solana_identity(provider, self.identities)
            if wallet_id is None:
                logger.debug(f"Unrecognized Solana provider: {type(provider).__name__}")
                continue
            solana.setdefault(wallet_id, provider)

        return evm, solana

    async def detect(self) -> list[DetectedWallet]:
        """List every known wallet: installed ones first, then by display name."""
        evm, solana = self._claim_providers()

        wallets = []
        for identity in self.identities:
            evm_provider = evm.get(identity.id)
            solana_provider = solana.get(identity.id)
            wallets.append(
                DetectedWallet(
                    id=identity.id,
                    display_name=identity.display_name,
                    installed=evm_provider is not None or solana_provider is not None,
                    supported_networks=identity.supported_networks,
                    install_url=identity.install_url,
                    evm_provider=evm_provider,
                    solana_provider=solana_provider,
                )
            )

        wallets.sort(key=lambda w: (not w.installed, w.display_name.lower()))
        installed = [w.id for w in wallets if w.installed]
        logger.debug(f"Detected wallets: {installed or 'none'}")
        return wallets

    async def find(self, wallet_id: str) -> Optional[DetectedWallet]:
        """Detect and return a single wallet by id, or None if unknown."""
        wanted = wallet_id.strip().lower()
        for wallet in await self.detect():
            if wallet.id == wanted:
                return wallet
        return None
