"""Wallet catalogue endpoint."""

from fastapi import APIRouter

from walletbridge.api.contracts import WalletInfo, WalletListResponse
from walletbridge.wallets.identities import DEFAULT_IDENTITIES

router = APIRouter(prefix="/wallets", tags=["wallets"])


@router.get("", response_model=WalletListResponse)
async def list_wallets() -> WalletListResponse:
    """Wallets the client can detect, in detection priority order."""
    identities = sorted(DEFAULT_IDENTITIES, key=lambda identity: identity.priority)
    return WalletListResponse(
        wallets=[
            WalletInfo(
                id=identity.id,
                name=identity.display_name,
                networks=sorted(n.value for n in identity.supported_networks),
                install_url=identity.install_url,
            )
            for identity in identities
        ]
    )
