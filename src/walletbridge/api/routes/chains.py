"""Chain metadata endpoints."""

from fastapi import APIRouter, HTTPException

from walletbridge.api.contracts import (
    ChainInfo,
    ChainListResponse,
    NativeCurrencyInfo,
    TokenInfo,
)
from walletbridge.chains import ChainConfig, Network, get_all_chains, get_chain
from walletbridge.tokens import get_tokens

router = APIRouter(prefix="/chains", tags=["chains"])


def _chain_info(chain: ChainConfig) -> ChainInfo:
    currency = chain.native_currency
    return ChainInfo(
        network=chain.network.value,
        name=chain.name,
        family=chain.family.value,
        chain_id=chain.chain_id,
        chain_id_hex=chain.chain_id_hex,
        native_currency=NativeCurrencyInfo(
            name=currency.name, symbol=currency.symbol, decimals=currency.decimals
        ),
        explorer_url=chain.explorer_url,
        rpc_urls=list(chain.rpc_urls),
        tokens=[
            TokenInfo(
                symbol=token.symbol,
                name=token.name,
                decimals=token.decimals,
                address=token.address,
                is_native=token.is_native,
            )
            for token in get_tokens(chain.network)
        ],
        add_chain_params=chain.add_chain_params() if chain.chain_id is not None else None,
    )


@router.get("", response_model=ChainListResponse)
async def list_chains() -> ChainListResponse:
    """Get the supported networks with their tokens and explorer URLs."""
    return ChainListResponse(chains=[_chain_info(chain) for chain in get_all_chains()])


@router.get("/{network}", response_model=ChainInfo)
async def chain_detail(network: str) -> ChainInfo:
    """Get one network, including its wallet_addEthereumChain descriptor.

    Args:
        network: ethereum, base or solana
    """
    try:
        chain = get_chain(Network.parse(network))
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Chain not found: {network}")
    return _chain_info(chain)
