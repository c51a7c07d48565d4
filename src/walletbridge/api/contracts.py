"""Request and response contracts for the HTTP API.

The API never talks to a wallet: it serves chain and wallet metadata and
runs the local transfer checks so clients can validate before prompting.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body of every wallet-layer error response."""

    success: bool = Field(default=False)
    error: str = Field(..., description="Stable error code (invalid_address, ...)")
    message: str = Field(..., description="Technical message")
    hint: str = Field(..., description="Short user-facing remediation")


class NativeCurrencyInfo(BaseModel):
    name: str
    symbol: str
    decimals: int


class TokenInfo(BaseModel):
    """Catalogued token on a network."""

    symbol: str
    name: str
    decimals: int
    address: Optional[str] = Field(None, description="Contract / mint (None for native)")
    is_native: bool


class ChainInfo(BaseModel):
    """Network metadata."""

    network: str = Field(..., description="Network id (ethereum, base, solana)")
    name: str
    family: str = Field(..., description="evm or solana")
    chain_id: Optional[int] = Field(None, description="EVM chain id (None for Solana)")
    chain_id_hex: Optional[str] = None
    native_currency: NativeCurrencyInfo
    explorer_url: str
    rpc_urls: list[str] = Field(default_factory=list)
    tokens: list[TokenInfo] = Field(default_factory=list)
    add_chain_params: Optional[dict] = Field(
        None, description="wallet_addEthereumChain descriptor (EVM only)"
    )


class ChainListResponse(BaseModel):
    chains: list[ChainInfo]


class WalletInfo(BaseModel):
    """Wallet identity the client can offer."""

    id: str
    name: str
    networks: list[str]
    install_url: str


class WalletListResponse(BaseModel):
    wallets: list[WalletInfo]


class TransferPreflightRequest(BaseModel):
    """Transfer to validate locally.

    Give either ``token`` (catalogue symbol, native symbol included) or
    ``token_address`` + ``decimals``. With neither, the native currency is
    used.
    """

    network: str = Field(..., description="ethereum, base or solana")
    recipient: str = Field(..., description="Recipient address")
    amount: str = Field(..., description="Human amount as a decimal string")
    token: Optional[str] = Field(None, description="Catalogue symbol (USDC, SOL, ...)")
    token_address: Optional[str] = Field(None, description="ERC-20 contract or SPL mint")
    decimals: Optional[int] = Field(None, ge=0, description="Required with token_address")
    balance: Optional[str] = Field(None, description="Sender balance for the sufficiency check")
    from_address: Optional[str] = Field(
        None, description="Sender; EVM responses then include the transaction template"
    )


class TransferPreflightResponse(BaseModel):
    """Normalized transfer after the local checks passed."""

    success: bool = Field(default=True)
    network: str
    recipient: str = Field(..., description="Canonical recipient address")
    amount: str = Field(..., description="Canonical human amount")
    amount_base_units: str = Field(..., description="Amount in base units (decimal string)")
    decimals: int
    token_address: Optional[str] = None
    transaction: Optional[dict] = Field(
        None, description="eth_sendTransaction parameters (EVM with from_address)"
    )


class FeeEstimateResponse(BaseModel):
    """Network fee estimate."""

    network: str
    units: int = Field(..., description="Gas units or signatures")
    unit_price: int = Field(..., description="Wei per gas or lamports per signature")
    total_base_units: int
    estimated_cost: str = Field(..., description="Cost in the native currency")
    fee_symbol: str
    is_approximate: bool
