"""Known tokens per network.

Transfers accept any token contract / mint; this catalogue only saves the
caller from looking up addresses and decimals for the common stablecoins.
"""

from dataclasses import dataclass
from typing import Optional

from walletbridge.chains import Network, get_chain
from walletbridge.models import TransferRequest


@dataclass(frozen=True)
class Token:
    """Token descriptor. ``address`` is None for the native currency."""

    symbol: str
    name: str
    decimals: int
    address: Optional[str] = None  # ERC-20 contract or SPL mint

    @property
    def is_native(self) -> bool:
        return self.address is None


# Token contracts on Ethereum mainnet
ETHEREUM_TOKENS = {
    "USDC": Token("USDC", "USD Coin", 6, "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"),
    "USDT": Token("USDT", "Tether USD", 6, "0xdAC17F958D2ee523a2206206994597C13D831ec7"),
    "PYUSD": Token("PYUSD", "PayPal USD", 6, "0x6c3EA9036406852006290770BEdFcAbA0e23A0e8"),
}

# Token contracts on Base
BASE_TOKENS = {
    "USDC": Token("USDC", "USD Coin", 6, "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"),
}

# Token mint addresses on Solana mainnet
SOLANA_TOKENS = {
    "USDC": Token("USDC", "USD Coin", 6, "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"),
    "USDT": Token("USDT", "Tether USD", 6, "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"),
}

TOKENS: dict[Network, dict[str, Token]] = {
    Network.ETHEREUM: ETHEREUM_TOKENS,
    Network.BASE: BASE_TOKENS,
    Network.SOLANA: SOLANA_TOKENS,
}


def native_token(network: "str | Network") -> Token:
    """Native currency of a network as a Token."""
    currency = get_chain(network).native_currency
    return Token(currency.symbol, currency.name, currency.decimals)


def get_tokens(network: "str | Network") -> list[Token]:
    """Native currency first, then the known tokens."""
    network = Network.parse(network)
    return [native_token(network)] + list(TOKENS[network].values())


def get_token(network: "str | Network", symbol: str) -> Optional[Token]:
    """Look up a token by symbol (the native symbol included)."""
    network = Network.parse(network)
    symbol = symbol.strip().upper()
    native = native_token(network)
    if symbol == native.symbol:
        return native
    return TOKENS[network].get(symbol)


def find_token_by_address(network: "str | Network", address: str) -> Optional[Token]:
    """Reverse lookup by contract / mint (case-insensitive for EVM)."""
    network = Network.parse(network)
    wanted = address.lower() if network.is_evm else address
    for token in TOKENS[network].values():
        candidate = token.address.lower() if network.is_evm else token.address
        if candidate == wanted:
            return token
    return None


def build_transfer_request(
    network: "str | Network",
    symbol: str,
    recipient: str,
    amount: str,
    balance: Optional[str] = None,
) -> TransferRequest:
    """TransferRequest for a catalogued token.

    Raises:
        ValueError: Symbol is not known on the network
    """
    network = Network.parse(network)
    token = get_token(network, symbol)
    if token is None:
        raise ValueError(f"Unknown token '{symbol}' on {network.value}")
    return TransferRequest(
        recipient=recipient,
        amount_human=amount,
        decimals=token.decimals,
        token_identifier=token.address,
        balance_human=balance,
    )
