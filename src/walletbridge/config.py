"""Application configuration using pydantic-settings.

RPC endpoints, transfer limits and fee fallbacks for the Ethereum, Base and
Solana wallet layer.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # Chain RPC Endpoints
    # ======================
    # EVM chains (advertised to wallets in chain-registration requests)
    eth_rpc_url: str = Field(
        default="https://ethereum-rpc.publicnode.com", description="Ethereum RPC URL"
    )
    base_rpc_url: str = Field(
        default="https://mainnet.base.org", description="Base RPC URL"
    )

    # Solana: primary endpoint followed by the ordered fallback chain
    sol_rpc_url: str = Field(
        default="https://api.mainnet-beta.solana.com", description="Primary Solana RPC URL"
    )
    sol_rpc_fallback_urls: str = Field(
        default="https://rpc.ankr.com/solana,https://solana-rpc.publicnode.com",
        description="Comma-separated Solana RPC URLs tried after the primary one",
    )
    rpc_timeout: float = Field(default=15.0, description="Solana RPC request timeout (seconds)")

    # ======================
    # Transfers
    # ======================
    min_transfer_amount: Decimal = Field(
        default=Decimal("0.000001"),
        description="Smallest human amount accepted for a transfer (dust guard)",
    )
    create_recipient_token_account: bool = Field(
        default=True,
        description="Create the recipient's associated token account on SPL transfers if missing",
    )

    # ======================
    # Fee Fallbacks
    # ======================
    solana_nominal_fee_lamports: int = Field(
        default=5000, description="Approximate Solana fee per signature when RPC lookup fails"
    )
    evm_fallback_gas_price_gwei: int = Field(
        default=20, description="Gas price used when the wallet reports none"
    )

    @property
    def solana_endpoints(self) -> list[str]:
        """Ordered Solana endpoint list: primary first, then fallbacks, no duplicates."""
        endpoints: list[str] = []
        candidates = [self.sol_rpc_url] + self.sol_rpc_fallback_urls.split(",")
        for url in candidates:
            url = url.strip()
            if url and url not in endpoints:
                endpoints.append(url)
        return endpoints

    def get_rpc_url(self, network: str) -> str:
        """Get the primary RPC URL for a network."""
        rpc_map = {
            "ETHEREUM": self.eth_rpc_url,
            "BASE": self.base_rpc_url,
            "SOLANA": self.sol_rpc_url,
        }
        return rpc_map.get(network.upper(), "")

    def get_safe_dict(self) -> dict:
        """Return settings dict with API keys in RPC URLs redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "chains": {
                "ethereum": {"rpc": self._redact_url(self.eth_rpc_url)},
                "base": {"rpc": self._redact_url(self.base_rpc_url)},
                "solana": {
                    "rpc": [self._redact_url(url) for url in self.solana_endpoints],
                    "timeout": self.rpc_timeout,
                },
            },
            "transfers": {
                "min_amount": str(self.min_transfer_amount),
                "create_recipient_token_account": self.create_recipient_token_account,
            },
            "fees": {
                "solana_nominal_lamports": self.solana_nominal_fee_lamports,
                "evm_fallback_gwei": self.evm_fallback_gas_price_gwei,
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact api-key style query parameters from an RPC URL."""
        if "?" not in url:
            return url
        base, _ = url.split("?", 1)
        return f"{base}?***"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
