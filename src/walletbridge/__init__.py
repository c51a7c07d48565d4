"""Multi-chain wallet connection and token transfer layer (Ethereum, Base, Solana)."""

__version__ = "0.1.0"
