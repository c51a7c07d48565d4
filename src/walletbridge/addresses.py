"""Address validation and formatting for EVM and Solana networks."""

import re
from typing import Optional

from solders.pubkey import Pubkey
from web3 import Web3

from walletbridge.chains import Network
from walletbridge.errors import InvalidAddress

EVM_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

# Solana public keys are 32 bytes: 32-44 base58 characters
SOLANA_MIN_LENGTH = 32
SOLANA_MAX_LENGTH = 44


def validate_evm_address(address: str) -> str:
    """Validate an EVM address and return its EIP-55 checksummed form.

    All-lowercase and all-uppercase hex are accepted; mixed case must carry a
    valid checksum.

    Raises:
        InvalidAddress: If the address is malformed
    """
    if not address or not isinstance(address, str):
        raise InvalidAddress("Address is required", hint="Enter a recipient address.")

    candidate = address.strip()
    if not EVM_ADDRESS_RE.match(candidate):
        raise InvalidAddress(f"Invalid EVM address format: {candidate!r}")

    body = candidate[2:]
    checksummed = Web3.to_checksum_address(candidate)
    if body != body.lower() and body != body.upper() and checksummed != candidate:
        raise InvalidAddress(
            f"EVM address checksum mismatch: {candidate}",
            hint="The address may contain a typo. Copy it again from the source.",
        )
    return checksummed


def validate_solana_address(address: str) -> str:
    """Validate a base58 Solana public key and return its canonical string.

    Raises:
        InvalidAddress: If the address does not decode to a 32-byte key
    """
    if not address or not isinstance(address, str):
        raise InvalidAddress("Address is required", hint="Enter a recipient address.")

    candidate = address.strip()
    if not SOLANA_MIN_LENGTH <= len(candidate) <= SOLANA_MAX_LENGTH:
        raise InvalidAddress(f"Invalid Solana address length: {len(candidate)}")

    try:
        pubkey = Pubkey.from_string(candidate)
    except ValueError:
        raise InvalidAddress(f"Invalid Solana address format: {candidate!r}") from None
    return str(pubkey)


def validate_address(address: str, network: "str | Network") -> str:
    """Validate an address for a network and return its canonical form."""
    if Network.parse(network).is_evm:
        return validate_evm_address(address)
    return validate_solana_address(address)


def is_valid_address(address: str, network: "str | Network") -> bool:
    """Boolean form of :func:`validate_address`."""
    try:
        validate_address(address, network)
        return True
    except InvalidAddress:
        return False


def detect_address_network(address: str) -> Optional[str]:
    """Guess the chain family of an address: "evm", "solana", or None.

    EVM is tried first since a 0x-prefixed string is never valid base58.
    """
    if is_valid_address(address, Network.ETHEREUM):
        return "evm"
    if is_valid_address(address, Network.SOLANA):
        return "solana"
    return None


def shorten_address(address: str, start_chars: int = 6, end_chars: int = 4) -> str:
    """Shorten an address for display: ``0x1234...abcd``."""
    if not address or len(address) < start_chars + end_chars:
        return address
    return f"{address[:start_chars]}...{address[-end_chars:]}"
