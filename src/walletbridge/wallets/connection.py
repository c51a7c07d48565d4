"""Wallet connection lifecycle: connect, watch, disconnect."""

import logging
from typing import Callable, Optional

from walletbridge.addresses import validate_evm_address
from walletbridge.chains import Network, get_chain
from walletbridge.errors import InvalidAddress, ProviderNotFound, UnsupportedNetworkForWallet
from walletbridge.families.evm import parse_quantity
from walletbridge.families.factory import HandlerMap, get_chain_handler
from walletbridge.models import WalletConnection
from walletbridge.utils.locks import release_connection_lock
from walletbridge.wallets.detector import WalletDetector
from walletbridge.wallets.identities import get_identity

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Opens and closes wallet connections."""

    def __init__(self, detector: WalletDetector, handlers: Optional[HandlerMap] = None):
        self.detector = detector
        self.handlers = handlers

    async def connect(self, wallet_id: str, network: "str | Network") -> WalletConnection:
        """Connect a wallet on a network.

        Wallet and network compatibility is checked before the wallet is
        asked for anything, so a failed pre-check never shows a prompt.

        Args:
            wallet_id: Wallet identity id ("metamask", "phantom", ...)
            network: Target network

        Returns:
            Open WalletConnection with a validated address

        Raises:
            ProviderNotFound: Unknown wallet, or not installed
            UnsupportedNetworkForWallet: Wallet does not serve the network
            UserRejected: User declined the connection prompt
        """
        identity = get_identity(wallet_id, self.detector.identities)
        if identity is None:
            raise ProviderNotFound(f"Unknown wallet '{wallet_id}'")

        try:
            network = Network.parse(network)
        except ValueError as e:
            raise UnsupportedNetworkForWallet(str(e)) from e

        if not identity.supports(network):
            raise UnsupportedNetworkForWallet(
                f"{identity.display_name} does not support {network.value}",
                hint=f"Use a wallet that supports {get_chain(network).name}.",
            )

        wallet = await self.detector.find(identity.id)
        provider = wallet.provider_for(network) if wallet else None
        if provider is None:
            raise ProviderNotFound(
                f"{identity.display_name} is not installed",
                hint=f"Install {identity.display_name} from {identity.install_url}",
            )

        handler = get_chain_handler(network, self.handlers)
        address, chain_id = await handler.connect(provider)

        connection = WalletConnection(
            address=address,
            network=network,
            provider=provider,
            wallet_id=identity.id,
            chain_id=chain_id,
        )
        logger.info(f"Connected {identity.id} on {network.value}: {address}")
        return connection

    async def disconnect(self, connection: WalletConnection) -> None:
        """Close a connection. Closing an already closed connection is a no-op."""
        if not connection.connected:
            return

        handler = get_chain_handler(connection.network, self.handlers)
        try:
            await handler.disconnect(connection.provider)
        finally:
            connection.connected = False
            release_connection_lock(connection.id)
            logger.info(f"Disconnected {connection.wallet_id} ({connection.address})")

    def watch(
        self,
        connection: WalletConnection,
        on_accounts_changed: Optional[Callable[[WalletConnection], None]] = None,
        on_chain_changed: Optional[Callable[[WalletConnection], None]] = None,
    ) -> Callable[[], None]:
        """Keep an EVM connection in sync with wallet events.

        ``accountsChanged`` updates the address (an empty list closes the
        connection) and ``chainChanged`` updates the chain id. Callbacks
        receive the updated connection.

        Returns:
            Function that removes the subscriptions
        """
        provider = connection.provider
        if not connection.network.is_evm or not hasattr(provider, "on"):
            return lambda: None

        def handle_accounts(accounts: list) -> None:
            if not accounts:
                connection.connected = False
                logger.info(f"{connection.wallet_id} locked or revoked access")
            else:
                try:
                    connection.address = validate_evm_address(accounts[0])
                except InvalidAddress:
                    logger.warning(f"Ignoring malformed account from wallet: {accounts[0]!r}")
                    return
                logger.info(f"{connection.wallet_id} switched account: {connection.address}")
            if on_accounts_changed:
                on_accounts_changed(connection)

        def handle_chain(chain_id) -> None:
            try:
                connection.chain_id = parse_quantity(chain_id)
            except ValueError:
                logger.warning(f"Ignoring malformed chain id from wallet: {chain_id!r}")
                return
            logger.info(f"{connection.wallet_id} switched to chain {hex(connection.chain_id)}")
            if on_chain_changed:
                on_chain_changed(connection)

        provider.on("accountsChanged", handle_accounts)
        provider.on("chainChanged", handle_chain)

        def unsubscribe() -> None:
            provider.remove_listener("accountsChanged", handle_accounts)
            provider.remove_listener("chainChanged", handle_chain)

        return unsubscribe
