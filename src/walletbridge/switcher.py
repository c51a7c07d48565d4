"""Network switching for connected wallets."""

import logging
from typing import Any, Optional

from walletbridge.chains import Network
from walletbridge.errors import UnsupportedNetworkForWallet
from walletbridge.families.factory import HandlerMap, get_chain_handler

logger = logging.getLogger(__name__)


class NetworkSwitcher:
    """Makes sure a wallet operates on the target network.

    For EVM wallets this may prompt the user to switch chains and, when the
    wallet does not know the chain yet, to register it first. Solana has a
    single network, so nothing happens there.
    """

    def __init__(self, handlers: Optional[HandlerMap] = None):
        self.handlers = handlers

    async def ensure_network(self, provider: Any, target: "str | Network") -> Optional[int]:
        """Switch ``provider`` to ``target`` if it isn't already there.

        Args:
            provider: Provider handle from a WalletConnection
            target: Network to operate on

        Returns:
            Active EVM chain id, or None for Solana

        Raises:
            UnsupportedNetworkForWallet: Unknown network
            UserRejected: User declined the switch or chain registration
            NetworkSwitchFailed: Wallet could not switch
        """
        try:
            network = Network.parse(target)
        except ValueError as e:
            raise UnsupportedNetworkForWallet(str(e)) from e

        handler = get_chain_handler(network, self.handlers)
        logger.debug(f"Ensuring wallet is on {network.value} ({handler.family.value} handler)")
        return await handler.ensure_network(provider, network)
