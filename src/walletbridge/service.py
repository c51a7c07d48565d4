"""UI-facing facade over detection, connection, switching, fees and transfers."""

from typing import Iterable, Optional

from walletbridge.chains import Network
from walletbridge.config import Settings, get_settings
from walletbridge.errors import UnsupportedNetworkForWallet
from walletbridge.families.evm import EvmChainHandler
from walletbridge.families.factory import create_chain_handlers, get_chain_handler
from walletbridge.fees import FeeEstimator
from walletbridge.models import (
    DetectedWallet,
    FeeEstimate,
    TransferRequest,
    TransferResult,
    WalletConnection,
)
from walletbridge.providers.base import ProviderEnvironment
from walletbridge.rpc.fallback import RpcFallbackResolver
from walletbridge.switcher import NetworkSwitcher
from walletbridge.tokens import find_token_by_address
from walletbridge.transfer import TransferExecutor
from walletbridge.wallets.connection import ConnectionManager
from walletbridge.wallets.detector import WalletDetector
from walletbridge.wallets.identities import DEFAULT_IDENTITIES, WalletIdentity


class WalletService:
    """Wires the components together over one provider environment.

    Example:
        service = WalletService(environment)
        connection = await service.connect("phantom", "solana")
        result = await service.transfer(connection, request)
    """

    def __init__(
        self,
        environment: ProviderEnvironment,
        settings: Optional[Settings] = None,
        resolver: Optional[RpcFallbackResolver] = None,
        identities: Iterable[WalletIdentity] = DEFAULT_IDENTITIES,
    ):
        self.settings = settings or get_settings()
        self.handlers = create_chain_handlers(self.settings, resolver)

        self.detector = WalletDetector(environment, identities)
        self.connections = ConnectionManager(self.detector, self.handlers)
        self.switcher = NetworkSwitcher(self.handlers)
        self.fees = FeeEstimator(self.handlers, self.settings, self.switcher)
        self.executor = TransferExecutor(self.switcher, self.handlers, self.settings)

    async def detect(self) -> list[DetectedWallet]:
        return await self.detector.detect()

    async def connect(self, wallet_id: str, network: "str | Network") -> WalletConnection:
        return await self.connections.connect(wallet_id, network)

    async def ensure_network(
        self, connection: WalletConnection, network: "str | Network"
    ) -> WalletConnection:
        """Move a connection to another network of the same chain family.

        Raises:
            UnsupportedNetworkForWallet: Target is in another chain family
                (an EVM connection can't become a Solana one) or the wallet
                does not support it
        """
        try:
            target = Network.parse(network)
        except ValueError as e:
            raise UnsupportedNetworkForWallet(str(e)) from e

        if target.family is not connection.network.family:
            raise UnsupportedNetworkForWallet(
                f"Cannot move a {connection.network.value} connection to {target.value}",
                hint="Connect the wallet again on the new network.",
            )

        wallet = await self.detector.find(connection.wallet_id)
        if wallet is not None and target not in wallet.supported_networks:
            raise UnsupportedNetworkForWallet(
                f"{wallet.display_name} does not support {target.value}"
            )

        chain_id = await self.switcher.ensure_network(connection.provider, target)
        connection.network = target
        if chain_id is not None:
            connection.chain_id = chain_id
        return connection

    async def estimate(
        self, connection: WalletConnection, request: TransferRequest
    ) -> FeeEstimate:
        """Check the request locally, switch networks if needed, then estimate."""
        return await self.fees.estimate(connection, request)

    async def token_decimals(self, connection: WalletConnection, token_address: str) -> int:
        """Decimals of a token that is not in the catalogue.

        Raises:
            UnsupportedNetworkForWallet: Connection is not on an EVM network
        """
        token = find_token_by_address(connection.network, token_address)
        if token is not None:
            return token.decimals

        handler = get_chain_handler(connection.network, self.handlers)
        if not isinstance(handler, EvmChainHandler):
            raise UnsupportedNetworkForWallet(
                f"Decimals lookup is not available on {connection.network.value}",
                hint="Pass the token's decimals explicitly.",
            )
        return await handler.read_token_decimals(connection.provider, token_address)

    async def transfer(
        self, connection: WalletConnection, request: TransferRequest
    ) -> TransferResult:
        return await self.executor.transfer(connection, request)

    async def disconnect(self, connection: WalletConnection) -> None:
        await self.connections.disconnect(connection)
