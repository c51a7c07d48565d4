"""Tests for wallet detection and connection management."""

import pytest

from conftest import EVM_ADDRESS, SOLANA_SENDER
from walletbridge.chains import Network
from walletbridge.errors import (
    ProviderNotFound,
    UnsupportedNetworkForWallet,
    UserRejected,
)
from walletbridge.providers.base import PhantomNamespace, ProviderEnvironment
from walletbridge.providers.dryrun import (
    DryRunEvmProvider,
    DryRunSolanaProvider,
    create_dryrun_environment,
)
from walletbridge.wallets.connection import ConnectionManager
from walletbridge.wallets.detector import WalletDetector
from walletbridge.wallets.identities import (
    DEFAULT_IDENTITIES,
    WalletIdentity,
    resolve_evm_identity,
)


def installed_ids(wallets):
    return [w.id for w in wallets if w.installed]


class TestIdentityResolution:
    """Tests for attributing provider objects to wallets."""

    def test_genuine_metamask(self):
        provider = DryRunEvmProvider(flags={"is_metamask"})
        assert resolve_evm_identity(provider) == "metamask"

    def test_phantom_masquerading_as_metamask(self):
        provider = DryRunEvmProvider(flags={"is_metamask", "is_phantom"})
        assert resolve_evm_identity(provider) == "phantom"

    def test_rabby_masquerading_as_metamask(self):
        provider = DryRunEvmProvider(flags={"is_metamask", "is_rabby"})
        assert resolve_evm_identity(provider) == "rabby"

    def test_coinbase_via_selected_provider(self):
        wrapper = DryRunEvmProvider()
        wrapper.selected_provider = DryRunEvmProvider(flags={"is_coinbase_wallet"})
        assert resolve_evm_identity(wrapper) == "coinbase"

    def test_unknown_provider(self):
        assert resolve_evm_identity(DryRunEvmProvider()) is None


class TestWalletDetector:
    """Tests for WalletDetector.detect()."""

    @pytest.mark.asyncio
    async def test_empty_environment(self):
        """No providers means nothing installed, never an error."""
        wallets = await WalletDetector(ProviderEnvironment()).detect()

        assert len(wallets) == len(DEFAULT_IDENTITIES)
        assert installed_ids(wallets) == []

    @pytest.mark.asyncio
    async def test_no_duplicate_ids(self):
        env = create_dryrun_environment(["metamask", "phantom", "coinbase", "rabby"])
        wallets = await WalletDetector(env).detect()

        ids = [w.id for w in wallets]
        assert len(ids) == len(set(ids))

    @pytest.mark.asyncio
    async def test_installed_entries_have_providers(self):
        env = create_dryrun_environment(["metamask", "phantom", "trust"])
        wallets = await WalletDetector(env).detect()

        for wallet in wallets:
            if wallet.installed:
                assert wallet.evm_provider is not None or wallet.solana_provider is not None
            else:
                assert wallet.evm_provider is None and wallet.solana_provider is None

    @pytest.mark.asyncio
    async def test_installed_first_then_name(self):
        env = create_dryrun_environment(["rainbow", "metamask"])
        wallets = await WalletDetector(env).detect()

        assert installed_ids(wallets) == ["metamask", "rainbow"]
        assert [w.id for w in wallets[:2]] == ["metamask", "rainbow"]
        not_installed = [w.display_name.lower() for w in wallets[2:]]
        assert not_installed == sorted(not_installed)

    @pytest.mark.asyncio
    async def test_phantom_claims_both_families(self):
        env = create_dryrun_environment(["phantom"])
        wallets = await WalletDetector(env).detect()

        phantom = next(w for w in wallets if w.id == "phantom")
        metamask = next(w for w in wallets if w.id == "metamask")
        assert phantom.installed
        assert phantom.evm_provider is env.phantom.ethereum
        assert phantom.solana_provider is env.phantom.solana
        # Phantom's EVM provider sets is_metamask but must not count as MetaMask
        assert not metamask.installed

    @pytest.mark.asyncio
    async def test_stacked_extensions(self):
        """Sub-providers of a multi-injected ambient provider are all found."""
        env = create_dryrun_environment(["metamask", "coinbase", "trust"])
        wallets = await WalletDetector(env).detect()

        assert set(installed_ids(wallets)) == {"metamask", "coinbase", "trust"}

    @pytest.mark.asyncio
    async def test_find(self):
        env = create_dryrun_environment(["metamask"])
        detector = WalletDetector(env)

        assert (await detector.find("MetaMask")).installed
        assert await detector.find("unknown") is None

    def test_duplicate_registration_rejected(self):
        duplicate = WalletIdentity(
            id="metamask",
            display_name="Other",
            supported_networks=frozenset({Network.ETHEREUM}),
            install_url="",
            priority=9,
        )
        with pytest.raises(ValueError):
            WalletDetector(ProviderEnvironment(), DEFAULT_IDENTITIES + (duplicate,))


class TestConnectionManager:
    """Tests for connect / disconnect / watch."""

    @pytest.mark.asyncio
    async def test_connect_evm(self):
        env = create_dryrun_environment(["metamask"], evm_address=EVM_ADDRESS.lower())
        manager = ConnectionManager(WalletDetector(env))

        connection = await manager.connect("metamask", "ethereum")

        assert connection.address == EVM_ADDRESS  # checksummed
        assert connection.network is Network.ETHEREUM
        assert connection.chain_id == 1
        assert connection.connected
        assert connection.provider is env.ethereum

    @pytest.mark.asyncio
    async def test_connect_does_not_switch(self):
        env = create_dryrun_environment(["metamask"])
        manager = ConnectionManager(WalletDetector(env))

        connection = await manager.connect("metamask", "base")

        assert connection.network is Network.BASE
        assert connection.chain_id == 1
        assert env.ethereum.calls("wallet_switchEthereumChain") == []

    @pytest.mark.asyncio
    async def test_connect_solana(self):
        env = create_dryrun_environment(["phantom"], solana_public_key=SOLANA_SENDER)
        manager = ConnectionManager(WalletDetector(env))

        connection = await manager.connect("phantom", Network.SOLANA)

        assert connection.address == SOLANA_SENDER
        assert connection.chain_id is None
        assert connection.provider is env.phantom.solana

    @pytest.mark.asyncio
    async def test_not_installed_issues_no_request(self):
        env = create_dryrun_environment(["metamask"])
        manager = ConnectionManager(WalletDetector(env))

        with pytest.raises(ProviderNotFound) as exc_info:
            await manager.connect("phantom", "solana")

        assert "phantom.app" in exc_info.value.hint
        assert env.ethereum.requests == []

    @pytest.mark.asyncio
    async def test_unknown_wallet(self):
        manager = ConnectionManager(WalletDetector(ProviderEnvironment()))

        with pytest.raises(ProviderNotFound):
            await manager.connect("no-such-wallet", "ethereum")

    @pytest.mark.asyncio
    async def test_metamask_on_solana_unsupported(self):
        env = create_dryrun_environment(["metamask"])
        manager = ConnectionManager(WalletDetector(env))

        with pytest.raises(UnsupportedNetworkForWallet):
            await manager.connect("metamask", "solana")

        assert env.ethereum.requests == []

    @pytest.mark.asyncio
    async def test_unknown_network(self):
        env = create_dryrun_environment(["metamask"])
        manager = ConnectionManager(WalletDetector(env))

        with pytest.raises(UnsupportedNetworkForWallet):
            await manager.connect("metamask", "polygon")

    @pytest.mark.asyncio
    async def test_user_rejects_connection(self):
        provider = DryRunEvmProvider(
            flags={"is_metamask"}, reject_methods={"eth_requestAccounts"}
        )
        manager = ConnectionManager(WalletDetector(ProviderEnvironment(ethereum=provider)))

        with pytest.raises(UserRejected):
            await manager.connect("metamask", "ethereum")

    @pytest.mark.asyncio
    async def test_user_rejects_solana_connection(self):
        solana = DryRunSolanaProvider(reject_connect=True)
        env = ProviderEnvironment(phantom=PhantomNamespace(solana=solana))
        manager = ConnectionManager(WalletDetector(env))

        with pytest.raises(UserRejected):
            await manager.connect("phantom", "solana")

    @pytest.mark.asyncio
    async def test_disconnect_solana(self):
        env = create_dryrun_environment(["phantom"])
        manager = ConnectionManager(WalletDetector(env))
        connection = await manager.connect("phantom", "solana")

        await manager.disconnect(connection)
        await manager.disconnect(connection)

        assert not connection.connected
        assert env.phantom.solana.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_disconnect_evm(self):
        env = create_dryrun_environment(["metamask"])
        manager = ConnectionManager(WalletDetector(env))
        connection = await manager.connect("metamask", "ethereum")

        await manager.disconnect(connection)

        assert not connection.connected

    @pytest.mark.asyncio
    async def test_watch_updates_connection(self):
        env = create_dryrun_environment(["metamask"])
        manager = ConnectionManager(WalletDetector(env))
        connection = await manager.connect("metamask", "ethereum")
        seen = []

        unsubscribe = manager.watch(
            connection,
            on_accounts_changed=lambda c: seen.append(("accounts", c.address)),
            on_chain_changed=lambda c: seen.append(("chain", c.chain_id)),
        )
        env.ethereum.emit("chainChanged", "0x2105")
        env.ethereum.emit("accountsChanged", [EVM_ADDRESS.lower()])

        assert connection.chain_id == 8453
        assert connection.address == EVM_ADDRESS
        assert seen == [("chain", 8453), ("accounts", EVM_ADDRESS)]

        unsubscribe()
        env.ethereum.emit("chainChanged", "0x1")
        assert connection.chain_id == 8453

    @pytest.mark.asyncio
    async def test_watch_empty_accounts_closes_connection(self):
        env = create_dryrun_environment(["metamask"])
        manager = ConnectionManager(WalletDetector(env))
        connection = await manager.connect("metamask", "ethereum")

        manager.watch(connection)
        env.ethereum.emit("accountsChanged", [])

        assert not connection.connected
