"""Tests for per-connection request locks."""

import asyncio

import pytest

from walletbridge.errors import RequestAlreadyPending
from walletbridge.utils.locks import (
    PendingRequestGuard,
    get_connection_lock,
    is_request_pending,
    release_connection_lock,
)


class TestPendingRequestGuard:
    """Tests for PendingRequestGuard."""

    @pytest.mark.asyncio
    async def test_same_lock_per_connection(self):
        first = await get_connection_lock("conn-1")
        second = await get_connection_lock("conn-1")
        other = await get_connection_lock("conn-2")

        assert first is second
        assert first is not other

    @pytest.mark.asyncio
    async def test_second_request_rejected(self):
        async with PendingRequestGuard("conn-1", operation="transfer"):
            assert is_request_pending("conn-1")
            with pytest.raises(RequestAlreadyPending):
                async with PendingRequestGuard("conn-1", operation="transfer"):
                    pass

        assert not is_request_pending("conn-1")

    @pytest.mark.asyncio
    async def test_other_connections_unaffected(self):
        async with PendingRequestGuard("conn-1"):
            async with PendingRequestGuard("conn-2"):
                assert is_request_pending("conn-1")
                assert is_request_pending("conn-2")

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        with pytest.raises(RuntimeError):
            async with PendingRequestGuard("conn-1"):
                raise RuntimeError("wallet crashed")

        assert not is_request_pending("conn-1")
        async with PendingRequestGuard("conn-1"):
            pass

    @pytest.mark.asyncio
    async def test_concurrent_tasks(self):
        started = asyncio.Event()
        finish = asyncio.Event()

        async def hold():
            async with PendingRequestGuard("conn-1"):
                started.set()
                await finish.wait()

        task = asyncio.create_task(hold())
        await started.wait()

        with pytest.raises(RequestAlreadyPending):
            async with PendingRequestGuard("conn-1"):
                pass

        finish.set()
        await task
        assert not is_request_pending("conn-1")

    @pytest.mark.asyncio
    async def test_release_keeps_held_lock(self):
        async with PendingRequestGuard("conn-1"):
            release_connection_lock("conn-1")
            assert is_request_pending("conn-1")

        release_connection_lock("conn-1")
        assert not is_request_pending("conn-1")
