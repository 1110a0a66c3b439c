"""
Tests for the wallet session state machine.
"""

import re

import pytest

from tmawallet.core.wallet import (
    AlreadyExistsError,
    NotRegisteredError,
    ServerRejectedError,
    WalletSession,
    WalletStatus,
    derive_private_key,
)
from tmawallet.core.wallet.models import BUNDLE_KEYS, WALLET_ADDRESS_KEY
from tmawallet.storage import StorageError


ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def record_changes(session):
    changes = []
    session.wallet_changed.subscribe(changes.append)
    return changes


class TestInit:
    @pytest.mark.asyncio
    async def test_fresh_storage_is_unregistered(self, session):
        state = await session.init()
        assert state.registered is False
        assert state.wallet_address is None
        assert session.status == WalletStatus.UNREGISTERED

    @pytest.mark.asyncio
    async def test_init_never_creates_bundle(self, session, storage, wallet_server):
        await session.init()
        assert storage.size() == 0
        assert wallet_server.access_calls == []

    @pytest.mark.asyncio
    async def test_init_on_empty_storage_does_not_notify(self, session):
        changes = record_changes(session)
        await session.init()
        assert changes == []

    @pytest.mark.asyncio
    async def test_init_restores_cached_wallet(self, session, storage, wallet_api):
        await session.authenticate()
        address = session.wallet_address

        reloaded = WalletSession("pk_test_project", "token", storage, wallet_api)
        state = await reloaded.init()

        assert state.registered is True
        assert state.wallet_address == address
        assert reloaded.status == WalletStatus.REGISTERED_WITH_WALLET


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_fresh_storage_ends_with_wallet(self, session, storage, wallet_server):
        state = await session.authenticate()

        assert state.registered is True
        assert ADDRESS_RE.match(state.wallet_address)
        assert session.status == WalletStatus.REGISTERED_WITH_WALLET
        assert set(BUNDLE_KEYS) <= set(storage.snapshot())
        assert WALLET_ADDRESS_KEY in storage.snapshot()
        assert len(wallet_server.access_calls) == 1

    @pytest.mark.asyncio
    async def test_address_matches_locally_derived_key(self, session, wallet_server):
        from eth_account import Account

        await session.authenticate()
        bundle = session.bundle
        server_half = wallet_server.intermediary_key(bundle.client_public_key.hex())
        expected = Account.from_key(derive_private_key(server_half, bundle.client_secret_key)).address

        assert session.wallet_address == expected

    @pytest.mark.asyncio
    async def test_second_authenticate_is_noop(self, session, wallet_server):
        first = await session.authenticate()
        changes = record_changes(session)

        second = await session.authenticate()

        assert second == first
        assert changes == []
        assert len(wallet_server.access_calls) == 1

    @pytest.mark.asyncio
    async def test_wallet_changed_fires_once(self, session):
        changes = record_changes(session)
        await session.authenticate()
        assert changes == [session.wallet_address]

    @pytest.mark.asyncio
    async def test_server_rejection_keeps_bundle(self, session, storage, wallet_server):
        wallet_server.reject_with = "invalid token"

        with pytest.raises(ServerRejectedError) as exc_info:
            await session.authenticate()

        assert str(exc_info.value) == "invalid token"
        assert session.status == WalletStatus.REGISTERED_NO_WALLET
        assert session.wallet_address is None
        assert set(BUNDLE_KEYS) <= set(storage.snapshot())
        assert WALLET_ADDRESS_KEY not in storage.snapshot()

    @pytest.mark.asyncio
    async def test_retry_after_rejection_reuses_bundle(self, session, wallet_server):
        wallet_server.reject_with = "invalid token"
        with pytest.raises(ServerRejectedError):
            await session.authenticate()
        bundle = session.bundle

        wallet_server.reject_with = None
        state = await session.authenticate()

        assert session.bundle == bundle
        assert ADDRESS_RE.match(state.wallet_address)

    @pytest.mark.asyncio
    async def test_address_report_failure_keeps_wallet(self, session, wallet_server):
        wallet_server.fail_address_report = True

        state = await session.authenticate()

        assert state.wallet_address is not None
        assert session.status == WalletStatus.REGISTERED_WITH_WALLET
        assert len(wallet_server.address_reports) == 1

    @pytest.mark.asyncio
    async def test_address_is_reported(self, session, wallet_server):
        await session.authenticate()
        assert wallet_server.address_reports == [
            {
                "projectPublicToken": "pk_test_project",
                "hostSessionToken": session.derivation.host_session_token,
                "walletAddress": session.wallet_address,
            }
        ]


class TestTransitions:
    @pytest.mark.asyncio
    async def test_create_bundle_twice_raises(self, session):
        await session.init()
        await session.create_bundle()
        with pytest.raises(AlreadyExistsError):
            await session.create_bundle()

    @pytest.mark.asyncio
    async def test_derive_without_bundle_raises(self, session):
        await session.init()
        with pytest.raises(NotRegisteredError):
            await session.derive_and_register_wallet()

    @pytest.mark.asyncio
    async def test_access_private_key_without_bundle_raises(self, session):
        await session.init()
        with pytest.raises(NotRegisteredError):
            await session.access_private_key()

    @pytest.mark.asyncio
    async def test_get_signer_without_bundle_raises(self, session):
        await session.init()
        with pytest.raises(NotRegisteredError):
            session.get_signer()

    @pytest.mark.asyncio
    async def test_rederiving_same_address_notifies_once(self, session):
        changes = record_changes(session)
        await session.authenticate()

        await session.derive_and_register_wallet()

        assert changes == [session.wallet_address]

    @pytest.mark.asyncio
    async def test_clear_local_wallet_address(self, session, storage):
        await session.authenticate()
        address = session.wallet_address
        changes = record_changes(session)

        state = await session.clear_local_wallet_address()

        assert state.registered is True
        assert state.wallet_address is None
        assert WALLET_ADDRESS_KEY not in storage.snapshot()
        assert changes == [None]

        # the bundle survives, so the same wallet comes back
        again = await session.authenticate()
        assert again.wallet_address == address

    @pytest.mark.asyncio
    async def test_destroy_then_create_has_no_wallet(self, session, storage):
        await session.authenticate()
        changes = record_changes(session)

        destroyed = await session.destroy()
        assert destroyed.registered is False
        assert storage.size() == 0
        assert changes == [None]

        await session.create_bundle()
        assert session.status == WalletStatus.REGISTERED_NO_WALLET
        assert session.wallet_address is None

    @pytest.mark.asyncio
    async def test_destroy_notifies_even_if_cache_clear_fails(self, session, storage, monkeypatch):
        await session.authenticate()
        changes = record_changes(session)
        original_remove = storage.remove_items

        async def failing_remove(keys):
            keys = list(keys)
            if WALLET_ADDRESS_KEY in keys:
                raise StorageError("disk gone")
            await original_remove(keys)

        monkeypatch.setattr(storage, "remove_items", failing_remove)

        with pytest.raises(StorageError):
            await session.destroy()

        assert session.state.registered is False
        assert session.wallet_address is None
        assert changes == [None]
        assert session.wallet_changed.last_value is None

    @pytest.mark.asyncio
    async def test_new_bundle_yields_new_wallet(self, session):
        await session.authenticate()
        old_address = session.wallet_address

        await session.destroy()
        state = await session.authenticate()

        assert state.wallet_address != old_address

    @pytest.mark.asyncio
    async def test_access_private_key_rederives_every_time(self, session, wallet_server):
        await session.authenticate()
        calls_before = len(wallet_server.access_calls)

        first = await session.access_private_key()
        second = await session.access_private_key()

        assert first == second
        assert len(first) == 32
        assert len(wallet_server.access_calls) == calls_before + 2


class TestListeners:
    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_transition(self, session):
        def boom(_):
            raise RuntimeError("listener failed")

        session.wallet_changed.subscribe(boom)
        state = await session.authenticate()

        assert state.wallet_address is not None

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_delivery(self, session):
        changes = []
        unsubscribe = session.wallet_changed.subscribe(changes.append)
        unsubscribe()

        await session.authenticate()

        assert changes == []
