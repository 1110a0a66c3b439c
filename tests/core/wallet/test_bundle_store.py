"""
Tests for the client bundle store.
"""

import pytest

from tmawallet.core.wallet import AlreadyExistsError, BundleStore, ClientBundle, RandomSourceUnavailableError
from tmawallet.core.wallet.models import (
    CLIENT_PUBLIC_KEY_KEY,
    CLIENT_SECRET_KEY_KEY,
    REGISTERED_AT_KEY,
)
from tmawallet.storage import MemoryStorage


def _valid_fields(**overrides):
    fields = {
        REGISTERED_AT_KEY: "1700000000000",
        CLIENT_PUBLIC_KEY_KEY: "11" * 32,
        CLIENT_SECRET_KEY_KEY: "22" * 32,
    }
    fields.update(overrides)
    return fields


# =============================================================================
# Reading
# =============================================================================

class TestGetBundle:

    @pytest.mark.asyncio
    async def test_empty_storage_returns_none(self):
        store = BundleStore(MemoryStorage())
        assert await store.get_bundle() is None
        assert store.bundle is None

    @pytest.mark.asyncio
    async def test_reads_valid_bundle(self):
        store = BundleStore(MemoryStorage(_valid_fields()))

        bundle = await store.get_bundle()

        assert bundle == ClientBundle(
            timestamp=1700000000000,
            client_public_key=bytes([0x11]) * 32,
            client_secret_key=bytes([0x22]) * 32,
        )
        assert store.bundle is bundle

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {REGISTERED_AT_KEY: "0"},
            {REGISTERED_AT_KEY: "-5"},
            {REGISTERED_AT_KEY: "not-a-number"},
            {REGISTERED_AT_KEY: "nan"},
            {CLIENT_PUBLIC_KEY_KEY: "11" * 31},
            {CLIENT_SECRET_KEY_KEY: "22" * 33},
            {CLIENT_SECRET_KEY_KEY: "zz" * 32},
        ],
    )
    async def test_malformed_fields_read_as_absent(self, overrides):
        store = BundleStore(MemoryStorage(_valid_fields(**overrides)))
        assert await store.get_bundle() is None

    @pytest.mark.asyncio
    async def test_fractional_timestamp_is_kept(self):
        store = BundleStore(MemoryStorage(_valid_fields(**{REGISTERED_AT_KEY: "0.5"})))

        bundle = await store.get_bundle()

        assert bundle is not None
        assert bundle.timestamp == 0.5
        assert bundle.to_storage()[REGISTERED_AT_KEY] == "0.5"

    @pytest.mark.asyncio
    async def test_integral_timestamp_reads_as_int(self):
        store = BundleStore(MemoryStorage(_valid_fields(**{REGISTERED_AT_KEY: "1700000000000.0"})))
        bundle = await store.get_bundle()
        assert bundle.timestamp == 1700000000000
        assert isinstance(bundle.timestamp, int)

    @pytest.mark.asyncio
    async def test_partial_bundle_reads_as_absent(self):
        fields = _valid_fields()
        del fields[CLIENT_SECRET_KEY_KEY]
        store = BundleStore(MemoryStorage(fields))
        assert await store.get_bundle() is None


# =============================================================================
# Creation and destruction
# =============================================================================

class TestCreateBundle:

    @pytest.mark.asyncio
    async def test_create_then_read_round_trips(self):
        storage = MemoryStorage()
        store = BundleStore(storage, clock=lambda: 1700000000.5)

        created = await store.create_bundle()
        reread = await BundleStore(storage).get_bundle()

        assert reread is not None
        assert reread.client_public_key == created.client_public_key
        assert reread.client_secret_key == created.client_secret_key
        assert reread.timestamp == created.timestamp == 1700000000500

    @pytest.mark.asyncio
    async def test_create_persists_hex_fields(self):
        storage = MemoryStorage()
        bundle = await BundleStore(storage).create_bundle()

        data = storage.snapshot()
        assert data[CLIENT_PUBLIC_KEY_KEY] == bundle.client_public_key.hex()
        assert data[CLIENT_SECRET_KEY_KEY] == bundle.client_secret_key.hex()
        assert len(data[CLIENT_SECRET_KEY_KEY]) == 64

    @pytest.mark.asyncio
    async def test_keys_are_independent_draws(self):
        bundle = await BundleStore(MemoryStorage()).create_bundle()
        assert bundle.client_public_key != bundle.client_secret_key

    @pytest.mark.asyncio
    async def test_create_twice_raises_already_exists(self):
        store = BundleStore(MemoryStorage())
        await store.create_bundle()

        with pytest.raises(AlreadyExistsError):
            await store.create_bundle()

    @pytest.mark.asyncio
    async def test_destroy_removes_fields_and_is_idempotent(self):
        storage = MemoryStorage({"unrelated": "keep"})
        store = BundleStore(storage)
        await store.create_bundle()

        await store.destroy_bundle()
        await store.destroy_bundle()

        assert storage.snapshot() == {"unrelated": "keep"}
        assert store.bundle is None
        assert await store.get_bundle() is None

    @pytest.mark.asyncio
    async def test_create_after_destroy_draws_new_keys(self):
        store = BundleStore(MemoryStorage())
        first = await store.create_bundle()
        await store.destroy_bundle()

        second = await store.create_bundle()

        assert second.client_public_key != first.client_public_key

    def test_repr_hides_secret(self):
        bundle = ClientBundle(1, b"\x01" * 32, b"\x02" * 32)
        assert "0202" not in repr(bundle)
        assert "redacted" in repr(bundle)


# =============================================================================
# Random source
# =============================================================================

class TestRandomSource:

    def test_missing_random_source_fails_at_construction(self):
        with pytest.raises(RandomSourceUnavailableError):
            BundleStore(MemoryStorage(), random_source=None)

    def test_unusable_random_source_fails_at_construction(self):
        def broken(n):
            raise NotImplementedError("no entropy")

        with pytest.raises(RandomSourceUnavailableError):
            BundleStore(MemoryStorage(), random_source=broken)

    @pytest.mark.asyncio
    async def test_uses_injected_random_source(self):
        draws = iter([b"\x00", b"\xaa" * 32, b"\xbb" * 32])
        store = BundleStore(MemoryStorage(), random_source=lambda n: next(draws))

        bundle = await store.create_bundle()

        assert bundle.client_public_key == b"\xaa" * 32
        assert bundle.client_secret_key == b"\xbb" * 32
