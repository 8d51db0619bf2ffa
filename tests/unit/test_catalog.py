"""
Unit tests for secret catalog enumeration.
"""

from unittest.mock import MagicMock

import pytest

from keyvault_config.catalog import SecretCatalog
from keyvault_config.exceptions import RemoteUnavailableError
from keyvault_config.memory import StoredSecret
from keyvault_config.store import SecretStoreClient


async def collect(catalog):
    return [candidate async for candidate in catalog.candidates()]


@pytest.mark.unit
class TestFullCatalog:
    """Test enumeration of the whole store."""

    @pytest.mark.asyncio
    async def test_lists_enabled_secrets(self, secret_store):
        secret_store.set_secret("Secret1", "Value1")
        secret_store.set_secret("Secret2", "Value2")
        catalog = SecretCatalog(secret_store)

        names = [candidate.name for candidate in await collect(catalog)]

        assert catalog.full_load is True
        assert names == ["Secret1", "Secret2"]

    @pytest.mark.asyncio
    async def test_skips_disabled_and_unknown_enabled_state(self, secret_store):
        secret_store.set_secret("Secret1", "Value1")
        secret_store.set_secret("Secret2", "Value2", enabled=False)
        secret_store.set_secret("Secret3", "Value3", enabled=None)

        names = [c.name for c in await collect(SecretCatalog(secret_store))]

        assert names == ["Secret1"]

    @pytest.mark.asyncio
    async def test_store_errors_propagate(self):
        async def failing_listing():
            raise RemoteUnavailableError("vault down", error_code="REMOTE_UNAVAILABLE")
            yield  # pragma: no cover

        client = MagicMock(spec=SecretStoreClient)
        client.list_secrets = MagicMock(side_effect=failing_listing)

        with pytest.raises(RemoteUnavailableError):
            await collect(SecretCatalog(client))


@pytest.mark.unit
class TestSelectiveCatalog:
    """Test resolution of explicitly named secrets."""

    def test_names_are_deduplicated_in_order(self, secret_store):
        catalog = SecretCatalog(secret_store, ["Secret2", "Secret1", "Secret2"])

        assert catalog.full_load is False
        assert catalog.names == ("Secret2", "Secret1")

    @pytest.mark.asyncio
    async def test_only_named_secrets_are_candidates(self, secret_store):
        secret_store.set_secret("Secret1", "Value1")
        secret_store.set_secret("Secret2", "Value2")

        names = [c.name for c in await collect(SecretCatalog(secret_store, ["Secret1"]))]

        assert names == ["Secret1"]

    @pytest.mark.asyncio
    async def test_picks_newest_enabled_version(self, secret_store, at):
        secret_store.add_version(StoredSecret("Secret1", "old", updated_on=at(0), version="v1"))
        secret_store.add_version(
            StoredSecret("Secret1", "newest-disabled", enabled=False, updated_on=at(20), version="v3")
        )
        secret_store.add_version(StoredSecret("Secret1", "new", updated_on=at(10), version="v2"))

        candidates = await collect(SecretCatalog(secret_store, ["Secret1"]))

        assert [c.version for c in candidates] == ["v2"]
        assert candidates[0].updated_on == at(10)

    @pytest.mark.asyncio
    async def test_versions_without_timestamp_sort_last(self, secret_store, at):
        secret_store.add_version(StoredSecret("Secret1", "undated", version="v0"))
        secret_store.add_version(StoredSecret("Secret1", "dated", updated_on=at(0), version="v1"))

        candidates = await collect(SecretCatalog(secret_store, ["Secret1"]))

        assert [c.version for c in candidates] == ["v1"]

    @pytest.mark.asyncio
    async def test_secret_without_enabled_version_yields_nothing(self, secret_store):
        secret_store.set_secret("Secret1", "Value1", enabled=False)
        secret_store.set_secret("Secret2", "Value2", enabled=None)

        candidates = await collect(SecretCatalog(secret_store, ["Secret1", "Secret2"]))

        assert candidates == []

    @pytest.mark.asyncio
    async def test_missing_secret_yields_nothing(self, secret_store):
        assert await collect(SecretCatalog(secret_store, ["Missing"])) == []
