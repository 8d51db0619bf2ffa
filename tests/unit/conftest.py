"""
Unit test specific fixtures and utilities.

This module provides fixtures for exercising providers against the
in-memory secret store, including a provider whose background reloads
are released step by step by the test.
"""

import asyncio
import concurrent.futures
import threading
from unittest.mock import AsyncMock, MagicMock

import pytest

from keyvault_config.config import KeyVaultOptions
from keyvault_config.memory import InMemorySecretStore
from keyvault_config.provider import KeyVaultConfigurationProvider
from keyvault_config.store import SecretStoreClient


class ReloadControlledProvider(KeyVaultConfigurationProvider):
    """Provider whose background passes only run when the test releases them."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._signal = threading.Event()
        self._release: concurrent.futures.Future = concurrent.futures.Future()

    async def wait_for_reload(self) -> None:
        release = self._release
        self._signal.set()
        await asyncio.wrap_future(release)

    def wait(self, timeout: float = 10) -> None:
        """Block until the background loop is parked before its next pass."""
        if not self._signal.wait(timeout):
            raise TimeoutError("Provider did not start waiting for reload")

    def release(self) -> None:
        """Let the parked background loop run one pass."""
        if not self._signal.is_set():
            raise RuntimeError("Provider is not waiting for reload")
        release = self._release
        self._release = concurrent.futures.Future()
        self._signal = threading.Event()
        release.set_result(None)


class TokenCounter:
    """Counts reload token firings; safe to call from the reload thread."""

    def __init__(self):
        self._lock = threading.Lock()
        self.count = 0

    def __call__(self):
        with self._lock:
            self.count += 1


@pytest.fixture
def secret_store():
    """Provide an empty in-memory secret store."""
    return InMemorySecretStore()


@pytest.fixture
def mock_secret_client():
    """Provide a mock secret store client for constructor tests."""
    client = MagicMock(spec=SecretStoreClient)
    client.fetch_value = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def make_options():
    """Provide a factory for options with no section prefix by default."""

    def factory(client, **overrides) -> KeyVaultOptions:
        overrides.setdefault("section_prefix", "")
        return KeyVaultOptions(client=client, **overrides)

    return factory


@pytest.fixture
def make_provider():
    """Provide a provider factory that disposes every provider it built."""
    providers = []

    def factory(options, controlled=False, **kwargs):
        provider_class = ReloadControlledProvider if controlled else KeyVaultConfigurationProvider
        provider = provider_class(options, **kwargs)
        providers.append(provider)
        return provider

    yield factory

    for provider in providers:
        provider.dispose()


@pytest.fixture
def token_counter():
    return TokenCounter()
