"""
keyvault_config - live configuration backed by a secret store

Keeps an in-memory snapshot of secret store contents and exposes it as a
reloadable key/value configuration source.

Key Features:
- Full or selective (named, optionally renamed) secret loading
- Reuse of unchanged secret values between passes
- Bounded concurrent fetching (32 requests in flight at most)
- Background reload with cooperative cancellation
- Reload notification only when the published data changed
- Azure Key Vault store, in-memory store for development and tests

Usage:
    >>> from keyvault_config import create_key_vault_provider
    >>> provider = create_key_vault_provider("https://my-vault.vault.azure.net/")
    >>> provider.get("secrets:Database:Password")
"""

__version__ = "0.1.0"

from .assembler import SnapshotAssembler, default_name_encoder
from .authority import AzureAuthorityHosts, ResourceIds
from .azure import AzureKeyVaultSecretStore
from .catalog import SecretCatalog
from .changes import ChangeDetector
from .config import KeyVaultOptions, KeyVaultSettings
from .exceptions import (
    ConfigurationError,
    KeyNotFoundError,
    KeyVaultConfigError,
    ProviderDisposedError,
    RemoteUnavailableError,
    SecretNotFoundError,
    UnauthorizedError,
)
from .factory import KeyVaultConfigurationSource, create_key_vault_provider
from .fetcher import MAX_CONCURRENT_FETCHES, BoundedFetcher
from .logger import LogConfig, get_logger, setup_logging
from .memory import InMemorySecretStore, StoredSecret
from .models import LoadedEntry, SecretMetadata, SecretValue
from .provider import KeyVaultConfigurationProvider, PollingState
from .resilience import ReloadRetryPolicy
from .snapshot import ChangeToken, ConfigurationData, Snapshot, SnapshotStore, on_change
from .store import SecretStoreClient

__all__ = [
    "__version__",
    # Provider
    "KeyVaultConfigurationProvider",
    "KeyVaultConfigurationSource",
    "PollingState",
    "create_key_vault_provider",
    # Configuration
    "KeyVaultOptions",
    "KeyVaultSettings",
    "default_name_encoder",
    # Reconciliation components
    "SecretCatalog",
    "ChangeDetector",
    "BoundedFetcher",
    "MAX_CONCURRENT_FETCHES",
    "SnapshotAssembler",
    "SnapshotStore",
    "Snapshot",
    "ConfigurationData",
    "ChangeToken",
    "on_change",
    # Stores
    "SecretStoreClient",
    "AzureKeyVaultSecretStore",
    "InMemorySecretStore",
    "StoredSecret",
    "AzureAuthorityHosts",
    "ResourceIds",
    # Records
    "SecretMetadata",
    "SecretValue",
    "LoadedEntry",
    # Resilience
    "ReloadRetryPolicy",
    # Logging
    "setup_logging",
    "get_logger",
    "LogConfig",
    # Exceptions
    "KeyVaultConfigError",
    "ConfigurationError",
    "RemoteUnavailableError",
    "SecretNotFoundError",
    "UnauthorizedError",
    "KeyNotFoundError",
    "ProviderDisposedError",
]
