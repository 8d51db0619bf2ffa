"""
Provider construction.

``KeyVaultConfigurationSource`` plays the role of a configuration source
registered with a host: it holds options and builds providers on demand.
``create_key_vault_provider`` wires settings, the Azure store and the retry
policy together for the common case.
"""

from __future__ import annotations

from collections.abc import Callable

from .assembler import default_name_encoder
from .authority import AzureAuthorityHosts
from .azure import AzureKeyVaultSecretStore
from .config import KeyVaultOptions, KeyVaultSettings
from .exceptions import ConfigurationError
from .logger import get_logger
from .provider import KeyVaultConfigurationProvider
from .resilience import ReloadRetryPolicy

logger = get_logger(__name__)


class KeyVaultConfigurationSource:
    """Builds ``KeyVaultConfigurationProvider`` instances from fixed options."""

    def __init__(self, options: KeyVaultOptions, owns_client: bool = False) -> None:
        if options is None:
            raise ConfigurationError(
                "Provider options are required", error_code="MISSING_OPTIONS"
            )
        self.options = options
        self.owns_client = owns_client

    def build(self) -> KeyVaultConfigurationProvider:
        return KeyVaultConfigurationProvider(self.options, owns_client=self.owns_client)


def create_key_vault_provider(
    vault_url: str | None = None,
    credential=None,
    settings: KeyVaultSettings | None = None,
    name_encoder: Callable[[str], str] = default_name_encoder,
    load: bool = True,
) -> KeyVaultConfigurationProvider:
    """
    Create an Azure Key Vault configuration provider.

    Args:
        vault_url: Key Vault URL, overrides ``settings.vault_url``
        credential: Async Azure token credential, default credential when omitted
        settings: Provider settings, loaded from ``KEYVAULT_*`` variables when omitted
        name_encoder: Secret name to configuration key encoder
        load: Run the initial load under the retry policy before returning

    Returns:
        Provider owning its Azure client
    """
    settings = settings or KeyVaultSettings.from_env()
    vault_url = vault_url or settings.vault_url
    if not vault_url:
        raise ConfigurationError("A Key Vault URL is required", error_code="MISSING_VAULT_URL")

    authority = None
    if settings.authority_host:
        try:
            authority = AzureAuthorityHosts.resolve(settings.authority_host)
        except ValueError as e:
            raise ConfigurationError(str(e), error_code="INVALID_AUTHORITY") from e

    store = AzureKeyVaultSecretStore(vault_url, credential=credential, authority=authority)
    options = settings.to_options(store, name_encoder=name_encoder)
    provider = KeyVaultConfigurationSource(options, owns_client=True).build()

    logger.info(
        "Key Vault configuration provider created",
        vault_url=vault_url,
        selective=options.selective,
        reload_interval=settings.reload_interval_seconds,
    )

    if load:
        policy = ReloadRetryPolicy.from_options(options, name="initial_load")
        try:
            policy.call(provider.load)
        except Exception:
            provider.dispose()
            raise
    return provider
