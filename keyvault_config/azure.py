"""
Azure Key Vault secret store.

Wraps the async ``azure-keyvault-secrets`` client and translates Azure SDK
errors into the ``RemoteUnavailableError`` family.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
)
from azure.identity.aio import DefaultAzureCredential
from azure.keyvault.secrets.aio import SecretClient

from .exceptions import RemoteUnavailableError, SecretNotFoundError, UnauthorizedError
from .logger import get_logger
from .models import SecretMetadata, SecretValue
from .store import SecretStoreClient

logger = get_logger(__name__)


def translate_azure_error(
    error: AzureError, operation: str, name: str | None = None
) -> RemoteUnavailableError:
    """Map an Azure SDK error onto the package's remote error taxonomy."""
    details = {"operation": operation}
    if name is not None:
        details["name"] = name

    if isinstance(error, ResourceNotFoundError):
        return SecretNotFoundError(
            f"Secret not found: {name}", error_code="SECRET_NOT_FOUND", details=details
        )
    status_code = getattr(error, "status_code", None)
    if isinstance(error, ClientAuthenticationError) or (
        isinstance(error, HttpResponseError) and status_code in (401, 403)
    ):
        return UnauthorizedError(
            f"Key Vault rejected the credential during {operation}: {error}",
            error_code="UNAUTHORIZED",
            details=details,
        )
    if status_code is not None:
        details["status_code"] = status_code
    return RemoteUnavailableError(
        f"Key Vault {operation} failed: {error}",
        error_code="REMOTE_UNAVAILABLE",
        details=details,
    )


def _metadata(properties) -> SecretMetadata:
    return SecretMetadata(
        name=properties.name,
        enabled=properties.enabled,
        updated_on=properties.updated_on,
        version=properties.version,
    )


class AzureKeyVaultSecretStore(SecretStoreClient):
    """Read-only Azure Key Vault store.

    Args:
        vault_url: Key Vault URL, e.g. ``https://my-vault.vault.azure.net/``
        credential: Async token credential; ``DefaultAzureCredential`` when omitted
        client: Pre-built async ``SecretClient``, mainly for tests
        authority: Authority host for the default credential
    """

    def __init__(
        self,
        vault_url: str | None = None,
        credential=None,
        client: SecretClient | None = None,
        authority: str | None = None,
    ) -> None:
        self.vault_url = vault_url
        self._owned_credential = None
        if client is None:
            if not vault_url:
                raise ValueError("vault_url is required when no client is given")
            if credential is None:
                kwargs = {"authority": authority} if authority else {}
                credential = self._owned_credential = DefaultAzureCredential(**kwargs)
            client = SecretClient(vault_url=vault_url, credential=credential)
        self._client = client

    async def list_secrets(self) -> AsyncIterator[SecretMetadata]:
        try:
            async for properties in self._client.list_properties_of_secrets():
                yield _metadata(properties)
        except AzureError as e:
            raise translate_azure_error(e, "list secrets") from e

    async def list_versions(self, name: str) -> AsyncIterator[SecretMetadata]:
        try:
            async for properties in self._client.list_properties_of_secret_versions(name):
                yield _metadata(properties)
        except AzureError as e:
            raise translate_azure_error(e, "list secret versions", name) from e

    async def fetch_value(self, name: str, version: str | None = None) -> SecretValue:
        try:
            secret = await self._client.get_secret(name, version)
        except AzureError as e:
            raise translate_azure_error(e, "get secret", name) from e
        return SecretValue(
            name=secret.name,
            value=secret.value,
            updated_on=secret.properties.updated_on,
        )

    async def close(self) -> None:
        await self._client.close()
        if self._owned_credential is not None:
            await self._owned_credential.close()
        logger.debug("Azure Key Vault client closed", vault_url=self.vault_url)
