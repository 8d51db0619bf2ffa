"""
In-memory secret store for development and testing.

Secrets are kept per name as an ordered list of versions; listing a secret
reports the properties of its newest version, the same way a vault lists
the current version of each secret.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

from .exceptions import SecretNotFoundError
from .models import SecretMetadata, SecretValue
from .store import SecretStoreClient

FetchHook = Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class StoredSecret:
    """One stored version of a secret."""

    name: str
    value: str
    enabled: bool | None = True
    updated_on: datetime | None = None
    version: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def properties(self) -> SecretMetadata:
        return SecretMetadata(
            name=self.name,
            enabled=self.enabled,
            updated_on=self.updated_on,
            version=self.version,
        )


class InMemorySecretStore(SecretStoreClient):
    """Versioned in-memory secret store.

    Args:
        secrets: Initial secret versions
        fetch_hook: Optional coroutine awaited with the secret name before
            every fetch returns, used to observe or delay fetches
    """

    def __init__(
        self,
        secrets: Iterable[StoredSecret] = (),
        fetch_hook: FetchHook | None = None,
    ) -> None:
        self._versions: dict[str, list[StoredSecret]] = {}
        self.fetch_hook = fetch_hook
        self.fetch_log: list[str] = []
        self.closed = False
        self.replace(secrets)

    def set_secret(
        self,
        name: str,
        value: str,
        enabled: bool | None = True,
        updated_on: datetime | None = None,
    ) -> StoredSecret:
        """Add a new version of a secret, making it the current one."""
        secret = StoredSecret(name, value, enabled=enabled, updated_on=updated_on)
        self._versions.setdefault(name, []).append(secret)
        return secret

    def add_version(self, secret: StoredSecret) -> None:
        self._versions.setdefault(secret.name, []).append(secret)

    def remove_secret(self, name: str) -> None:
        self._versions.pop(name, None)

    def replace(self, secrets: Iterable[StoredSecret]) -> None:
        """Replace the whole store content."""
        self._versions = {}
        for secret in secrets:
            self.add_version(secret)

    async def list_secrets(self) -> AsyncIterator[SecretMetadata]:
        for versions in list(self._versions.values()):
            yield versions[-1].properties

    async def list_versions(self, name: str) -> AsyncIterator[SecretMetadata]:
        for secret in list(self._versions.get(name, ())):
            yield secret.properties

    async def fetch_value(self, name: str, version: str | None = None) -> SecretValue:
        self.fetch_log.append(name)
        if self.fetch_hook is not None:
            await self.fetch_hook(name)

        secret = self._find(name, version)
        return SecretValue(name=secret.name, value=secret.value, updated_on=secret.updated_on)

    async def close(self) -> None:
        self.closed = True

    def _find(self, name: str, version: str | None) -> StoredSecret:
        versions = self._versions.get(name)
        if not versions:
            raise SecretNotFoundError(
                f"Secret not found: {name}",
                error_code="SECRET_NOT_FOUND",
                details={"name": name},
            )
        if version is None:
            return versions[-1]
        for secret in versions:
            if secret.version == version:
                return secret
        raise SecretNotFoundError(
            f"Secret version not found: {name}/{version}",
            error_code="SECRET_NOT_FOUND",
            details={"name": name, "version": version},
        )
