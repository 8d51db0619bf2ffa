"""
Secret catalog enumeration.

Produces the candidate secrets of one reconciliation pass, either by listing
the whole store or by resolving an explicit list of secret names.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable

from .models import SecretMetadata
from .store import SecretStoreClient


class SecretCatalog:
    """Enumerate candidate secrets for a pass.

    Full mode lists every secret and keeps only those explicitly enabled.
    Selective mode resolves each configured name to its most recently
    updated enabled version; a name with no enabled version yields nothing.
    Store errors propagate to the caller.
    """

    def __init__(self, client: SecretStoreClient, names: Iterable[str] = ()) -> None:
        self.client = client
        self.names = tuple(dict.fromkeys(names))

    @property
    def full_load(self) -> bool:
        return not self.names

    async def candidates(self) -> AsyncIterator[SecretMetadata]:
        if self.full_load:
            async for secret in self.client.list_secrets():
                if secret.enabled is not True:
                    continue
                yield secret
            return

        for name in self.names:
            selected = await self.latest_enabled_version(name)
            if selected is not None:
                yield selected

    async def latest_enabled_version(self, name: str) -> SecretMetadata | None:
        versions = [version async for version in self.client.list_versions(name)]
        # Newest first, versions without a timestamp last; sort is stable.
        versions.sort(
            key=lambda v: (v.updated_on is not None, v.updated_on or 0),
            reverse=True,
        )
        for version in versions:
            if version.enabled is True:
                return version
        return None
