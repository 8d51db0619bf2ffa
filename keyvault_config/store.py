"""
Secret store boundary.

The reconciliation pass only depends on this interface. Concrete stores
(Azure Key Vault, in-memory) translate their own failures into the
``RemoteUnavailableError`` family so the core never inspects SDK types.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from .models import SecretMetadata, SecretValue


class SecretStoreClient(ABC):
    """Abstract read-only interface to a remote secret store."""

    @abstractmethod
    def list_secrets(self) -> AsyncIterator[SecretMetadata]:
        """Lazily enumerate the current properties of every secret."""
        pass

    @abstractmethod
    def list_versions(self, name: str) -> AsyncIterator[SecretMetadata]:
        """Lazily enumerate the properties of every version of one secret."""
        pass

    @abstractmethod
    async def fetch_value(self, name: str, version: str | None = None) -> SecretValue:
        """Fetch a secret value, the latest version unless ``version`` is given.

        Raises:
            SecretNotFoundError: The secret (or version) does not exist
            UnauthorizedError: The credential was rejected
            RemoteUnavailableError: The store could not be reached
        """
        pass

    async def close(self) -> None:
        """Release transport resources held by the client."""
        return None
