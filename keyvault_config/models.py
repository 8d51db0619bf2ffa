"""Records exchanged between the secret store and the reconciliation pass."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SecretMetadata:
    """Properties of one secret (or one secret version) as listed by the store.

    ``enabled`` is tri-state: ``None`` means the store did not report it.
    """

    name: str
    enabled: bool | None = None
    updated_on: datetime | None = None
    version: str | None = None


@dataclass(frozen=True)
class SecretValue:
    """A secret value returned by a fetch."""

    name: str
    value: str
    updated_on: datetime | None = None


@dataclass(frozen=True)
class LoadedEntry:
    """One loaded secret: its final configuration key, value and timestamp."""

    key: str
    value: str
    updated_on: datetime | None = None

    def is_up_to_date(self, updated_on: datetime | None) -> bool:
        # Both absent, or both present and equal.
        if (updated_on is None) != (self.updated_on is None):
            return False
        return updated_on == self.updated_on
