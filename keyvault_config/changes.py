"""Change detection against the previously published snapshot."""

from __future__ import annotations

from collections.abc import Mapping

from .models import LoadedEntry, SecretMetadata


class ChangeDetector:
    """Decide per candidate secret whether the previous value can be reused.

    A candidate is reusable only when the previous pass loaded the same
    secret name with exactly the same ``updated_on`` timestamp. The previous
    mapping is never modified; the names seen during the pass are tracked
    so that secrets which disappeared can be reported at the end of it.
    """

    def __init__(self, previous: Mapping[str, LoadedEntry] | None = None) -> None:
        self.previous: Mapping[str, LoadedEntry] = previous or {}
        self.reused: dict[str, LoadedEntry] = {}
        self.seen: set[str] = set()

    def check(self, candidate: SecretMetadata) -> LoadedEntry | None:
        """Return the reusable entry for ``candidate``, or ``None`` to fetch it."""
        self.seen.add(candidate.name)
        existing = self.previous.get(candidate.name)
        if existing is None or not existing.is_up_to_date(candidate.updated_on):
            return None
        self.reused[candidate.name] = existing
        return existing

    @property
    def dropped(self) -> set[str]:
        """Previously loaded secret names that are no longer candidates."""
        return set(self.previous) - self.seen
