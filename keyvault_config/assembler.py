"""Configuration key naming and snapshot assembly."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping

from .models import LoadedEntry, SecretValue
from .snapshot import KEY_DELIMITER, Snapshot

NameEncoder = Callable[[str], str]


def default_name_encoder(name: str) -> str:
    """Map a flat secret name onto a hierarchical key (``a--b`` -> ``a:b``)."""
    return name.replace("--", KEY_DELIMITER)


class SnapshotAssembler:
    """Build new snapshots from reused entries and freshly fetched values.

    Configuration keys are derived from the secret name: renamed through
    ``secret_map`` in selective mode, prefixed with ``section_prefix`` when
    one is set, then passed through ``name_encoder``.
    """

    def __init__(
        self,
        name_encoder: NameEncoder = default_name_encoder,
        section_prefix: str | None = None,
        secret_map: Mapping[str, str] | None = None,
        selective: bool = False,
    ) -> None:
        self.name_encoder = name_encoder
        self.section_prefix = section_prefix
        self.secret_map = dict(secret_map or {})
        self.selective = selective

    def config_key(self, name: str) -> str:
        key = name
        if self.selective and name in self.secret_map:
            key = self.secret_map[name]
        if self.section_prefix and self.section_prefix.strip():
            key = f"{self.section_prefix}{KEY_DELIMITER}{key}"
        return self.name_encoder(key)

    def entry(self, secret: SecretValue) -> LoadedEntry:
        return LoadedEntry(
            key=self.config_key(secret.name),
            value=secret.value,
            updated_on=secret.updated_on,
        )

    def assemble(
        self,
        reused: Mapping[str, LoadedEntry],
        fetched: Iterable[SecretValue],
    ) -> Snapshot:
        entries: dict[str, LoadedEntry] = dict(reused)
        for secret in fetched:
            entries[secret.name] = self.entry(secret)
        return Snapshot.from_entries(entries)
