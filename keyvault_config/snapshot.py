"""
Published configuration snapshots and change notification.

A ``Snapshot`` is immutable once built. ``SnapshotStore`` owns the current
one and replaces it with a single reference assignment, so readers on any
thread always see either the old or the new snapshot, never a mix.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from .logger import get_logger
from .models import LoadedEntry

logger = get_logger(__name__)

KEY_DELIMITER = ":"


class ConfigurationData(Mapping[str, str]):
    """Read-only mapping of configuration keys to values.

    Keys compare case-insensitively; iteration yields keys as inserted.
    When two items share a key the last one wins.
    """

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._items: dict[str, tuple[str, str]] = {}
        for key, value in items:
            folded = key.casefold()
            # Re-insert so the winning key takes the latest position.
            self._items.pop(folded, None)
            self._items[folded] = (key, value)

    def __getitem__(self, key: str) -> str:
        return self._items[key.casefold()][1]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._items

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"ConfigurationData(keys={list(self)!r})"


@dataclass(frozen=True)
class Snapshot:
    """One published result of a reconciliation pass.

    ``entries`` is keyed by secret name (case-sensitive) and drives change
    detection on the next pass; ``data`` is what configuration readers see.
    """

    entries: Mapping[str, LoadedEntry] = field(default_factory=dict)
    data: ConfigurationData = field(default_factory=ConfigurationData)

    @classmethod
    def from_entries(cls, entries: Mapping[str, LoadedEntry]) -> Snapshot:
        frozen = MappingProxyType(dict(entries))
        data = ConfigurationData((entry.key, entry.value) for entry in frozen.values())
        return cls(entries=frozen, data=data)


class ChangeToken:
    """One-shot change notification.

    Callbacks registered before the token fires are invoked once when it
    fires; registering on a token that already fired invokes the callback
    immediately.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self._has_changed = False

    @property
    def has_changed(self) -> bool:
        return self._has_changed

    def register_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""
        with self._lock:
            if not self._has_changed:
                self._callbacks.append(callback)
                return lambda: self._unregister(callback)
        callback()
        return lambda: None

    def _unregister(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def fire(self) -> None:
        with self._lock:
            if self._has_changed:
                return
            self._has_changed = True
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.error("Change callback failed", error=str(e), exc_info=True)


def on_change(
    token_producer: Callable[[], ChangeToken],
    consumer: Callable[[], None],
) -> Callable[[], None]:
    """Invoke ``consumer`` every time a freshly produced token fires.

    Returns a function that stops the subscription.
    """
    state = {"active": True, "unregister": None}

    def register() -> None:
        if state["active"]:
            state["unregister"] = token_producer().register_callback(fired)

    def fired() -> None:
        if not state["active"]:
            return
        consumer()
        register()

    def dispose() -> None:
        state["active"] = False
        if state["unregister"] is not None:
            state["unregister"]()

    register()
    return dispose


class SnapshotStore:
    """Holds the current snapshot and the reload token.

    Every published snapshot replaces the previous one in full. The reload
    token fires only when the publishing pass changed something and an
    earlier snapshot had already been published.
    """

    def __init__(self) -> None:
        self._current = Snapshot()
        self._published = False
        self._token = ChangeToken()

    @property
    def current(self) -> Snapshot:
        return self._current

    @property
    def has_published(self) -> bool:
        return self._published

    def get_reload_token(self) -> ChangeToken:
        return self._token

    def publish(self, snapshot: Snapshot, *, changed: bool) -> bool:
        """Make ``snapshot`` current; return whether the reload token fired."""
        had_previous = self._published
        self._current = snapshot
        self._published = True

        fire = changed and had_previous
        if fire:
            previous, self._token = self._token, ChangeToken()
            previous.fire()
        return fire
