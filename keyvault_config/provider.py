"""
Key Vault configuration provider.

The provider keeps an in-memory snapshot of vault secrets and reconciles it
with the vault on demand (``load``) and, when a reload interval is set, on a
recurring background schedule. One pass:

1. enumerates candidate secrets (``SecretCatalog``)
2. reuses unchanged values from the current snapshot (``ChangeDetector``)
3. fetches the rest with bounded concurrency (``BoundedFetcher``)
4. assembles a new immutable snapshot (``SnapshotAssembler``)
5. publishes it and fires the reload token when needed (``SnapshotStore``)

All passes run on a private event loop owned by the provider, one at a time.
Synchronous callers block on ``load()``; async callers await ``load_async()``
from their own loop.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Iterable, Mapping
from datetime import timedelta
from enum import Enum

from .assembler import SnapshotAssembler
from .catalog import SecretCatalog
from .changes import ChangeDetector
from .config import KeyVaultOptions
from .exceptions import ConfigurationError, KeyNotFoundError, ProviderDisposedError
from .fetcher import MAX_CONCURRENT_FETCHES, BoundedFetcher
from .logger import clear_reconciliation_id, get_logger, set_reconciliation_id
from .snapshot import KEY_DELIMITER, ChangeToken, Snapshot, SnapshotStore

logger = get_logger(__name__)


class PollingState(Enum):
    """Background reload states."""

    NOT_STARTED = "not_started"
    WAITING = "waiting"
    RUNNING = "running"
    CANCELLED = "cancelled"


def _key_segment(key: str, prefix_length: int) -> str:
    end = key.find(KEY_DELIMITER, prefix_length)
    return key[prefix_length:] if end < 0 else key[prefix_length:end]


def configuration_key_sort_key(key: str) -> tuple:
    """Sort key ordering numeric segments numerically and before text."""
    parts = []
    for segment in key.split(KEY_DELIMITER):
        if segment.isdigit():
            parts.append((0, int(segment), ""))
        else:
            parts.append((1, 0, segment.casefold()))
    return tuple(parts)


class KeyVaultConfigurationProvider:
    """Configuration provider backed by a secret store.

    Args:
        options: Provider options; ``client`` and ``name_encoder`` are required
        owns_client: Close ``options.client`` when the provider is disposed
        max_concurrency: Maximum number of fetches in flight during a pass

    Raises:
        ConfigurationError: If a required option is missing
    """

    def __init__(
        self,
        options: KeyVaultOptions | None,
        owns_client: bool = False,
        max_concurrency: int = MAX_CONCURRENT_FETCHES,
    ) -> None:
        if options is None:
            raise ConfigurationError(
                "Provider options are required", error_code="MISSING_OPTIONS"
            )
        if options.client is None:
            raise ConfigurationError(
                "options.client is required", error_code="MISSING_CLIENT"
            )
        if options.name_encoder is None:
            raise ConfigurationError(
                "options.name_encoder is required", error_code="MISSING_NAME_ENCODER"
            )

        self.options = options
        self.client = options.client
        self.owns_client = owns_client
        self.max_concurrency = max_concurrency
        self.reload_interval: timedelta | None = options.reload_interval

        secret_map = dict(options.vault_secret_map)
        self.catalog = SecretCatalog(
            self.client, [*options.vault_secrets, *secret_map]
        )
        self.assembler = SnapshotAssembler(
            name_encoder=options.name_encoder,
            section_prefix=options.section_prefix,
            secret_map=secret_map,
            selective=not self.catalog.full_load,
        )
        self.store = SnapshotStore()

        self._pass_lock = asyncio.Lock()
        self._cancelled = asyncio.Event()
        self._polling_task: asyncio.Task | None = None
        self.polling_state = PollingState.NOT_STARTED

        self._guard = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._disposed = False

    # === Configuration surface ===

    def load(self) -> None:
        """Run one reconciliation pass and wait for it.

        Raises:
            RemoteUnavailableError: If listing or fetching failed; the
                previously published snapshot stays current
            ProviderDisposedError: If the provider was disposed
        """
        loop = self._ensure_loop()
        if threading.current_thread() is self._thread:
            raise RuntimeError("load() cannot block the reload loop, await load_async()")
        asyncio.run_coroutine_threadsafe(self._reconcile(), loop).result()

    async def load_async(self) -> None:
        """Awaitable variant of ``load``, usable from any event loop."""
        loop = self._ensure_loop()
        if asyncio.get_running_loop() is loop:
            await self._reconcile()
            return
        await asyncio.wrap_future(asyncio.run_coroutine_threadsafe(self._reconcile(), loop))

    @property
    def data(self) -> Mapping[str, str]:
        """The published configuration data (read-only, case-insensitive keys)."""
        return self.store.current.data

    @property
    def snapshot(self) -> Snapshot:
        return self.store.current

    def get(self, key: str) -> str:
        """Return the value for ``key``.

        Raises:
            KeyNotFoundError: If ``key`` is not in the published snapshot
        """
        data = self.store.current.data
        if key not in data:
            raise KeyNotFoundError(key)
        return data[key]

    def try_get(self, key: str, default: str | None = None) -> str | None:
        return self.store.current.data.get(key, default)

    def get_child_keys(
        self,
        earlier_keys: Iterable[str] = (),
        parent_path: str | None = None,
    ) -> list[str]:
        """Return the immediate child key segments under ``parent_path``.

        Segments are merged with ``earlier_keys`` and sorted; duplicates are
        kept, one per contributing key.
        """
        results: list[str] = []
        if parent_path is None:
            for key in self.store.current.data:
                results.append(_key_segment(key, 0))
        else:
            prefix = parent_path.casefold()
            for key in self.store.current.data:
                if (
                    len(key) > len(parent_path)
                    and key[: len(parent_path)].casefold() == prefix
                    and key[len(parent_path)] == KEY_DELIMITER
                ):
                    results.append(_key_segment(key, len(parent_path) + 1))
        results.extend(earlier_keys)
        results.sort(key=configuration_key_sort_key)
        return results

    def get_reload_token(self) -> ChangeToken:
        return self.store.get_reload_token()

    # === Reconciliation ===

    async def _reconcile(self) -> None:
        async with self._pass_lock:
            if self._cancelled.is_set():
                raise ProviderDisposedError(
                    "Provider has been disposed", error_code="PROVIDER_DISPOSED"
                )

            set_reconciliation_id()
            try:
                await self._run_pass()
            finally:
                clear_reconciliation_id()

        # Schedule background reloads only once and only after a successful pass.
        if (
            self._polling_task is None
            and self.reload_interval is not None
            and not self._cancelled.is_set()
        ):
            self._polling_task = asyncio.get_running_loop().create_task(self._poll())
            logger.info(
                "Background secret reload started",
                interval_seconds=self.reload_interval.total_seconds(),
            )

    async def _run_pass(self) -> None:
        previous = self.store.current
        detector = ChangeDetector(previous.entries)

        logger.debug(
            "Reconciliation pass started",
            full_load=self.catalog.full_load,
            previous_entries=len(previous.entries),
        )

        async with BoundedFetcher(self.client, self.max_concurrency) as fetcher:
            async for candidate in self.catalog.candidates():
                if detector.check(candidate) is None:
                    version = None if self.catalog.full_load else candidate.version
                    fetcher.submit(candidate.name, version)
            fetched = await fetcher.wait_all()

        snapshot = self.assembler.assemble(detector.reused, fetched)
        dropped = detector.dropped
        fired = self.store.publish(snapshot, changed=bool(fetched or dropped))

        logger.info(
            "Reconciliation pass completed",
            reused=len(detector.reused),
            fetched=len(fetched),
            dropped=len(dropped),
            keys=len(snapshot.data),
            reload_fired=fired,
        )

    async def wait_for_reload(self) -> None:
        """Wait until the next background pass is due.

        Returns early when the provider is disposed. Subclasses may override
        this to control when background passes run.
        """
        try:
            await asyncio.wait_for(
                self._cancelled.wait(), self.reload_interval.total_seconds()
            )
        except asyncio.TimeoutError:
            pass

    async def _poll(self) -> None:
        while not self._cancelled.is_set():
            self.polling_state = PollingState.WAITING
            await self.wait_for_reload()
            if self._cancelled.is_set():
                break

            self.polling_state = PollingState.RUNNING
            try:
                await self._reconcile()
            except Exception as e:
                # Keep serving the last good snapshot; try again next interval.
                logger.warning(
                    "Background secret reload failed",
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
        self.polling_state = PollingState.CANCELLED

    # === Lifecycle ===

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._guard:
            if self._disposed:
                raise ProviderDisposedError(
                    "Provider has been disposed", error_code="PROVIDER_DISPOSED"
                )
            if self._loop is None:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=self._run_loop,
                    args=(loop,),
                    name="keyvault-config-reload",
                    daemon=True,
                )
                thread.start()
                self._loop, self._thread = loop, thread
            return self._loop

    @staticmethod
    def _run_loop(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        finally:
            loop.close()

    async def _shutdown(self) -> None:
        self._cancelled.set()
        task = self._polling_task
        if task is not None and not task.done():
            # A pass in flight is allowed to finish; only the wait is aborted.
            if self.polling_state is PollingState.WAITING:
                task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("Background secret reload stopped")
        self.polling_state = PollingState.CANCELLED

        # Let an on-demand pass already in flight publish; later ones see the
        # cancellation once they hold the lock.
        async with self._pass_lock:
            pass

        if self.owns_client:
            try:
                await self.client.close()
            except Exception as e:
                logger.warning("Failed to close secret store client", error=str(e))

        logger.info("Key Vault configuration provider disposed")

    def dispose(self) -> None:
        """Stop background reloads and release the reload loop. Idempotent."""
        with self._guard:
            if self._disposed:
                return
            self._disposed = True
            loop, thread = self._loop, self._thread

        if loop is None:
            return
        if threading.current_thread() is thread:
            task = loop.create_task(self._shutdown())
            task.add_done_callback(lambda _: loop.stop())
            return

        try:
            asyncio.run_coroutine_threadsafe(self._shutdown(), loop).result()
        finally:
            loop.call_soon_threadsafe(loop.stop)
            thread.join()

    def __enter__(self) -> KeyVaultConfigurationProvider:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()
