"""
Bounded concurrent secret fetching.

Fetches are started as soon as they are submitted and gated by a counting
semaphore, so at most ``max_concurrency`` requests are in flight against the
store at any time. Results are only handed back once every submitted fetch
has finished.
"""

from __future__ import annotations

import asyncio

from .logger import get_logger
from .models import SecretValue
from .store import SecretStoreClient

logger = get_logger(__name__)

MAX_CONCURRENT_FETCHES = 32


class BoundedFetcher:
    """Fan out secret fetches behind a semaphore and fan them back in.

    Use as an async context manager: leaving the block cancels and awaits any
    fetch still pending, so the gate is released on every exit path.

    Example:
        >>> async with BoundedFetcher(client) as fetcher:
        ...     fetcher.submit("Secret1")
        ...     values = await fetcher.wait_all()
    """

    def __init__(
        self,
        client: SecretStoreClient,
        max_concurrency: int = MAX_CONCURRENT_FETCHES,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.client = client
        self.max_concurrency = max_concurrency
        self.semaphore = asyncio.Semaphore(max_concurrency)
        self.active_requests = 0
        self._tasks: list[asyncio.Task[SecretValue]] = []

    async def __aenter__(self) -> BoundedFetcher:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.cancel_pending()

    @property
    def submitted(self) -> int:
        return len(self._tasks)

    def submit(self, name: str, version: str | None = None) -> None:
        """Schedule a fetch; it starts once a semaphore permit is free."""
        self._tasks.append(asyncio.ensure_future(self._fetch(name, version)))

    async def _fetch(self, name: str, version: str | None) -> SecretValue:
        async with self.semaphore:
            self.active_requests += 1
            try:
                return await self.client.fetch_value(name, version)
            finally:
                self.active_requests -= 1

    async def wait_all(self) -> list[SecretValue]:
        """Wait for every submitted fetch and return their values.

        Raises:
            Exception: The first fetch failure, after all fetches completed
        """
        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            logger.warning(
                "Secret fetch failed",
                submitted=len(results),
                failed=len(failures),
                error=str(failures[0]),
            )
            raise failures[0]
        return list(results)

    async def cancel_pending(self) -> None:
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
