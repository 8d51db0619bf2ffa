"""
Retry policy around provider loads.

A reconciliation pass is all-or-nothing and never retries by itself; this
policy wraps whole loads so that a host can ride out a vault that is briefly
unreachable at startup.
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .exceptions import RemoteUnavailableError
from .logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ReloadRetryPolicy:
    """Retry policy with a fixed delay between attempts."""

    def __init__(
        self,
        max_attempts: int = 12,
        delay: float = 5.0,
        retry_exceptions: tuple = (RemoteUnavailableError,),
        name: str | None = None,
    ):
        self.max_attempts = max_attempts
        self.delay = delay
        self.retry_exceptions = retry_exceptions
        self.name = name or "reload_retry_policy"

    @classmethod
    def from_options(cls, options, name: str | None = None) -> "ReloadRetryPolicy":
        return cls(
            max_attempts=options.error_reload_times,
            delay=options.error_reload_delay,
            name=name,
        )

    def _log_retry(self, retry_state: RetryCallState) -> None:
        logger.warning(
            "Secret load failed, retrying",
            name=self.name,
            attempt=retry_state.attempt_number,
            max_attempts=self.max_attempts,
            delay=self.delay,
            error=str(retry_state.outcome.exception()),
        )

    def _retry_kwargs(self) -> dict:
        return {
            "stop": stop_after_attempt(self.max_attempts),
            "wait": wait_fixed(self.delay),
            "retry": retry_if_exception_type(self.retry_exceptions),
            "before_sleep": self._log_retry,
            "reraise": True,
        }

    def call(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Call a synchronous function under the retry policy."""
        for attempt in Retrying(**self._retry_kwargs()):
            with attempt:
                return func(*args, **kwargs)

    async def execute(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Await a coroutine function under the retry policy."""
        async for attempt in AsyncRetrying(**self._retry_kwargs()):
            with attempt:
                return await func(*args, **kwargs)
