import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from src.importing.application.contracts import RateLimitError, RetryExhaustedError

T = TypeVar("T")

RetryCallback = Callable[[int, int, float, BaseException], None]


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay_seconds: float = 15.0

    def delay_for(self, attempt: int) -> float:
        # Linear: base * attempt, attempt counted from 1.
        return self.base_delay_seconds * attempt


def is_rate_limit_error(exc: BaseException) -> bool:
    if isinstance(exc, RateLimitError):
        return True
    if getattr(exc, "status", None) == 429:
        return True
    message = str(exc)
    return "rate_limit" in message or "429" in message


async def call_with_retry(
    action: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    on_retry: RetryCallback | None = None,
) -> T:
    """Await ``action``, retrying only on rate-limit errors.

    At most ``policy.max_retries`` retries follow the first attempt. Any other
    error propagates immediately; exhausting the retries raises
    ``RetryExhaustedError`` chained to the last rate-limit error.
    """
    policy = policy or RetryPolicy()
    attempt = 0
    while True:
        try:
            return await action()
        except Exception as exc:
            if not is_rate_limit_error(exc):
                raise
            if attempt >= policy.max_retries:
                raise RetryExhaustedError(attempt + 1, exc) from exc
            attempt += 1
            delay = policy.delay_for(attempt)
            if on_retry is not None:
                on_retry(attempt, policy.max_retries, delay, exc)
            await asyncio.sleep(delay)
