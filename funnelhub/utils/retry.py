"""
Retry with exponential backoff for provider calls.

The CRM connector wraps its single HTTP round trip with retry_async and reads
the last call's RetryStats to report how many attempts were made.
"""
import asyncio
import functools
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple, Type

from funnelhub.utils.logger import log


@dataclass
class RetryStats:
    """Attempts and waits of the most recent call."""
    attempts: int = 0
    delays: List[float] = field(default_factory=list)
    last_error: Optional[str] = None
    success: bool = False

    @property
    def total_delay_seconds(self) -> float:
        return sum(self.delays)

    def record_attempt(self, error: Optional[Exception] = None, delay: float = 0.0):
        self.attempts += 1
        if delay:
            self.delays.append(delay)
        if error:
            self.last_error = f"{type(error).__name__}: {error}"


def calculate_backoff(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
) -> float:
    """
    Delay before the next try: base_delay * exponential_base ** (attempt - 1), capped.

    Deterministic, so a 1s base gives exactly 1s, 2s, 4s, ...
    """
    return min(base_delay * (exponential_base ** (attempt - 1)), max_delay)


def retry_async(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    retryable_exceptions: Tuple[Type[Exception], ...] = (ConnectionError, asyncio.TimeoutError),
):
    """
    Async decorator retrying *retryable_exceptions* with exponential backoff.

    Any other exception propagates on the first attempt. Once max_attempts is
    reached the last error is re-raised unchanged.

    Usage:
        fetch = retry_async(max_attempts=3, retryable_exceptions=(CrmTransportError,))(get_json)
        payload = await fetch(url)
        fetch.get_retry_stats().attempts
    """
    def decorator(func: Callable):
        last_stats: List[Optional[RetryStats]] = [None]

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            stats = RetryStats()
            last_stats[0] = stats

            for attempt in range(1, max_attempts + 1):
                try:
                    result = await func(*args, **kwargs)
                except retryable_exceptions as e:
                    if attempt >= max_attempts:
                        stats.record_attempt(error=e)
                        log.error(f"{func.__name__} failed after {attempt} attempts: {e}")
                        raise

                    delay = calculate_backoff(attempt, base_delay, max_delay, exponential_base)
                    stats.record_attempt(error=e, delay=delay)
                    log.warning(f"{func.__name__} attempt {attempt} failed: {e}. Retrying in {delay:.1f}s...")
                    await asyncio.sleep(delay)
                except Exception as e:
                    stats.record_attempt(error=e)
                    raise
                else:
                    stats.record_attempt()
                    stats.success = True
                    if attempt > 1:
                        log.info(
                            f"{func.__name__} succeeded on attempt {attempt} "
                            f"after {stats.total_delay_seconds:.1f}s total delay"
                        )
                    return result

        wrapper.get_retry_stats = lambda: last_stats[0]
        return wrapper

    return decorator
