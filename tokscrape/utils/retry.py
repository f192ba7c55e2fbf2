"""Retry for transient failures in database and object-storage writes."""

import asyncio
import logging
from dataclasses import dataclass, replace
from functools import wraps
from typing import Awaitable, Callable, Iterator, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to retry which errors, and how long to back off."""

    max_retries: int = 2
    delay: float = 0.5
    backoff_factor: float = 2.0
    max_delay: float = 10.0
    exceptions: tuple[Type[Exception], ...] = (Exception,)

    def backoff(self) -> Iterator[float]:
        """Sleep before each retry, capped at max_delay."""
        for attempt in range(self.max_retries):
            yield min(self.delay * self.backoff_factor**attempt, self.max_delay)


def retry_async(
    policy: Optional[RetryPolicy] = None,
    *,
    max_retries: Optional[int] = None,
    delay: Optional[float] = None,
    exceptions: Optional[tuple[Type[Exception], ...]] = None,
):
    """Retry an async function on `exceptions`; re-raise once retries run out.

    Other exceptions propagate on the first attempt.

        @retry_async(max_retries=2, exceptions=(aiohttp.ClientError,))
        async def upload(...):
            ...
    """
    overrides = {
        key: value
        for key, value in {"max_retries": max_retries, "delay": delay, "exceptions": exceptions}.items()
        if value is not None
    }
    policy = replace(policy or RetryPolicy(), **overrides)

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            waits = policy.backoff()
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except policy.exceptions as e:
                    wait = next(waits, None)
                    if wait is None:
                        logger.error(f"{func.__name__} failed after {attempt + 1} attempts: {type(e).__name__}: {e}")
                        raise
                    attempt += 1
                    logger.warning(
                        f"{func.__name__} failed ({type(e).__name__}: {e}), "
                        f"retry {attempt}/{policy.max_retries} in {wait:.1f}s"
                    )
                    await asyncio.sleep(wait)

        return wrapper

    return decorator
