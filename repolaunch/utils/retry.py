import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    delay_seconds: float = 1.0,
    retry_on: Optional[Tuple[Type[BaseException], ...]] = (Exception,),
    on_failure: Optional[Callable[[int, BaseException], None]] = None,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Await fn() up to `attempts` times with linear backoff: the wait before attempt k+1 is k * delay_seconds.
    Re-raises the last error once attempts are exhausted. on_failure(attempt, error) is called for every failed attempt.
    Why available: Used by the uploader so one flaky contents API call does not fail a file."""
    exc_types: Tuple[Type[BaseException], ...] = retry_on or (Exception,)

    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except exc_types as e:
            if on_failure is not None:
                on_failure(attempt, e)
            if attempt >= attempts:
                raise
            await sleep(delay_seconds * attempt)

    raise ValueError("attempts must be >= 1")
