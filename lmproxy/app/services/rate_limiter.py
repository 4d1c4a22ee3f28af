"""Rate-limit tracking and retry with exponential backoff for LogicMonitor calls.

LogicMonitor reports its quota on every response through three headers:

- ``X-Rate-Limit-Limit``: requests allowed per window
- ``X-Rate-Limit-Remaining``: requests left in the current window
- ``X-Rate-Limit-Window``: rolling window width in seconds

The RateLimiter keeps the latest observation per operation class, pauses
before a call when the remaining quota is low, and retries calls rejected
with HTTP 429 using exponential backoff with jitter. Every other failure
propagates on first occurrence.

All delays handled here are integer milliseconds.
"""

import asyncio
import math
import random
import time
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TypeVar

import httpx

from lmproxy.app.core.logging import get_logger
from lmproxy.app.exceptions import RateLimitedError

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_RATE_LIMIT_KEY = "api-request"
DEFAULT_PREEMPTIVE_THRESHOLD = 10
DEFAULT_RESET_BUFFER_MS = 1000
JITTER_RATIO = 0.1

LIMIT_HEADER = "x-rate-limit-limit"
REMAINING_HEADER = "x-rate-limit-remaining"
WINDOW_HEADER = "x-rate-limit-window"


@dataclass(frozen=True)
class RateLimitState:
    """Most recent rate-limit observation for one operation class.

    Attributes:
        limit: Maximum calls allowed in the rolling window
        remaining: Calls left in the current window
        window_seconds: Width of the rolling window
        reset_at: Epoch seconds when the window resets (observation time + window)
    """

    limit: int
    remaining: int
    window_seconds: int
    reset_at: float

    @classmethod
    def observe(
        cls,
        limit: int,
        remaining: int,
        window_seconds: int,
        now: Optional[float] = None,
    ) -> "RateLimitState":
        """Build a state observed at ``now`` (defaults to the current time)."""
        observed_at = time.time() if now is None else now
        return cls(
            limit=limit,
            remaining=remaining,
            window_seconds=window_seconds,
            reset_at=observed_at + window_seconds,
        )


@dataclass(frozen=True)
class RetryOptions:
    """Backoff tunables for rate-limited retries.

    Attributes:
        max_retries: Total attempts allowed, including the first (default: 3)
        initial_delay: Delay before the second attempt in ms (default: 1000)
        max_delay: Upper bound on the exponential delay in ms (default: 60000)
        backoff_multiplier: Growth factor between attempts (default: 2.0)

    Example:
        >>> options = RetryOptions(max_retries=5, initial_delay=500)
        >>> options.merged(max_delay=10000).max_delay
        10000
    """

    max_retries: int = 3
    initial_delay: int = 1000
    max_delay: int = 60000
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must not be negative")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be at least 1")

    def merged(self, overrides: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "RetryOptions":
        """Return a copy with every non-None override applied."""
        values = dict(overrides or {})
        values.update(kwargs)
        return replace(self, **{k: v for k, v in values.items() if v is not None})


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    if isinstance(headers, httpx.Headers):
        return headers.get(name)
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def parse_rate_limit_headers(
    headers: Optional[Mapping[str, str]],
    now: Optional[float] = None,
) -> Optional[RateLimitState]:
    """Extract rate-limit state from response headers.

    Returns:
        The parsed state, or None if any header is missing or non-numeric
    """
    if not headers:
        return None
    try:
        limit = int(_header(headers, LIMIT_HEADER))
        remaining = int(_header(headers, REMAINING_HEADER))
        window = int(_header(headers, WINDOW_HEADER))
    except (TypeError, ValueError):
        return None
    return RateLimitState.observe(limit, remaining, window, now=now)


class RateLimiter:
    """Process-wide rate-limit cache and retry coordinator.

    Create one instance at startup and hand it to every client and batch
    processor that talks to the same upstream. Each key holds only the
    latest observation; updates replace the whole record.
    """

    def __init__(
        self,
        default_options: Optional[RetryOptions] = None,
        preemptive_threshold: int = DEFAULT_PREEMPTIVE_THRESHOLD,
        reset_buffer_ms: int = DEFAULT_RESET_BUFFER_MS,
    ):
        """Initialize the rate limiter.

        Args:
            default_options: Backoff tunables used when a call passes none
            preemptive_threshold: Remaining-call count at or below which
                calls wait for the window to reset
            reset_buffer_ms: Safety margin added to the reset delay
        """
        self.default_options = default_options or RetryOptions()
        self.preemptive_threshold = preemptive_threshold
        self.reset_buffer_ms = reset_buffer_ms
        self._states: Dict[str, RateLimitState] = {}

    def record_observation(self, key: str, state: Optional[RateLimitState]) -> None:
        """Replace the stored state for ``key``. None is ignored."""
        if state is None:
            return
        self._states[key] = state

    def get_state(self, key: str) -> Optional[RateLimitState]:
        """Return the latest observation for ``key``, if any."""
        return self._states.get(key)

    def clear(self, key: Optional[str] = None) -> None:
        """Forget the observation for ``key``, or for every key."""
        if key is None:
            self._states.clear()
        else:
            self._states.pop(key, None)

    def should_preemptively_wait(self, key: str, threshold: Optional[int] = None) -> bool:
        """Check whether the remaining quota for ``key`` is at or below threshold."""
        state = self._states.get(key)
        if state is None:
            return False
        limit = self.preemptive_threshold if threshold is None else threshold
        return state.remaining <= limit

    def delay_until_reset(self, key: str, now: Optional[float] = None) -> int:
        """Milliseconds until the window for ``key`` resets, plus the buffer.

        Returns 0 when nothing is stored for ``key``.
        """
        state = self._states.get(key)
        if state is None:
            return 0
        current = time.time() if now is None else now
        remaining_ms = max(0.0, state.reset_at - current) * 1000
        return int(remaining_ms) + self.reset_buffer_ms

    def compute_backoff(self, attempt: int, options: Optional[RetryOptions] = None) -> int:
        """Calculate the delay before the attempt following ``attempt``.

        Uses exponential backoff with up to 10% jitter:
        delay = min(initial_delay * backoff_multiplier ^ (attempt - 1), max_delay)

        Args:
            attempt: The attempt that just failed (1-indexed)
            options: Backoff tunables, defaults to the limiter's

        Returns:
            Delay in milliseconds, rounded down
        """
        opts = options or self.default_options
        delay = min(
            opts.initial_delay * (opts.backoff_multiplier ** (attempt - 1)),
            opts.max_delay,
        )
        jitter = random.random() * JITTER_RATIO * delay
        return math.floor(delay + jitter)

    def is_rate_limit_signal(self, error: BaseException) -> bool:
        """Check if an error represents an HTTP 429 response."""
        if isinstance(error, RateLimitedError):
            return True
        if isinstance(error, httpx.HTTPStatusError):
            return error.response.status_code == 429
        return False

    def _state_from_error(self, error: BaseException) -> Optional[RateLimitState]:
        if isinstance(error, RateLimitedError):
            return error.rate_limit
        if isinstance(error, httpx.HTTPStatusError):
            return parse_rate_limit_headers(error.response.headers)
        return None

    async def _sleep(self, delay_ms: int) -> None:
        await asyncio.sleep(delay_ms / 1000)

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        key: str = DEFAULT_RATE_LIMIT_KEY,
        options: Optional[RetryOptions] = None,
    ) -> T:
        """Run ``operation``, retrying only when it is rejected as rate-limited.

        Before each attempt, waits for the window to reset if the stored
        quota for ``key`` is nearly exhausted. Non-rate-limit failures and
        the final rate-limit failure are re-raised unchanged.

        Args:
            operation: Zero-argument coroutine factory performing one call
            key: Operation class for rate-limit bookkeeping
            options: Backoff tunables, defaults to the limiter's

        Returns:
            Whatever ``operation`` returns on its first successful attempt
        """
        opts = options or self.default_options

        for attempt in range(1, opts.max_retries + 1):
            if self.should_preemptively_wait(key):
                delay = self.delay_until_reset(key)
                if delay > 0:
                    logger.info(
                        f"Rate limit nearly exhausted for '{key}', waiting {delay}ms for reset",
                        extra={"rate_limit_key": key},
                    )
                    await self._sleep(delay)

            try:
                return await operation()
            except Exception as e:
                if not self.is_rate_limit_signal(e):
                    raise

                if attempt >= opts.max_retries:
                    logger.warning(
                        f"Rate limit retries ({opts.max_retries}) exhausted for '{key}': {e}",
                        extra={"rate_limit_key": key},
                    )
                    raise

                self.record_observation(key, self._state_from_error(e))

                delay = self.compute_backoff(attempt, opts)
                logger.warning(
                    f"Rate limited on '{key}', retry {attempt}/{opts.max_retries - 1} "
                    f"in {delay}ms",
                    extra={"rate_limit_key": key},
                )
                await self._sleep(delay)

        # max_retries >= 1 guarantees the loop returns or raises
        raise RuntimeError("execute_with_retry exhausted without a result")
