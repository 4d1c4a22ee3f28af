"""Batch execution with bounded concurrency and per-item failure reporting.

Items are processed in consecutive windows of at most ``max_concurrent``
items. Every item in a window is dispatched at once and the whole window
is joined before the next one starts. Each item's outcome lands in the
result slot of its original index, so ``results[i]`` always describes
``items[i]`` no matter which call finished first.
"""

import asyncio
from dataclasses import dataclass, field, replace
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    List,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from lmproxy.app.core.logging import get_logger
from lmproxy.app.exceptions import BatchItemError
from lmproxy.app.services.rate_limiter import (
    DEFAULT_RATE_LIMIT_KEY,
    RateLimiter,
    RetryOptions,
)

logger = get_logger(__name__)

TInput = TypeVar("TInput")
TOutput = TypeVar("TOutput")

DEFAULT_MAX_CONCURRENT = 5

ProgressCallback = Callable[[int, int], None]


def describe_error(error: BaseException) -> str:
    """Human-readable failure text for a result record."""
    return str(error) or type(error).__name__


@dataclass(frozen=True)
class BatchItemResult(Generic[TOutput]):
    """Outcome of one item. Exactly one of data/error is meaningful."""

    index: int
    success: bool
    data: Optional[TOutput] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, index: int, data: TOutput) -> "BatchItemResult[TOutput]":
        return cls(index=index, success=True, data=data)

    @classmethod
    def failed(cls, index: int, error: str) -> "BatchItemResult[TOutput]":
        return cls(index=index, success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"index": self.index, "success": self.success}
        if self.success:
            payload["data"] = self.data
        else:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class BatchSummary:
    total: int
    succeeded: int
    failed: int

    def to_dict(self) -> Dict[str, int]:
        return {"total": self.total, "succeeded": self.succeeded, "failed": self.failed}


@dataclass(frozen=True)
class BatchResult(Generic[TOutput]):
    """Aggregate outcome of a batch.

    ``success`` is true only when every item succeeded; an empty batch is
    vacuously successful.
    """

    success: bool
    results: Tuple[BatchItemResult[TOutput], ...]
    summary: BatchSummary

    @classmethod
    def from_results(cls, results: Sequence[BatchItemResult[TOutput]]) -> "BatchResult[TOutput]":
        succeeded = sum(1 for r in results if r.success)
        failed = len(results) - succeeded
        return cls(
            success=failed == 0,
            results=tuple(results),
            summary=BatchSummary(total=len(results), succeeded=succeeded, failed=failed),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "summary": self.summary.to_dict(),
            "results": [r.to_dict() for r in self.results],
        }


@dataclass
class BatchOptions:
    """Options for a single batch run.

    Attributes:
        max_concurrent: Upper bound on in-flight operations (default: 5)
        continue_on_error: Record failures and keep going (default: True);
            when False the first failure is raised instead of a result
        retry_on_rate_limit: Route each operation through the rate
            limiter's retry wrapper (default: True)
        retry_options: Backoff tunables for that wrapper
        on_progress: Called with (completed, total) after each item settles
    """

    max_concurrent: int = DEFAULT_MAX_CONCURRENT
    continue_on_error: bool = True
    retry_on_rate_limit: bool = True
    retry_options: Optional[RetryOptions] = None
    on_progress: Optional[ProgressCallback] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")


class BatchProcessor:
    """Runs a per-item async operation over a list of items.

    Usage:
        processor = BatchProcessor(rate_limiter)

        result = await processor.process_batch(
            devices,
            lambda device, index: client.create_device(device),
            BatchOptions(max_concurrent=3),
        )
        print(result.summary)
    """

    def __init__(self, rate_limiter: RateLimiter, rate_limit_key: str = DEFAULT_RATE_LIMIT_KEY):
        """Initialize the processor.

        Args:
            rate_limiter: Shared rate limiter used for retry-on-429
            rate_limit_key: Operation class the retries are keyed by
        """
        self.rate_limiter = rate_limiter
        self.rate_limit_key = rate_limit_key

    async def process_batch(
        self,
        items: Sequence[TInput],
        operation: Callable[[TInput, int], Awaitable[TOutput]],
        options: Optional[BatchOptions] = None,
    ) -> BatchResult[TOutput]:
        """Process ``items`` window by window.

        Args:
            items: Ordered work items; may be empty
            operation: Async callable invoked as ``operation(item, index)``
            options: Batch options, defaults to BatchOptions()

        Returns:
            BatchResult whose results line up with ``items`` by index

        Raises:
            Exception: The first item failure, when continue_on_error is False.
                Siblings in the same window are joined before it is raised.
        """
        opts = options or BatchOptions()
        total = len(items)
        slots: List[Optional[BatchItemResult[TOutput]]] = [None] * total
        completed = 0
        progress_errors: List[Exception] = []

        async def run_item(index: int, item: TInput) -> Optional[BaseException]:
            nonlocal completed
            try:
                if opts.retry_on_rate_limit:
                    data = await self.rate_limiter.execute_with_retry(
                        lambda: operation(item, index),
                        self.rate_limit_key,
                        opts.retry_options,
                    )
                else:
                    data = await operation(item, index)
                slots[index] = BatchItemResult.ok(index, data)
                failure = None
            except Exception as e:
                slots[index] = BatchItemResult.failed(index, describe_error(e))
                failure = e

            completed += 1
            if opts.on_progress is not None:
                try:
                    opts.on_progress(completed, total)
                except Exception as e:
                    progress_errors.append(e)
            return failure

        for start in range(0, total, opts.max_concurrent):
            window = items[start:start + opts.max_concurrent]
            failures = await asyncio.gather(
                *(run_item(start + offset, item) for offset, item in enumerate(window))
            )
            if progress_errors:
                raise progress_errors[0]

            if not opts.continue_on_error:
                first_failure = next((f for f in failures if f is not None), None)
                if first_failure is not None:
                    logger.warning(
                        f"Batch aborted at window starting {start} of {total}: "
                        f"{describe_error(first_failure)}"
                    )
                    raise first_failure

        result = BatchResult.from_results([slot for slot in slots if slot is not None])
        logger.debug(
            f"Batch complete: {result.summary.succeeded}/{result.summary.total} succeeded"
        )
        return result

    async def process_serial(
        self,
        items: Sequence[TInput],
        operation: Callable[[TInput, int], Awaitable[TOutput]],
        options: Optional[BatchOptions] = None,
    ) -> BatchResult[TOutput]:
        """Process items one at a time."""
        opts = options or BatchOptions()
        return await self.process_batch(items, operation, replace(opts, max_concurrent=1))

    async def process_parallel(
        self,
        items: Sequence[TInput],
        operation: Callable[[TInput, int], Awaitable[TOutput]],
        options: Optional[BatchOptions] = None,
    ) -> BatchResult[TOutput]:
        """Process all items in a single window. Use with care against rate-limited APIs."""
        opts = options or BatchOptions()
        return await self.process_batch(items, operation, replace(opts, max_concurrent=max(len(items), 1)))

    @staticmethod
    def unwrap_single_result(result: BatchResult[TOutput]) -> TOutput:
        """Return the data of a one-item batch, raising its error on failure.

        Raises:
            ValueError: If the batch does not hold exactly one result
            BatchItemError: If the item failed
        """
        if len(result.results) != 1:
            raise ValueError(
                f"Expected single result but got {len(result.results)}"
            )
        single = result.results[0]
        if not single.success:
            raise BatchItemError(single.error or "Operation failed", index=single.index)
        return single.data

