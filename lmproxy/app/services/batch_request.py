"""Single-or-batch request shapes for mutating tools.

Tool arguments arrive either as one item (``{"deviceId": 1, ...}``) or as a
batch (``{"devices": [...], "batchOptions": {...}}``). The shape is decided
once, here, and the batch processor only ever sees a plain list.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from lmproxy.app.exceptions import ToolValidationError
from lmproxy.app.services.batch_processor import (
    BatchOptions,
    BatchProcessor,
    BatchResult,
)
from lmproxy.app.services.rate_limiter import RetryOptions

BATCH_OPTIONS_KEY = "batchOptions"


@dataclass(frozen=True)
class SingleRequest:
    item: Dict[str, Any]


@dataclass(frozen=True)
class BatchRequest:
    items: List[Dict[str, Any]]
    options: BatchOptions = field(default_factory=BatchOptions)


ToolRequest = Union[SingleRequest, BatchRequest]


def is_batch_arguments(arguments: Any, array_key: str) -> bool:
    """Check whether tool arguments carry a list under ``array_key``."""
    return isinstance(arguments, Mapping) and isinstance(arguments.get(array_key), list)


def build_batch_options(
    raw: Optional[Mapping[str, Any]],
    default_max_concurrent: int,
    max_concurrent_cap: int,
    retry_options: Optional[RetryOptions] = None,
) -> BatchOptions:
    """Map a validated ``batchOptions`` argument onto BatchOptions.

    Values are used as given, so callers validate them first. Concurrency is
    clamped to ``max_concurrent_cap``.
    """
    raw = raw or {}
    max_concurrent = raw.get("maxConcurrent") or default_max_concurrent
    continue_on_error = raw.get("continueOnError")
    return BatchOptions(
        max_concurrent=min(max_concurrent, max_concurrent_cap),
        continue_on_error=True if continue_on_error is None else continue_on_error,
        retry_on_rate_limit=True,
        retry_options=retry_options,
    )


def parse_request(
    arguments: Mapping[str, Any],
    array_key: str,
    *,
    default_max_concurrent: int = 5,
    max_concurrent_cap: int = 50,
    retry_options: Optional[RetryOptions] = None,
) -> ToolRequest:
    """Classify tool arguments as a single item or a batch.

    Args:
        arguments: Raw tool arguments
        array_key: Property holding the batch list (e.g. "devices")
        default_max_concurrent: Concurrency when batchOptions omits it
        max_concurrent_cap: Upper bound for requested concurrency
        retry_options: Backoff tunables applied to every item

    Raises:
        ToolValidationError: If a batch list is empty or not a list of objects
    """
    if is_batch_arguments(arguments, array_key):
        items = arguments[array_key]
        if not items:
            raise ToolValidationError(
                f"Validation error: \"{array_key}\" must contain at least 1 item"
            )
        if not all(isinstance(item, Mapping) for item in items):
            raise ToolValidationError(
                f"Validation error: every entry of \"{array_key}\" must be an object"
            )
        options = build_batch_options(
            arguments.get(BATCH_OPTIONS_KEY),
            default_max_concurrent,
            max_concurrent_cap,
            retry_options,
        )
        return BatchRequest(items=[dict(item) for item in items], options=options)

    item = {k: v for k, v in arguments.items() if k != BATCH_OPTIONS_KEY}
    return SingleRequest(item=item)


async def run_request(
    processor: BatchProcessor,
    request: ToolRequest,
    operation: Callable[[Dict[str, Any], int], Awaitable[Any]],
    single_options: Optional[BatchOptions] = None,
) -> Union[Any, BatchResult]:
    """Run a tool request through the batch processor.

    A single request runs as a one-item batch and is unwrapped, so an item
    failure becomes the call's own BatchItemError. A batch request returns
    the full BatchResult.
    """
    if isinstance(request, SingleRequest):
        result = await processor.process_batch(
            [request.item], operation, single_options or BatchOptions(max_concurrent=1)
        )
        return BatchProcessor.unwrap_single_result(result)

    return await processor.process_batch(request.items, operation, request.options)
