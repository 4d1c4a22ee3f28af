"""Shared building blocks for tool handlers."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Type

from lmproxy.app.core.config import settings
from lmproxy.app.providers.logicmonitor import LogicMonitorClient
from lmproxy.app.services.batch_processor import BatchProcessor, BatchResult
from lmproxy.app.services.batch_request import (
    BATCH_OPTIONS_KEY,
    BatchRequest,
    SingleRequest,
    parse_request,
    run_request,
)
from lmproxy.app.services.pagination import collect_pages
from lmproxy.app.tools.schemas import BatchOptionsInput, ToolArguments, validate_arguments

ALL_FIELDS = "*"


@dataclass(frozen=True)
class ToolContext:
    """Per-call collaborators handed to every tool handler."""
    client: LogicMonitorClient
    processor: BatchProcessor


ToolHandler = Callable[[Dict[str, Any], ToolContext], Awaitable[Dict[str, Any]]]


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: ToolHandler

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


def epoch_to_iso(value: Any) -> Optional[str]:
    """Convert LogicMonitor epoch seconds to an ISO-8601 UTC string."""
    if not value:
        return None
    moment = datetime.fromtimestamp(value, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def curate(
    item: Dict[str, Any],
    fields: Sequence[str],
    timestamps: Iterable[str] = (),
) -> Dict[str, Any]:
    """Keep only ``fields`` present in ``item``; epoch ``timestamps`` become ISO strings."""
    timestamp_fields = set(timestamps)
    curated = {}
    for name in fields:
        if name not in item:
            continue
        value = item[name]
        curated[name] = epoch_to_iso(value) if name in timestamp_fields else value
    return curated


async def list_resources(
    fetch: Callable[..., Awaitable[Dict[str, Any]]],
    args: Dict[str, Any],
    array_key: str,
    curated_fields: Sequence[str],
    timestamps: Iterable[str] = (),
    curate_all_fields: bool = False,
    **fetch_params: Any,
) -> Dict[str, Any]:
    """Page through a list endpoint and shape the items.

    Items are returned as LogicMonitor sent them when ``fields`` was given,
    and reduced to ``curated_fields`` otherwise. With ``curate_all_fields``,
    ``fields="*"`` is curated too.
    """
    fields = args.get("fields")
    api_fields = None if fields == ALL_FIELDS else fields

    async def fetch_page(size: int, offset: int) -> Dict[str, Any]:
        return await fetch(
            filter=args.get("filter"),
            size=size,
            offset=offset,
            fields=api_fields,
            **fetch_params,
        )

    page = await collect_pages(
        fetch_page,
        page_size=args.get("size") or settings.pagination_page_size,
        offset=args.get("offset") or 0,
        max_items=settings.pagination_max_items,
    )

    if fields and not (curate_all_fields and fields == ALL_FIELDS):
        items = page.items
    else:
        items = [curate(item, curated_fields, timestamps) for item in page.items]
    return {"total": page.total, array_key: items}


def format_batch_response(
    result: BatchResult,
    array_key: str,
    singular: str,
    merge_data: bool = False,
) -> Dict[str, Any]:
    """Shape a BatchResult as a tool response keyed by ``array_key``."""
    entries: List[Dict[str, Any]] = []
    for item in result.results:
        entry: Dict[str, Any] = {"index": item.index, "success": item.success}
        if not item.success:
            entry["error"] = item.error
        elif merge_data:
            entry.update(item.data or {})
        else:
            entry[singular] = item.data
        entries.append(entry)

    return {
        "success": result.success,
        "summary": result.summary.to_dict(),
        array_key: entries,
    }


async def run_mutation(
    arguments: Dict[str, Any],
    context: ToolContext,
    *,
    item_model: Type[ToolArguments],
    array_key: str,
    singular: str,
    operation: Callable[[Dict[str, Any], int], Awaitable[Dict[str, Any]]],
    merge_data: bool = False,
) -> Dict[str, Any]:
    """Validate single-or-batch arguments and run them through the batch engine.

    Args:
        arguments: Raw tool arguments
        context: Per-call collaborators
        item_model: Model every item must satisfy
        array_key: Batch list property, also the response key (e.g. "devices")
        singular: Response key for one item's data (e.g. "device")
        operation: Coroutine performing the call for one validated item
        merge_data: Merge item data into the response instead of nesting it

    Raises:
        ToolValidationError: If any item or the batch options are invalid
        BatchItemError: If a single-item call fails
    """
    batch_options = validate_arguments(
        BatchOptionsInput, arguments.get(BATCH_OPTIONS_KEY) or {}, BATCH_OPTIONS_KEY
    )

    request = parse_request(
        {**arguments, BATCH_OPTIONS_KEY: batch_options},
        array_key,
        default_max_concurrent=settings.batch_default_max_concurrent,
        max_concurrent_cap=settings.batch_max_concurrent_cap,
        retry_options=settings.retry_options(),
    )

    if isinstance(request, SingleRequest):
        item = validate_arguments(item_model, request.item)
        data = await run_request(context.processor, SingleRequest(item=item), operation)
        if merge_data:
            return {"success": True, **(data or {})}
        return {"success": True, singular: data}

    items = [
        validate_arguments(item_model, raw, f"{array_key}[{index}]")
        for index, raw in enumerate(request.items)
    ]
    result = await run_request(
        context.processor, BatchRequest(items=items, options=request.options), operation
    )
    return format_batch_response(result, array_key, singular, merge_data)
