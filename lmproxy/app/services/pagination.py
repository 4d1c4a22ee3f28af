"""Offset pagination across LogicMonitor list endpoints."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List

from lmproxy.app.core.logging import get_logger

logger = get_logger(__name__)

PageFetcher = Callable[[int, int], Awaitable[Dict[str, Any]]]


@dataclass
class Page:
    total: int = 0
    items: List[Dict[str, Any]] = field(default_factory=list)


async def collect_pages(
    fetch_page: PageFetcher,
    *,
    page_size: int,
    offset: int = 0,
    max_items: int = 10000,
) -> Page:
    """Fetch consecutive pages until every matching item has been collected.

    ``fetch_page(size, offset)`` must return LogicMonitor's list envelope,
    ``{"total": int, "items": [...]}``. Alert listings report a negative
    total meaning "at least abs(total)"; for those, paging continues while
    pages come back full.

    Args:
        fetch_page: Coroutine fetching one page
        page_size: Items requested per page
        offset: Offset of the first item to fetch
        max_items: Stop once this many items have been collected

    Returns:
        Page with the best known absolute total and the collected items
    """
    collected: List[Dict[str, Any]] = []
    known_total = 0
    exact_total = True
    current_offset = offset

    while len(collected) < max_items:
        size = min(page_size, max_items - len(collected))
        envelope = await fetch_page(size, current_offset) or {}
        items = envelope.get("items") or []
        total = int(envelope.get("total") or 0)

        exact_total = total >= 0
        known_total = max(known_total, abs(total))
        collected.extend(items)
        current_offset += len(items)

        if len(items) < size:
            break
        if exact_total and current_offset >= total:
            break

    if len(collected) >= max_items:
        logger.info(f"Pagination stopped at {max_items} items (total reported: {known_total})")

    total = known_total if exact_total else max(known_total, current_offset)
    return Page(total=total, items=collected[:max_items])
