"""Services package for LMProxy.

This package provides:
- Rate-limit tracking and retry (RateLimiter, RetryOptions)
- Batch execution (BatchProcessor, BatchOptions, BatchResult)
- Single/batch request normalization (parse_request, run_request)
- Filter translation (format_filter)
- Pagination (collect_pages)
"""

from lmproxy.app.services.batch_processor import (
    BatchItemResult,
    BatchOptions,
    BatchProcessor,
    BatchResult,
    BatchSummary,
)
from lmproxy.app.services.batch_request import (
    BatchRequest,
    SingleRequest,
    ToolRequest,
    parse_request,
    run_request,
)
from lmproxy.app.services.filters import format_filter
from lmproxy.app.services.pagination import Page, collect_pages
from lmproxy.app.services.rate_limiter import (
    DEFAULT_RATE_LIMIT_KEY,
    RateLimiter,
    RateLimitState,
    RetryOptions,
    parse_rate_limit_headers,
)

__all__ = [
    # Batch
    "BatchItemResult",
    "BatchOptions",
    "BatchProcessor",
    "BatchResult",
    "BatchSummary",
    # Requests
    "BatchRequest",
    "SingleRequest",
    "ToolRequest",
    "parse_request",
    "run_request",
    # Filters and pagination
    "format_filter",
    "Page",
    "collect_pages",
    # Rate limiting
    "DEFAULT_RATE_LIMIT_KEY",
    "RateLimiter",
    "RateLimitState",
    "RetryOptions",
    "parse_rate_limit_headers",
]
