"""Tool API endpoints.

``GET /tools`` describes the catalog and ``POST /tools/{name}`` invokes one
tool with a JSON object of arguments, answering in the MCP text-content
shape.
"""

import json
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from lmproxy.app.core.http_client import get_http_client
from lmproxy.app.core.logging import get_log_context, get_logger
from lmproxy.app.exceptions import ProxyException, ToolValidationError, UnknownToolError
from lmproxy.app.middleware.auth import LMCredentials, require_lm_credentials
from lmproxy.app.middleware.request_id import get_request_id
from lmproxy.app.providers.logicmonitor import LogicMonitorClient
from lmproxy.app.services.batch_processor import BatchProcessor
from lmproxy.app.services.rate_limiter import RateLimiter
from lmproxy.app.tools import TOOLS, Tool, ToolContext, call_tool, list_tools

router = APIRouter()
logger = get_logger(__name__)


def get_rate_limiter(request: Request) -> RateLimiter:
    """Get the process-wide rate limiter created at startup."""
    return request.app.state.rate_limiter


def get_tool(name: str) -> Tool:
    """Resolve the tool named in the path.

    Raises:
        UnknownToolError: 404 if the name is not in the catalog
    """
    tool = TOOLS.get(name)
    if tool is None:
        raise UnknownToolError(name)
    return tool


def get_tool_context(
    credentials: LMCredentials = Depends(require_lm_credentials),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> ToolContext:
    """Build the LogicMonitor client and batch processor for one call."""
    try:
        http_client = get_http_client()
    except RuntimeError:
        # Shared client not initialized; the client falls back to per-request clients
        http_client = None

    client = LogicMonitorClient(
        credentials.account,
        credentials.bearer_token,
        rate_limiter,
        http_client=http_client,
    )
    return ToolContext(client=client, processor=BatchProcessor(rate_limiter))


async def _read_arguments(request: Request) -> Any:
    body = await request.body()
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        raise ToolValidationError("Invalid JSON in request body")


@router.get("/tools")
async def get_tools() -> Dict[str, Any]:
    """List available tools."""
    return {"tools": list_tools()}


@router.post("/tools/{name}")
async def invoke_tool(
    request: Request,
    tool: Tool = Depends(get_tool),
    context: ToolContext = Depends(get_tool_context),
) -> Dict[str, Any]:
    """Invoke a tool and wrap its result as text content.

    Raises:
        ProxyException: Mapped to its status code by the application handlers
    """
    request_id = get_request_id(request)
    log_context = get_log_context(
        request_id=request_id,
        tool=tool.name,
        account=context.client.account,
    )
    arguments = await _read_arguments(request)

    logger.info(f"Tool call {tool.name}", extra=log_context)
    start = time.perf_counter()
    try:
        result = await call_tool(tool.name, arguments, context)
    except ProxyException as e:
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.warning(
            f"Tool call {tool.name} failed: {e.message}",
            extra={**log_context, "status_code": e.status_code, "duration_ms": duration_ms},
        )
        raise

    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    logger.info(
        f"Tool call {tool.name} completed",
        extra={**log_context, "duration_ms": duration_ms},
    )
    return {
        "content": [{"type": "text", "text": json.dumps(result, indent=2)}],
        "isError": False,
    }
