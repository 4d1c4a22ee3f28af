"""Tool catalog and dispatch."""

from typing import Any, Dict, List

from lmproxy.app.core.logging import get_logger
from lmproxy.app.exceptions import ToolValidationError, UnknownToolError
from lmproxy.app.tools.alerts import ALERT_TOOLS
from lmproxy.app.tools.base import Tool, ToolContext
from lmproxy.app.tools.collectors import COLLECTOR_TOOLS
from lmproxy.app.tools.device_groups import DEVICE_GROUP_TOOLS
from lmproxy.app.tools.devices import DEVICE_TOOLS
from lmproxy.app.tools.website_groups import WEBSITE_GROUP_TOOLS
from lmproxy.app.tools.websites import WEBSITE_TOOLS

logger = get_logger(__name__)

TOOLS: Dict[str, Tool] = {
    tool.name: tool
    for tool in (
        *DEVICE_TOOLS,
        *DEVICE_GROUP_TOOLS,
        *COLLECTOR_TOOLS,
        *WEBSITE_TOOLS,
        *WEBSITE_GROUP_TOOLS,
        *ALERT_TOOLS,
    )
}


def list_tools() -> List[Dict[str, Any]]:
    """Describe every tool in the catalog."""
    return [tool.to_dict() for tool in TOOLS.values()]


async def call_tool(name: str, arguments: Any, context: ToolContext) -> Dict[str, Any]:
    """Dispatch a tool call by name.

    Raises:
        UnknownToolError: If no tool is registered under ``name``
        ToolValidationError: If the arguments are not a JSON object
    """
    tool = TOOLS.get(name)
    if tool is None:
        raise UnknownToolError(name)
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise ToolValidationError("Validation error: tool arguments must be a JSON object")

    logger.debug(f"Dispatching tool {name}", extra={"tool": name})
    return await tool.handler(arguments, context)
