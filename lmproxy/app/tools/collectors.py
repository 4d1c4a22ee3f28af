"""Collector tools."""

from typing import Any, Dict

from lmproxy.app.tools.base import Tool, ToolContext, list_resources
from lmproxy.app.tools.schemas import ListArgs, validate_arguments

COLLECTOR_FIELDS = (
    "id",
    "description",
    "hostname",
    "status",
    "platform",
    "uptime",
    "numberOfInstances",
    "numberOfSDTs",
    "isDown",
    "collectorGroupName",
    "numberOfHosts",
    "inSDT",
)


async def list_collectors(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(ListArgs, arguments)
    return await list_resources(context.client.list_collectors, args, "collectors", COLLECTOR_FIELDS)


COLLECTOR_TOOLS = [
    Tool(
        name="lm_list_collectors",
        description="List collectors with optional filtering. Automatically paginates through all results.",
        input_schema=ListArgs.model_json_schema(),
        handler=list_collectors,
    ),
]
