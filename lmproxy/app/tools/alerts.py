"""Alert tools."""

from typing import Any, Dict

from lmproxy.app.tools.base import Tool, ToolContext, list_resources
from lmproxy.app.tools.schemas import (
    AlertArgs,
    AlertCommentArgs,
    ListAlertsArgs,
    validate_arguments,
)

# Returned for alert listings when no fields, or "*", are requested
ALERT_FIELDS = (
    "id",
    "internalId",
    "type",
    "startEpoch",
    "endEpoch",
    "acked",
    "ackedBy",
    "ackedEpoch",
    "ackComment",
    "rule",
    "chain",
    "severity",
    "cleared",
    "sdted",
    "monitorObjectName",
    "monitorObjectType",
    "instanceName",
    "dataPointName",
    "alertValue",
    "threshold",
    "resourceId",
    "resourceTemplateName",
    "anomaly",
    "adAlert",
)


async def list_alerts(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(ListAlertsArgs, arguments)
    return await list_resources(
        context.client.list_alerts,
        args,
        "alerts",
        ALERT_FIELDS,
        curate_all_fields=True,
        sort=args.get("sort"),
        need_message=args.get("needMessage"),
        custom_columns=args.get("customColumns"),
    )


async def get_alert(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(AlertArgs, arguments)
    return await context.client.get_alert(args["alertId"])


async def ack_alert(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(AlertCommentArgs, arguments)
    await context.client.ack_alert(args["alertId"], args["ackComment"])
    return {"success": True, "message": f"Alert {args['alertId']} acknowledged successfully"}


async def add_alert_note(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(AlertCommentArgs, arguments)
    await context.client.add_alert_note(args["alertId"], args["ackComment"])
    return {"success": True, "message": f"Note added to alert {args['alertId']} successfully"}


async def escalate_alert(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(AlertArgs, arguments)
    await context.client.escalate_alert(args["alertId"])
    return {"success": True, "message": f"Alert {args['alertId']} escalated successfully"}


ALERT_TOOLS = [
    Tool(
        name="lm_list_alerts",
        description=(
            "List LogicMonitor alerts with filtering and pagination. Automatically "
            "fetches all pages. Epoch fields are in seconds."
        ),
        input_schema=ListAlertsArgs.model_json_schema(),
        handler=list_alerts,
    ),
    Tool(
        name="lm_get_alert",
        description="Get a specific LogicMonitor alert by ID",
        input_schema=AlertArgs.model_json_schema(),
        handler=get_alert,
    ),
    Tool(
        name="lm_ack_alert",
        description="Acknowledge a LogicMonitor alert",
        input_schema=AlertCommentArgs.model_json_schema(),
        handler=ack_alert,
    ),
    Tool(
        name="lm_add_alert_note",
        description="Add a note to a LogicMonitor alert",
        input_schema=AlertCommentArgs.model_json_schema(),
        handler=add_alert_note,
    ),
    Tool(
        name="lm_escalate_alert",
        description="Escalate a LogicMonitor alert to the next recipient in the escalation chain",
        input_schema=AlertArgs.model_json_schema(),
        handler=escalate_alert,
    ),
]
