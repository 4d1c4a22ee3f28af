"""Device group tools."""

from typing import Any, Dict

from lmproxy.app.tools.base import Tool, ToolContext, curate, list_resources, run_mutation
from lmproxy.app.tools.schemas import (
    CreateDeviceGroupItem,
    DeleteGroupItem,
    GetGroupArgs,
    ListDeviceGroupsArgs,
    UpdateDeviceGroupItem,
    batch_input_schema,
    validate_arguments,
)

GROUP_FIELDS = (
    "id",
    "name",
    "fullPath",
    "parentId",
    "description",
    "appliesTo",
    "disableAlerting",
    "customProperties",
    "numOfDevices",
    "numOfDirectDevices",
    "numOfSubGroups",
    "alertStatus",
    "createdOn",
    "updatedOn",
)
GROUP_TIMESTAMPS = ("createdOn", "updatedOn")


def _group_summary(group: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": group.get("id"),
        "name": group.get("name"),
        "fullPath": group.get("fullPath"),
    }


async def list_device_groups(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(ListDeviceGroupsArgs, arguments)
    parent_id = args.pop("parentId", None)
    if parent_id is not None:
        # Parent scoping is expressed as a filter condition
        conditions = [c for c in (args.get("filter"), f"parentId:{parent_id}") if c]
        args["filter"] = ",".join(conditions)
    return await list_resources(
        context.client.list_device_groups, args, "groups", GROUP_FIELDS, GROUP_TIMESTAMPS
    )


async def get_device_group(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(GetGroupArgs, arguments)
    group = await context.client.get_device_group(args["groupId"])
    return curate(group, GROUP_FIELDS, GROUP_TIMESTAMPS)


async def create_device_group(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    async def create(item: Dict[str, Any], index: int) -> Dict[str, Any]:
        payload = {
            "name": item["name"],
            "parentId": item["parentId"],
            "description": item.get("description"),
            "appliesTo": item.get("appliesTo"),
            "customProperties": item.get("properties"),
        }
        created = await context.client.create_device_group(
            {k: v for k, v in payload.items() if v is not None}
        )
        return _group_summary(created)

    return await run_mutation(
        arguments,
        context,
        item_model=CreateDeviceGroupItem,
        array_key="groups",
        singular="group",
        operation=create,
    )


async def update_device_group(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    async def update(item: Dict[str, Any], index: int) -> Dict[str, Any]:
        updates = dict(item)
        group_id = updates.pop("groupId")
        return _group_summary(await context.client.update_device_group(group_id, updates))

    return await run_mutation(
        arguments,
        context,
        item_model=UpdateDeviceGroupItem,
        array_key="groups",
        singular="group",
        operation=update,
    )


async def delete_device_group(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    async def delete(item: Dict[str, Any], index: int) -> Dict[str, Any]:
        await context.client.delete_device_group(item["groupId"], item.get("deleteChildren"))
        return {"groupId": item["groupId"]}

    return await run_mutation(
        arguments,
        context,
        item_model=DeleteGroupItem,
        array_key="groups",
        singular="group",
        operation=delete,
        merge_data=True,
    )


DEVICE_GROUP_TOOLS = [
    Tool(
        name="lm_list_device_groups",
        description="List device groups with optional filtering. Automatically paginates through all results.",
        input_schema=ListDeviceGroupsArgs.model_json_schema(),
        handler=list_device_groups,
    ),
    Tool(
        name="lm_get_device_group",
        description="Get detailed information about a specific device group",
        input_schema=GetGroupArgs.model_json_schema(),
        handler=get_device_group,
    ),
    Tool(
        name="lm_create_device_group",
        description="Create one or more device groups (pass \"groups\" for batch)",
        input_schema=batch_input_schema(CreateDeviceGroupItem, "groups"),
        handler=create_device_group,
    ),
    Tool(
        name="lm_update_device_group",
        description="Update one or more device groups",
        input_schema=batch_input_schema(UpdateDeviceGroupItem, "groups"),
        handler=update_device_group,
    ),
    Tool(
        name="lm_delete_device_group",
        description="Delete one or more device groups, optionally with their children",
        input_schema=batch_input_schema(DeleteGroupItem, "groups"),
        handler=delete_device_group,
    ),
]
