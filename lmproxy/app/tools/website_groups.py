"""Website group tools."""

from typing import Any, Dict

from lmproxy.app.tools.base import Tool, ToolContext, curate, list_resources, run_mutation
from lmproxy.app.tools.schemas import (
    CreateWebsiteGroupItem,
    DeleteGroupItem,
    GetGroupArgs,
    ListArgs,
    UpdateWebsiteGroupItem,
    batch_input_schema,
    validate_arguments,
)

WEBSITE_GROUP_FIELDS = (
    "id",
    "name",
    "fullPath",
    "parentId",
    "description",
    "disableAlerting",
    "stopMonitoring",
    "numOfWebsites",
    "numOfDirectWebsites",
    "numOfDirectSubGroups",
    "hasWebsitesDisabled",
    "properties",
)
WEBSITE_GROUP_DETAIL_FIELDS = WEBSITE_GROUP_FIELDS + ("testLocation",)


def _group_summary(group: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": group.get("id"),
        "name": group.get("name"),
        "fullPath": group.get("fullPath"),
    }


async def list_website_groups(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(ListArgs, arguments)
    return await list_resources(
        context.client.list_website_groups, args, "groups", WEBSITE_GROUP_FIELDS
    )


async def get_website_group(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(GetGroupArgs, arguments)
    group = await context.client.get_website_group(args["groupId"])
    return curate(group, WEBSITE_GROUP_DETAIL_FIELDS)


async def create_website_group(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    async def create(item: Dict[str, Any], index: int) -> Dict[str, Any]:
        return _group_summary(await context.client.create_website_group(item))

    return await run_mutation(
        arguments,
        context,
        item_model=CreateWebsiteGroupItem,
        array_key="groups",
        singular="group",
        operation=create,
    )


async def update_website_group(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    async def update(item: Dict[str, Any], index: int) -> Dict[str, Any]:
        updates = dict(item)
        group_id = updates.pop("groupId")
        return _group_summary(await context.client.update_website_group(group_id, updates))

    return await run_mutation(
        arguments,
        context,
        item_model=UpdateWebsiteGroupItem,
        array_key="groups",
        singular="group",
        operation=update,
    )


async def delete_website_group(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    async def delete(item: Dict[str, Any], index: int) -> Dict[str, Any]:
        await context.client.delete_website_group(item["groupId"], item.get("deleteChildren"))
        return {
            "groupId": item["groupId"],
            "message": f"Website group {item['groupId']} deleted successfully",
        }

    return await run_mutation(
        arguments,
        context,
        item_model=DeleteGroupItem,
        array_key="groups",
        singular="group",
        operation=delete,
        merge_data=True,
    )


WEBSITE_GROUP_TOOLS = [
    Tool(
        name="lm_list_website_groups",
        description="List website groups with optional filtering. Automatically paginates through all results.",
        input_schema=ListArgs.model_json_schema(),
        handler=list_website_groups,
    ),
    Tool(
        name="lm_get_website_group",
        description="Get detailed information about a website group",
        input_schema=GetGroupArgs.model_json_schema(),
        handler=get_website_group,
    ),
    Tool(
        name="lm_create_website_group",
        description="Create new website group(s). Supports both single and batch (\"groups\") operations.",
        input_schema=batch_input_schema(CreateWebsiteGroupItem, "groups"),
        handler=create_website_group,
    ),
    Tool(
        name="lm_update_website_group",
        description="Update existing website group(s). Supports both single and batch operations.",
        input_schema=batch_input_schema(UpdateWebsiteGroupItem, "groups"),
        handler=update_website_group,
    ),
    Tool(
        name="lm_delete_website_group",
        description="Delete website group(s), optionally with their children.",
        input_schema=batch_input_schema(DeleteGroupItem, "groups"),
        handler=delete_website_group,
    ),
]
