"""Website (synthetic check) tools."""

from typing import Any, Dict

from lmproxy.app.tools.base import Tool, ToolContext, curate, list_resources, run_mutation
from lmproxy.app.tools.schemas import (
    CreateWebsiteItem,
    DeleteWebsiteItem,
    GetWebsiteArgs,
    ListArgs,
    UpdateWebsiteItem,
    batch_input_schema,
    validate_arguments,
)

WEBSITE_FIELDS = (
    "id",
    "name",
    "domain",
    "type",
    "groupId",
    "status",
    "description",
    "disableAlerting",
    "stopMonitoring",
    "overallAlertLevel",
    "pollingInterval",
    "useDefaultAlertSetting",
    "useDefaultLocationSetting",
    "isInternal",
    "lastUpdated",
)
WEBSITE_DETAIL_FIELDS = WEBSITE_FIELDS + (
    "transition",
    "testLocation",
    "checkpoints",
    "steps",
    "properties",
)
WEBSITE_TIMESTAMPS = ("lastUpdated",)


def _website_summary(website: Dict[str, Any], verb: str) -> Dict[str, Any]:
    return {
        "id": website.get("id"),
        "name": website.get("name"),
        "domain": website.get("domain"),
        "message": f"Website '{website.get('name')}' {verb} successfully",
    }


async def list_websites(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(ListArgs, arguments)
    return await list_resources(
        context.client.list_websites, args, "websites", WEBSITE_FIELDS, WEBSITE_TIMESTAMPS
    )


async def get_website(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(GetWebsiteArgs, arguments)
    website = await context.client.get_website(args["websiteId"])
    return curate(website, WEBSITE_DETAIL_FIELDS, WEBSITE_TIMESTAMPS)


async def create_website(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    async def create(item: Dict[str, Any], index: int) -> Dict[str, Any]:
        return _website_summary(await context.client.create_website(item), "created")

    return await run_mutation(
        arguments,
        context,
        item_model=CreateWebsiteItem,
        array_key="websites",
        singular="website",
        operation=create,
    )


async def update_website(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    async def update(item: Dict[str, Any], index: int) -> Dict[str, Any]:
        updates = dict(item)
        website_id = updates.pop("websiteId")
        return _website_summary(await context.client.update_website(website_id, updates), "updated")

    return await run_mutation(
        arguments,
        context,
        item_model=UpdateWebsiteItem,
        array_key="websites",
        singular="website",
        operation=update,
    )


async def delete_website(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    async def delete(item: Dict[str, Any], index: int) -> Dict[str, Any]:
        await context.client.delete_website(item["websiteId"])
        return {
            "websiteId": item["websiteId"],
            "message": f"Website {item['websiteId']} deleted successfully",
        }

    return await run_mutation(
        arguments,
        context,
        item_model=DeleteWebsiteItem,
        array_key="websites",
        singular="website",
        operation=delete,
        merge_data=True,
    )


WEBSITE_TOOLS = [
    Tool(
        name="lm_list_websites",
        description=(
            "List websites with optional filtering. Automatically paginates through "
            "all results if total exceeds requested size."
        ),
        input_schema=ListArgs.model_json_schema(),
        handler=list_websites,
    ),
    Tool(
        name="lm_get_website",
        description="Get detailed information about a website",
        input_schema=GetWebsiteArgs.model_json_schema(),
        handler=get_website,
    ),
    Tool(
        name="lm_create_website",
        description="Create new website(s). Supports both single and batch (\"websites\") operations.",
        input_schema=batch_input_schema(CreateWebsiteItem, "websites"),
        handler=create_website,
    ),
    Tool(
        name="lm_update_website",
        description="Update existing website(s). Supports both single and batch operations.",
        input_schema=batch_input_schema(UpdateWebsiteItem, "websites"),
        handler=update_website,
    ),
    Tool(
        name="lm_delete_website",
        description="Delete website(s). Supports both single and batch operations.",
        input_schema=batch_input_schema(DeleteWebsiteItem, "websites"),
        handler=delete_website,
    ),
]
