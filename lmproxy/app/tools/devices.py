"""Device tools."""

from typing import Any, Dict

from lmproxy.app.tools.base import Tool, ToolContext, curate, list_resources, run_mutation
from lmproxy.app.tools.schemas import (
    CreateDeviceItem,
    DeleteDeviceItem,
    GetDeviceArgs,
    ListArgs,
    UpdateDeviceItem,
    batch_input_schema,
    validate_arguments,
)

DEVICE_FIELDS = (
    "id",
    "displayName",
    "name",
    "hostGroupIds",
    "preferredCollectorId",
    "customProperties",
    "hostStatus",
    "alertStatus",
    "alertStatusPriority",
    "disableAlerting",
    "enableNetflow",
    "createdOn",
    "updatedOn",
    "sdtStatus",
    "alertDisableStatus",
)
DEVICE_TIMESTAMPS = ("createdOn", "updatedOn")


async def list_devices(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(ListArgs, arguments)
    return await list_resources(
        context.client.list_devices, args, "devices", DEVICE_FIELDS, DEVICE_TIMESTAMPS
    )


async def get_device(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    args = validate_arguments(GetDeviceArgs, arguments)
    device = await context.client.get_device(args["deviceId"])
    return curate(device, DEVICE_FIELDS, DEVICE_TIMESTAMPS)


async def create_device(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    async def create(item: Dict[str, Any], index: int) -> Dict[str, Any]:
        created = await context.client.create_device(
            display_name=item["displayName"],
            name=item["hostName"],
            host_group_ids=item["hostGroupIds"],
            preferred_collector_id=item["preferredCollectorId"],
            disable_alerting=item.get("disableAlerting", False),
            custom_properties=item.get("properties"),
        )
        return {
            "id": created.get("id"),
            "displayName": created.get("displayName"),
            "name": created.get("name"),
            "message": f"Device '{created.get('displayName')}' created successfully",
        }

    return await run_mutation(
        arguments,
        context,
        item_model=CreateDeviceItem,
        array_key="devices",
        singular="device",
        operation=create,
    )


async def update_device(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    async def update(item: Dict[str, Any], index: int) -> Dict[str, Any]:
        updates = dict(item)
        device_id = updates.pop("deviceId")
        updated = await context.client.update_device(device_id, updates)
        return {
            "id": updated.get("id"),
            "displayName": updated.get("displayName"),
            "message": f"Device '{updated.get('displayName')}' updated successfully",
        }

    return await run_mutation(
        arguments,
        context,
        item_model=UpdateDeviceItem,
        array_key="devices",
        singular="device",
        operation=update,
    )


async def delete_device(arguments: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
    async def delete(item: Dict[str, Any], index: int) -> Dict[str, Any]:
        await context.client.delete_device(item["deviceId"])
        return {
            "deviceId": item["deviceId"],
            "message": f"Device {item['deviceId']} deleted successfully",
        }

    return await run_mutation(
        arguments,
        context,
        item_model=DeleteDeviceItem,
        array_key="devices",
        singular="device",
        operation=delete,
        merge_data=True,
    )


DEVICE_TOOLS = [
    Tool(
        name="lm_list_devices",
        description=(
            "List devices with optional filtering. Automatically paginates through "
            "all results if total exceeds requested size."
        ),
        input_schema=ListArgs.model_json_schema(),
        handler=list_devices,
    ),
    Tool(
        name="lm_get_device",
        description="Get detailed information about a specific device",
        input_schema=GetDeviceArgs.model_json_schema(),
        handler=get_device,
    ),
    Tool(
        name="lm_create_device",
        description="Add a new device or multiple devices (pass \"devices\") to monitoring",
        input_schema=batch_input_schema(CreateDeviceItem, "devices"),
        handler=create_device,
    ),
    Tool(
        name="lm_update_device",
        description="Update one or more existing device configurations",
        input_schema=batch_input_schema(UpdateDeviceItem, "devices"),
        handler=update_device,
    ),
    Tool(
        name="lm_delete_device",
        description="Remove one or more devices from monitoring",
        input_schema=batch_input_schema(DeleteDeviceItem, "devices"),
        handler=delete_device,
    ),
]
