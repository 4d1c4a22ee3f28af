"""Input models for LogicMonitor tools.

Field names follow the LogicMonitor API (camelCase) so validated items can
be forwarded without renaming.
"""

from typing import Any, Dict, List, Literal, Optional, Type, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, create_model

from lmproxy.app.exceptions import ToolValidationError


class ToolArguments(BaseModel):
    """Base for every tool input; unknown keys are rejected."""
    model_config = ConfigDict(extra="forbid")


class NameValue(BaseModel):
    name: str
    value: str


class BatchOptionsInput(ToolArguments):
    maxConcurrent: Optional[int] = Field(
        default=None, ge=1, description="Maximum concurrent requests (default: 5, capped at 50)"
    )
    continueOnError: Optional[bool] = Field(
        default=None, description="Continue processing if some items fail (default: true)"
    )


# List / get


class ListArgs(ToolArguments):
    filter: Optional[str] = Field(
        default=None,
        description=(
            'LogicMonitor query syntax, e.g. "name:*prod*". Wildcards and special '
            "characters are quoted automatically. Operators: >: <: > < !: : ~ !~"
        ),
    )
    size: Optional[int] = Field(default=None, ge=1, le=1000, description="Results per page (max: 1000)")
    offset: Optional[int] = Field(default=None, ge=0, description="Pagination offset")
    fields: Optional[str] = Field(
        default=None,
        description='Comma-separated fields to return. Omit for curated fields, "*" for all fields.',
    )


class ListDeviceGroupsArgs(ListArgs):
    parentId: Optional[int] = Field(default=None, description="Only groups directly under this parent")


class ListAlertsArgs(ListArgs):
    sort: Optional[str] = Field(default=None, description='Sort property with + or -, e.g. "-startEpoch"')
    needMessage: Optional[bool] = Field(default=None, description="Include detailed alert messages")
    customColumns: Optional[str] = Field(default=None, description="Property or token values to include")


class GetDeviceArgs(ToolArguments):
    deviceId: int


class GetGroupArgs(ToolArguments):
    groupId: int


class GetWebsiteArgs(ToolArguments):
    websiteId: int


class AlertArgs(ToolArguments):
    alertId: str = Field(..., min_length=1)


class AlertCommentArgs(AlertArgs):
    ackComment: str = Field(..., min_length=1)


# Devices


class CreateDeviceItem(ToolArguments):
    displayName: str = Field(..., min_length=1)
    hostName: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("hostName", "name"),
        description="Hostname or IP address",
    )
    hostGroupIds: List[int] = Field(..., min_length=1)
    preferredCollectorId: int
    disableAlerting: Optional[bool] = None
    properties: Optional[List[NameValue]] = None


class UpdateDeviceItem(ToolArguments):
    deviceId: int
    displayName: Optional[str] = None
    hostGroupIds: Optional[List[int]] = None
    disableAlerting: Optional[bool] = None
    customProperties: Optional[List[NameValue]] = None


class DeleteDeviceItem(ToolArguments):
    deviceId: int


# Device groups


class CreateDeviceGroupItem(ToolArguments):
    name: str = Field(..., min_length=1)
    parentId: int
    description: Optional[str] = None
    appliesTo: Optional[str] = None
    properties: Optional[List[NameValue]] = None


class UpdateDeviceGroupItem(ToolArguments):
    groupId: int
    name: Optional[str] = None
    description: Optional[str] = None
    appliesTo: Optional[str] = None
    customProperties: Optional[List[NameValue]] = None


class DeleteGroupItem(ToolArguments):
    groupId: int
    deleteChildren: Optional[bool] = None


# Websites


class WebsiteStep(BaseModel):
    model_config = ConfigDict(extra="allow")

    url: str
    HTTPMethod: Optional[str] = None
    statusCode: Optional[str] = None
    description: Optional[str] = None


class CreateWebsiteItem(ToolArguments):
    name: str = Field(..., min_length=1)
    domain: str = Field(..., min_length=1)
    type: Literal["webcheck", "pingcheck"]
    groupId: int = Field(..., description="Website group ID (1 = root)")
    description: Optional[str] = None
    disableAlerting: Optional[bool] = None
    stopMonitoring: Optional[bool] = None
    useDefaultAlertSetting: Optional[bool] = None
    useDefaultLocationSetting: Optional[bool] = None
    pollingInterval: Optional[int] = Field(default=None, ge=1, description="Polling interval in minutes")
    properties: Optional[List[NameValue]] = None
    steps: Optional[List[WebsiteStep]] = None


class UpdateWebsiteItem(ToolArguments):
    websiteId: int
    name: Optional[str] = None
    description: Optional[str] = None
    disableAlerting: Optional[bool] = None
    stopMonitoring: Optional[bool] = None
    useDefaultAlertSetting: Optional[bool] = None
    useDefaultLocationSetting: Optional[bool] = None
    pollingInterval: Optional[int] = Field(default=None, ge=1)
    properties: Optional[List[NameValue]] = None


class DeleteWebsiteItem(ToolArguments):
    websiteId: int


# Website groups


class CreateWebsiteGroupItem(ToolArguments):
    name: str = Field(..., min_length=1)
    parentId: int = Field(..., description="Parent group ID (1 = root)")
    description: Optional[str] = None
    disableAlerting: Optional[bool] = None
    stopMonitoring: Optional[bool] = None
    properties: Optional[List[NameValue]] = None


class UpdateWebsiteGroupItem(ToolArguments):
    groupId: int
    name: Optional[str] = None
    description: Optional[str] = None
    disableAlerting: Optional[bool] = None
    stopMonitoring: Optional[bool] = None
    properties: Optional[List[NameValue]] = None


def _format_errors(error: ValidationError, location: Optional[str]) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err["loc"])
        if location:
            loc = f"{location}.{loc}" if loc else location
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def validate_arguments(
    model: Type[ToolArguments],
    data: Any,
    location: Optional[str] = None,
) -> Dict[str, Any]:
    """Validate raw arguments against ``model``.

    Returns:
        The validated arguments with unset optional fields dropped

    Raises:
        ToolValidationError: If validation fails
    """
    try:
        validated = model.model_validate(data)
    except ValidationError as e:
        raise ToolValidationError(f"Validation error: {_format_errors(e, location)}") from e
    return validated.model_dump(exclude_none=True)


def batch_input_schema(item_model: Type[ToolArguments], array_key: str) -> Dict[str, Any]:
    """JSON schema accepting either one item or ``{array_key: [...], batchOptions}``."""
    batch_model = create_model(
        f"{item_model.__name__}Batch",
        __base__=ToolArguments,
        **{
            array_key: (List[item_model], Field(..., min_length=1)),
            "batchOptions": (Optional[BatchOptionsInput], None),
        },
    )
    schema = TypeAdapter(Union[item_model, batch_model]).json_schema()
    schema["type"] = "object"
    return schema
