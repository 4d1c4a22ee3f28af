"""LogicMonitor REST API client.

Talks to ``https://{account}.logicmonitor.com/santaba/rest`` with API
version 3 and a bearer token. Every response's rate-limit headers are fed
into the shared RateLimiter, and upstream failures are translated into
proxy exceptions (RateLimitedError for HTTP 429).
"""

from typing import Any, Dict, List, Optional

import httpx

from lmproxy.app.core.config import settings
from lmproxy.app.core.logging import get_logger
from lmproxy.app.exceptions import LogicMonitorAPIError, RateLimitedError
from lmproxy.app.providers.base import BaseProvider
from lmproxy.app.services.filters import format_filter
from lmproxy.app.services.rate_limiter import (
    DEFAULT_RATE_LIMIT_KEY,
    RateLimiter,
    parse_rate_limit_headers,
)

logger = get_logger(__name__)

Properties = List[Dict[str, str]]


def _clean_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None}


def _unwrap(body: Any) -> Any:
    """Some endpoints wrap the resource in ``{"data": {...}}``."""
    if isinstance(body, dict) and isinstance(body.get("data"), dict):
        return body["data"]
    return body


def _join_ids(ids: Optional[List[int]]) -> Optional[str]:
    if ids is None:
        return None
    return ",".join(str(i) for i in ids)


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class LogicMonitorClient(BaseProvider):
    """LogicMonitor API client sharing a rate limiter across calls.

    If http_client is provided, it will be used for all requests (connection reuse).
    If not, a new client is created per request.
    """

    def __init__(
        self,
        account: str,
        bearer_token: str,
        rate_limiter: RateLimiter,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        rate_limit_key: str = DEFAULT_RATE_LIMIT_KEY,
    ):
        """Initialize the LogicMonitor client.

        Args:
            account: LogicMonitor account (portal) name
            bearer_token: API bearer token
            rate_limiter: Process-wide rate limiter receiving header observations
            http_client: Optional shared HTTP client
            timeout: Request timeout in seconds (defaults to settings)
            rate_limit_key: Operation class observations are recorded under
        """
        super().__init__(
            settings.lm_base_url(account),
            bearer_token,
            http_client,
            timeout if timeout is not None else settings.lm_request_timeout,
        )
        self.account = account
        self.rate_limiter = rate_limiter
        self.rate_limit_key = rate_limit_key
        self.headers["X-Version"] = settings.lm_api_version

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one request to LogicMonitor.

        Raises:
            RateLimitedError: If LogicMonitor answers 429
            LogicMonitorAPIError: For any other HTTP or transport failure
        """
        url = self._get_endpoint_url(endpoint)

        async with self._client_context() as client:
            try:
                resp = await client.request(
                    method,
                    url,
                    headers=self.headers,
                    params=_clean_params(params),
                    json=json,
                    timeout=self.timeout,
                )
            except httpx.RequestError as e:
                logger.error(
                    f"Network error calling LogicMonitor: {e}",
                    extra={"account": self.account, "path": endpoint, "method": method},
                )
                raise LogicMonitorAPIError(f"Network error: {e}", path=endpoint) from e

        state = parse_rate_limit_headers(resp.headers)
        self.rate_limiter.record_observation(self.rate_limit_key, state)

        if resp.status_code == 429:
            logger.warning(
                "LogicMonitor rate limit hit",
                extra={"account": self.account, "path": endpoint, "status_code": 429},
            )
            raise RateLimitedError(
                rate_limit=state,
                retry_after=_parse_retry_after(resp.headers.get("Retry-After")),
                path=endpoint,
            )

        if resp.is_error:
            message = self._error_message(resp)
            logger.error(
                f"LogicMonitor API error: {message}",
                extra={
                    "account": self.account,
                    "path": endpoint,
                    "method": method,
                    "status_code": resp.status_code,
                },
            )
            raise LogicMonitorAPIError(
                f"LogicMonitor API error: {message} ({resp.status_code})",
                status=resp.status_code,
                path=endpoint,
            )

        if not resp.content:
            return None
        return resp.json()

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            body = resp.json()
        except ValueError:
            return "Unknown error"
        if isinstance(body, dict):
            return body.get("errmsg") or body.get("errorMessage") or "Unknown error"
        return "Unknown error"

    async def _list(self, endpoint: str, filter: Optional[str] = None, **params: Any) -> Dict[str, Any]:
        formatted = format_filter(filter) if filter else None
        logger.debug(
            f"List request {endpoint}",
            extra={"original_filter": filter, "formatted_filter": formatted},
        )
        body = await self.request("GET", endpoint, params={"filter": formatted, **params})
        return _unwrap(body) or {"total": 0, "items": []}

    # Device Management

    async def list_devices(
        self,
        filter: Optional[str] = None,
        size: Optional[int] = None,
        offset: Optional[int] = None,
        fields: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._list("/device/devices", filter, size=size, offset=offset, fields=fields)

    async def get_device(self, device_id: int) -> Dict[str, Any]:
        return _unwrap(await self.request("GET", f"/device/devices/{device_id}"))

    async def create_device(
        self,
        display_name: str,
        name: str,
        host_group_ids: List[int],
        preferred_collector_id: int,
        disable_alerting: bool = False,
        custom_properties: Optional[Properties] = None,
    ) -> Dict[str, Any]:
        payload = {
            "name": name,
            "displayName": display_name,
            "hostGroupIds": _join_ids(host_group_ids),
            "preferredCollectorId": preferred_collector_id,
            "disableAlerting": disable_alerting,
            "customProperties": custom_properties or [],
        }
        logger.debug("Creating device", extra={"payload": payload})
        created = _unwrap(await self.request("POST", "/device/devices", json=payload))
        logger.debug(f"Device created: {created.get('id') if created else None}")
        return created

    async def update_device(self, device_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        payload = dict(updates)
        if "hostGroupIds" in payload:
            payload["hostGroupIds"] = _join_ids(payload["hostGroupIds"])
        return _unwrap(await self.request("PATCH", f"/device/devices/{device_id}", json=payload))

    async def delete_device(self, device_id: int) -> None:
        await self.request("DELETE", f"/device/devices/{device_id}")

    # Device Group Management

    async def list_device_groups(
        self,
        filter: Optional[str] = None,
        size: Optional[int] = None,
        offset: Optional[int] = None,
        fields: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._list("/device/groups", filter, size=size, offset=offset, fields=fields)

    async def get_device_group(self, group_id: int) -> Dict[str, Any]:
        return _unwrap(await self.request("GET", f"/device/groups/{group_id}"))

    async def create_device_group(self, group: Dict[str, Any]) -> Dict[str, Any]:
        return _unwrap(await self.request("POST", "/device/groups", json=group))

    async def update_device_group(self, group_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        return _unwrap(await self.request("PATCH", f"/device/groups/{group_id}", json=updates))

    async def delete_device_group(self, group_id: int, delete_children: Optional[bool] = None) -> None:
        await self.request(
            "DELETE", f"/device/groups/{group_id}", params={"deleteChildren": delete_children}
        )

    # Collector Management

    async def list_collectors(
        self,
        filter: Optional[str] = None,
        size: Optional[int] = None,
        offset: Optional[int] = None,
        fields: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._list(
            "/setting/collector/collectors", filter, size=size, offset=offset, fields=fields
        )

    # Website Management

    async def list_websites(
        self,
        filter: Optional[str] = None,
        size: Optional[int] = None,
        offset: Optional[int] = None,
        fields: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._list("/website/websites", filter, size=size, offset=offset, fields=fields)

    async def get_website(self, website_id: int) -> Dict[str, Any]:
        return _unwrap(await self.request("GET", f"/website/websites/{website_id}"))

    async def create_website(self, website: Dict[str, Any]) -> Dict[str, Any]:
        return _unwrap(await self.request("POST", "/website/websites", json=website))

    async def update_website(self, website_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        return _unwrap(await self.request("PATCH", f"/website/websites/{website_id}", json=updates))

    async def delete_website(self, website_id: int) -> None:
        await self.request("DELETE", f"/website/websites/{website_id}")

    # Website Group Management

    async def list_website_groups(
        self,
        filter: Optional[str] = None,
        size: Optional[int] = None,
        offset: Optional[int] = None,
        fields: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._list("/website/groups", filter, size=size, offset=offset, fields=fields)

    async def get_website_group(self, group_id: int) -> Dict[str, Any]:
        return _unwrap(await self.request("GET", f"/website/groups/{group_id}"))

    async def create_website_group(self, group: Dict[str, Any]) -> Dict[str, Any]:
        return _unwrap(await self.request("POST", "/website/groups", json=group))

    async def update_website_group(self, group_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        return _unwrap(await self.request("PATCH", f"/website/groups/{group_id}", json=updates))

    async def delete_website_group(self, group_id: int, delete_children: Optional[bool] = None) -> None:
        await self.request(
            "DELETE", f"/website/groups/{group_id}", params={"deleteChildren": delete_children}
        )

    # Alert Management

    async def list_alerts(
        self,
        filter: Optional[str] = None,
        size: Optional[int] = None,
        offset: Optional[int] = None,
        fields: Optional[str] = None,
        sort: Optional[str] = None,
        need_message: Optional[bool] = None,
        custom_columns: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._list(
            "/alert/alerts",
            filter,
            size=size,
            offset=offset,
            fields=fields,
            sort=sort,
            needMessage=need_message,
            customColumns=custom_columns,
        )

    async def get_alert(self, alert_id: str) -> Dict[str, Any]:
        return _unwrap(await self.request("GET", f"/alert/alerts/{alert_id}"))

    async def ack_alert(self, alert_id: str, ack_comment: str) -> None:
        await self.request("POST", f"/alert/alerts/{alert_id}/ack", json={"ackComment": ack_comment})

    async def add_alert_note(self, alert_id: str, ack_comment: str) -> None:
        await self.request("POST", f"/alert/alerts/{alert_id}/note", json={"ackComment": ack_comment})

    async def escalate_alert(self, alert_id: str) -> None:
        await self.request("POST", f"/alert/alerts/{alert_id}/escalate")
