# misuzu 灰度迁移工具 - App Engine 客户端
"""App Engine Admin REST API：读取与更新服务流量切分、列出版本"""

import asyncio
import math
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional
import httpx
import structlog

from misuzu.exceptions import (
    PlatformError,
    PlatformInvalidArgument,
    PlatformNotFound,
    PlatformPermissionDenied,
    PlatformTimeout,
    PlatformUnavailable,
)
from misuzu.models import (
    DEFAULT_SHARD_BY,
    SHARD_BY_CHOICES,
    ServiceVersions,
    TrafficAllocation,
    TrafficSnapshot,
    VersionInfo,
)
from .base import TrafficPlatform

logger = structlog.get_logger()

DEFAULT_ENDPOINT = "https://appengine.googleapis.com/v1"
# 平台使用 0.0-1.0 小数，本工具使用 0-100 百分比
PERCENTAGE_MULTIPLIER = 100.0


def convert_to_percentage(allocation: float) -> float:
    return round(allocation * PERCENTAGE_MULTIPLIER, 2)


def convert_to_decimal(percentage: float) -> float:
    return round(percentage / PERCENTAGE_MULTIPLIER, 4)


def build_service_path(project: str, service: str) -> str:
    return f"apps/{project}/services/{service}"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """解析 RFC3339 时间（可能带纳秒）"""
    if not value:
        return None
    text = value.replace("Z", "+00:00")
    if "." in text:
        head, _, rest = text.partition(".")
        digits = ""
        while rest and rest[0].isdigit():
            digits += rest[0]
            rest = rest[1:]
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest}"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.warning("unparseable timestamp", value=value)
        return None


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return f"HTTP {response.status_code}"


def raise_for_status(response: httpx.Response, action: str):
    """将 HTTP 状态映射为平台异常"""
    if response.is_success:
        return

    status = response.status_code
    message = f"{action}: {_error_message(response)}"

    if status == 400:
        raise PlatformInvalidArgument(message, detail={"status": status})
    if status in (401, 403):
        raise PlatformPermissionDenied(message, detail={"status": status})
    if status == 404:
        raise PlatformNotFound(message, detail={"status": status})
    if status in (408, 504):
        raise PlatformTimeout(message, detail={"status": status})
    if status >= 500 or status == 429:
        raise PlatformUnavailable(message, detail={"status": status})
    raise PlatformError(message, detail={"status": status})


class AppEngineClient(TrafficPlatform):
    """App Engine 流量平台实现"""

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        access_token: Optional[str] = None,
        timeout: float = 30.0,
        poll_interval: float = 1.0,
        operation_timeout: float = 600.0,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        self.client = client or httpx.AsyncClient(
            base_url=endpoint,
            timeout=timeout,
            headers=headers
        )
        self.poll_interval = poll_interval
        self.operation_timeout = operation_timeout
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Any) -> "AppEngineClient":
        return cls(
            endpoint=settings.API_ENDPOINT,
            access_token=settings.ACCESS_TOKEN,
            timeout=settings.REQUEST_TIMEOUT,
            poll_interval=settings.OPERATION_POLL_INTERVAL,
            operation_timeout=settings.OPERATION_TIMEOUT,
        )

    async def __aenter__(self) -> "AppEngineClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        await self.client.aclose()

    async def _request(self, method: str, url: str, action: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise PlatformTimeout(f"{action}: request timed out ({e})") from e
        except httpx.TransportError as e:
            raise PlatformUnavailable(f"{action}: {e}") from e

        raise_for_status(response, action)
        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError as e:
            raise PlatformUnavailable(
                f"{action}: response is not valid JSON",
                detail={"status": response.status_code}
            ) from e
        if not isinstance(payload, dict):
            raise PlatformError(f"{action}: unexpected response body", detail={"status": response.status_code})
        return payload

    async def get_traffic_snapshot(self, project: str, service: str) -> TrafficSnapshot:
        """读取服务的流量切分"""
        data = await self._request(
            "GET",
            build_service_path(project, service),
            f"failed to get service '{service}'"
        )

        split = data.get("split")
        if not split:
            raise PlatformNotFound("no traffic split information available")
        allocations = split.get("allocations") if isinstance(split, dict) else None
        if not allocations:
            raise PlatformNotFound("no traffic allocations found")

        try:
            return TrafficSnapshot(
                service_name=service,
                allocations=tuple(
                    TrafficAllocation(version, convert_to_percentage(float(value)))
                    for version, value in allocations.items()
                )
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise PlatformError(f"malformed traffic split for service '{service}': {e}") from e

    async def apply_traffic_split(
        self,
        project: str,
        service: str,
        allocations: Mapping[str, float],
        shard_by: str = DEFAULT_SHARD_BY
    ) -> None:
        """更新流量切分并等待长时操作完成"""
        resolved_shard_by = (shard_by or DEFAULT_SHARD_BY).upper()
        if resolved_shard_by not in SHARD_BY_CHOICES:
            raise PlatformInvalidArgument(f"unsupported shardBy value: {shard_by}")

        body = {
            "split": {
                "allocations": {
                    version: convert_to_decimal(percentage)
                    for version, percentage in allocations.items()
                },
                "shardBy": resolved_shard_by,
            }
        }

        operation = await self._request(
            "PATCH",
            build_service_path(project, service),
            "failed to update service traffic",
            params={"updateMask": "split"},
            json=body
        )
        await self._wait_operation(operation)

        logger.info(
            "traffic allocation updated",
            service=service,
            allocations=dict(allocations),
            shard_by=resolved_shard_by
        )

    async def _wait_operation(self, operation: Dict[str, Any]) -> Dict[str, Any]:
        """轮询长时操作直到完成"""
        max_polls = max(1, math.ceil(self.operation_timeout / self.poll_interval))
        polls = 0

        while not operation.get("done"):
            if polls >= max_polls:
                raise PlatformTimeout(
                    f"failed to wait for traffic update operation: "
                    f"not done after {self.operation_timeout:.0f} seconds",
                    detail={"operation": operation.get("name")}
                )
            name = operation.get("name")
            if not name:
                raise PlatformError("failed to wait for traffic update operation: missing operation name")
            await self._sleep(self.poll_interval)
            polls += 1
            operation = await self._request(
                "GET",
                name,
                "failed to wait for traffic update operation"
            )

        error = operation.get("error")
        if error and not isinstance(error, dict):
            error = {"message": str(error)}
        if error:
            raise PlatformError(
                f"failed to wait for traffic update operation: {error.get('message', 'unknown error')}",
                detail={"operation": operation.get("name"), "status": error.get("code")}
            )
        return operation

    async def list_service_versions(self, project: str, service: str) -> ServiceVersions:
        """列出全部版本（含无流量版本）"""
        traffic_map = await self.get_traffic_map(project, service)
        service_versions = ServiceVersions(service_name=service)

        page_token = None
        while True:
            params = {"pageToken": page_token} if page_token else {}
            data = await self._request(
                "GET",
                f"{build_service_path(project, service)}/versions",
                "failed to list versions",
                params=params
            )
            for version in data.get("versions") or []:
                if not isinstance(version, dict):
                    raise PlatformError(f"malformed version entry for service '{service}': {version!r}")
                version_id = version.get("id", "")
                service_versions.versions.append(VersionInfo(
                    version_id=version_id,
                    create_time=parse_timestamp(version.get("createTime")),
                    serving_status=version.get("servingStatus", "SERVING_STATUS_UNSPECIFIED"),
                    has_traffic=version_id in traffic_map,
                    traffic_percent=traffic_map.get(version_id, 0.0),
                ))
            page_token = data.get("nextPageToken")
            if not page_token:
                break

        return service_versions
