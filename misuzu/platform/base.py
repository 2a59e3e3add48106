# misuzu 灰度迁移工具 - 平台接口
"""控制器依赖的流量平台抽象"""

from abc import ABC, abstractmethod
from typing import Dict, Mapping

import structlog

from misuzu.exceptions import MisuzuError
from misuzu.models import ServiceVersions, TrafficSnapshot, VersionInfo, DEFAULT_SHARD_BY

logger = structlog.get_logger()


class TrafficPlatform(ABC):
    """流量平台：读取快照、提交切分"""

    @abstractmethod
    async def get_traffic_snapshot(self, project: str, service: str) -> TrafficSnapshot:
        """
        读取服务当前流量分配

        Raises:
            PlatformNotFound / PlatformPermissionDenied / PlatformUnavailable
        """

    @abstractmethod
    async def apply_traffic_split(
        self,
        project: str,
        service: str,
        allocations: Mapping[str, float],
        shard_by: str = DEFAULT_SHARD_BY
    ) -> None:
        """
        提交流量切分（百分比），等待平台操作完成后返回

        Raises:
            PlatformInvalidArgument / PlatformUnavailable / PlatformTimeout
        """

    async def list_service_versions(self, project: str, service: str) -> ServiceVersions:
        """列出全部版本（默认只能给出有流量的版本）"""
        snapshot = await self.get_traffic_snapshot(project, service)
        return versions_from_snapshot(snapshot)

    async def get_traffic_map(self, project: str, service: str) -> Dict[str, float]:
        """版本 -> 流量百分比；读取失败只记警告，返回空表"""
        try:
            snapshot = await self.get_traffic_snapshot(project, service)
        except MisuzuError as e:
            logger.warning("could not retrieve traffic information", error=str(e))
            return {}
        return {a.version: a.percentage for a in snapshot.allocations}

    async def close(self):
        """释放连接"""


def versions_from_snapshot(snapshot: TrafficSnapshot) -> ServiceVersions:
    return ServiceVersions(
        service_name=snapshot.service_name,
        versions=[
            VersionInfo(
                version_id=a.version,
                has_traffic=True,
                traffic_percent=a.percentage,
            )
            for a in snapshot.allocations
        ]
    )
