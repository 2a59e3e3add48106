# misuzu 灰度迁移工具 - 测试配置
"""共享 fixture 与内存平台"""

import logging
from typing import Dict, List, Mapping, Optional, Tuple

import pytest

from misuzu.core import get_settings
from misuzu.models import MigrationConfig, TrafficSnapshot, DEFAULT_SHARD_BY
from misuzu.platform import TrafficPlatform


class FakePlatform(TrafficPlatform):
    """内存流量平台：返回固定快照并记录 apply 调用"""

    def __init__(
        self,
        allocations: Optional[Mapping[str, float]] = None,
        service: str = "default",
        fetch_error: Optional[Exception] = None,
        apply_error: Optional[Exception] = None
    ):
        self.allocations: Dict[str, float] = dict(allocations or {})
        self.service = service
        self.fetch_error = fetch_error
        self.apply_error = apply_error
        self.fetch_calls: List[Tuple[str, str]] = []
        self.apply_calls: List[Tuple[str, str, Dict[str, float], str]] = []

    async def get_traffic_snapshot(self, project: str, service: str) -> TrafficSnapshot:
        self.fetch_calls.append((project, service))
        if self.fetch_error is not None:
            raise self.fetch_error
        return TrafficSnapshot.from_mapping(service, self.allocations)

    async def apply_traffic_split(
        self,
        project: str,
        service: str,
        allocations: Mapping[str, float],
        shard_by: str = DEFAULT_SHARD_BY
    ) -> None:
        self.apply_calls.append((project, service, dict(allocations), shard_by))
        if self.apply_error is not None:
            raise self.apply_error
        # 模拟平台生效，供下一次调用读取
        self.allocations = {v: p for v, p in allocations.items() if p > 0}


async def no_wait(seconds: float):
    """零耗时等待"""
    return None


@pytest.fixture
def fake_platform():
    return FakePlatform({"v1": 100.0, "v2": 0.0})


@pytest.fixture
def config():
    return MigrationConfig(
        project="my-project",
        service="default",
        destination_version="v2",
        interval=0,
        target_rate=100,
        step_rate=10,
    )


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    """每个测试使用干净的配置"""
    for name in ["MISUZU_INTERVAL", "MISUZU_TARGET_RATE", "MISUZU_STEP_RATE", "MISUZU_SHARD_BY"]:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    # 移除命令行测试安装的日志 handler
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, "_misuzu", False):
            root_logger.removeHandler(handler)
