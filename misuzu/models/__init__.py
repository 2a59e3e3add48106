"""
misuzu 灰度迁移工具 - 数据模型初始化
"""
from misuzu.models.models import (
    MigrationConfig,
    TrafficAllocation, TrafficSnapshot,
    StepPlan,
    VersionInfo, ServiceVersions,
    DEFAULT_INTERVAL, DEFAULT_TARGET_RATE, DEFAULT_STEP_RATE,
    MIN_STEP_RATE, MAX_STEP_RATE,
    MIN_TARGET_RATE, MAX_TARGET_RATE,
    SHARD_BY_CHOICES, DEFAULT_SHARD_BY,
)

__all__ = [
    "MigrationConfig",
    "TrafficAllocation", "TrafficSnapshot",
    "StepPlan",
    "VersionInfo", "ServiceVersions",
    "DEFAULT_INTERVAL", "DEFAULT_TARGET_RATE", "DEFAULT_STEP_RATE",
    "MIN_STEP_RATE", "MAX_STEP_RATE",
    "MIN_TARGET_RATE", "MAX_TARGET_RATE",
    "SHARD_BY_CHOICES", "DEFAULT_SHARD_BY",
]
