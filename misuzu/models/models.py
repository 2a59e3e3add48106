"""
misuzu 灰度迁移工具 - 数据模型
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

DEFAULT_INTERVAL = 300
DEFAULT_TARGET_RATE = 100
DEFAULT_STEP_RATE = 10
MIN_STEP_RATE = 1
MAX_STEP_RATE = 100
MIN_TARGET_RATE = 0
MAX_TARGET_RATE = 100

# 流量切分粘性策略（App Engine TrafficSplit.ShardBy）
SHARD_BY_CHOICES = ("UNSPECIFIED", "COOKIE", "IP", "RANDOM")
DEFAULT_SHARD_BY = "UNSPECIFIED"


@dataclass(frozen=True)
class MigrationConfig:
    """迁移配置，构造后不可变"""
    project: str
    service: str
    destination_version: str
    interval: int = DEFAULT_INTERVAL
    target_rate: int = DEFAULT_TARGET_RATE
    step_rate: int = DEFAULT_STEP_RATE
    dry_run: bool = False
    # 显式源版本，仅用于与自动解析结果交叉校验
    source_version: Optional[str] = None
    shard_by: str = DEFAULT_SHARD_BY

    @classmethod
    def from_args(cls, args: Any, settings: Any = None) -> "MigrationConfig":
        """由命令行参数构造，未指定的项取 settings 默认值"""
        def pick(name: str, setting: str, fallback: Any) -> Any:
            value = getattr(args, name, None)
            if value is not None:
                return value
            if settings is not None:
                return getattr(settings, setting)
            return fallback

        return cls(
            project=getattr(args, "project", None) or "",
            service=getattr(args, "service", None) or "",
            destination_version=getattr(args, "destination_version", None) or "",
            interval=pick("interval", "INTERVAL", DEFAULT_INTERVAL),
            target_rate=pick("target_rate", "TARGET_RATE", DEFAULT_TARGET_RATE),
            step_rate=pick("step_rate", "STEP_RATE", DEFAULT_STEP_RATE),
            dry_run=bool(getattr(args, "dry_run", False)),
            source_version=getattr(args, "source_version", None) or None,
            shard_by=str(pick("shard_by", "SHARD_BY", DEFAULT_SHARD_BY)).upper(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": self.project,
            "service": self.service,
            "destination_version": self.destination_version,
            "source_version": self.source_version,
            "interval": self.interval,
            "target_rate": self.target_rate,
            "step_rate": self.step_rate,
            "dry_run": self.dry_run,
            "shard_by": self.shard_by,
        }


@dataclass(frozen=True)
class TrafficAllocation:
    """单个版本的流量占比（百分比）"""
    version: str
    percentage: float


@dataclass(frozen=True)
class TrafficSnapshot:
    """服务当前流量分配的只读快照"""
    service_name: str
    allocations: Tuple[TrafficAllocation, ...] = ()

    def __post_init__(self):
        # 允许传入 list，统一转为 tuple
        object.__setattr__(self, "allocations", tuple(self.allocations))
        seen = set()
        for allocation in self.allocations:
            if allocation.version in seen:
                raise ValueError(f"duplicate version in traffic snapshot: {allocation.version}")
            seen.add(allocation.version)

    @classmethod
    def from_mapping(cls, service_name: str, allocations: Mapping[str, float]) -> "TrafficSnapshot":
        return cls(
            service_name=service_name,
            allocations=tuple(
                TrafficAllocation(version, float(percentage))
                for version, percentage in allocations.items()
            )
        )

    def __len__(self) -> int:
        return len(self.allocations)

    def __iter__(self):
        return iter(self.allocations)

    @property
    def versions(self) -> List[str]:
        return [a.version for a in self.allocations]

    def contains(self, version: str) -> bool:
        return any(a.version == version for a in self.allocations)

    def percentage_of(self, version: str) -> Optional[float]:
        """返回版本的流量百分比，不存在时返回 None"""
        for allocation in self.allocations:
            if allocation.version == version:
                return allocation.percentage
        return None

    def as_pairs(self) -> List[Tuple[str, float]]:
        return [(a.version, a.percentage) for a in self.allocations]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service_name": self.service_name,
            "allocations": [
                {"version": a.version, "percentage": a.percentage}
                for a in self.allocations
            ],
        }


@dataclass(frozen=True)
class StepPlan:
    """单步迁移计划，两个百分比之和恒为 100.0"""
    source_version: str
    destination_version: str
    source_percentage: float
    destination_percentage: float

    @property
    def total(self) -> float:
        return self.source_percentage + self.destination_percentage

    @property
    def allocations(self) -> Dict[str, float]:
        return {
            self.source_version: self.source_percentage,
            self.destination_version: self.destination_percentage,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_version": self.source_version,
            "destination_version": self.destination_version,
            "source_percentage": self.source_percentage,
            "destination_percentage": self.destination_percentage,
        }


@dataclass
class VersionInfo:
    """服务的单个部署版本"""
    version_id: str
    create_time: Optional[datetime] = None
    serving_status: str = "SERVING_STATUS_UNSPECIFIED"
    has_traffic: bool = False
    traffic_percent: float = 0.0


@dataclass
class ServiceVersions:
    """服务的全部版本"""
    service_name: str
    versions: List[VersionInfo] = field(default_factory=list)

    def __iter__(self) -> Iterable[VersionInfo]:
        return iter(self.versions)
