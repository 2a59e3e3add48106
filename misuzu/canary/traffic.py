# misuzu 灰度迁移工具 - 流量快照与源版本解析
"""根据当前流量分配推导迁移源版本"""

from enum import Enum
import structlog

from misuzu.exceptions import (
    AbnormalTrafficState,
    AlreadyComplete,
    DestinationNotFound,
    NoTrafficData,
)
from misuzu.models import TrafficSnapshot

logger = structlog.get_logger()


class TrafficShape(str, Enum):
    """流量分配形态"""
    EMPTY = "empty"         # 无分配
    SINGLE = "single"       # 单版本 100%
    PAIR = "pair"           # 两个版本
    ABNORMAL = "abnormal"   # 三个及以上版本，需人工介入


def classify_snapshot(snapshot: TrafficSnapshot) -> TrafficShape:
    """判断快照的分配形态"""
    count = len(snapshot.allocations)
    if count == 0:
        return TrafficShape.EMPTY
    if count == 1:
        return TrafficShape.SINGLE
    if count == 2:
        return TrafficShape.PAIR
    return TrafficShape.ABNORMAL


def ensure_destination_present(snapshot: TrafficSnapshot, destination: str):
    """目标版本必须出现在当前流量分配中"""
    if not snapshot.contains(destination):
        raise DestinationNotFound(destination)


def resolve_source(snapshot: TrafficSnapshot, destination: str) -> str:
    """
    推导迁移源版本

    只处理两方迁移；出现两个以上带流量的版本说明有人工操作，
    直接报错终止，不做任何猜测。

    Args:
        snapshot: 流量快照
        destination: 目标版本

    Returns:
        源版本

    Raises:
        NoTrafficData: 无流量分配
        AlreadyComplete: 目标版本已占 100%
        DestinationNotFound: 两个版本中不包含目标版本
        AbnormalTrafficState: 三个及以上版本
    """
    shape = classify_snapshot(snapshot)
    allocations = snapshot.allocations

    if shape == TrafficShape.EMPTY:
        raise NoTrafficData()

    if shape == TrafficShape.SINGLE:
        only = allocations[0]
        if only.version == destination:
            raise AlreadyComplete(destination)
        return only.version

    if shape == TrafficShape.PAIR:
        if not snapshot.contains(destination):
            raise DestinationNotFound(destination)
        first, second = allocations
        source = second.version if first.version == destination else first.version
        logger.debug("resolved source version", source=source, destination=destination)
        return source

    logger.error(
        "abnormal traffic state",
        service=snapshot.service_name,
        versions=len(allocations)
    )
    raise AbnormalTrafficState(snapshot.as_pairs())
