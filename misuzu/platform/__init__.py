# misuzu 灰度迁移工具 - 平台模块
"""流量平台接口与 App Engine 实现"""

from .base import TrafficPlatform, versions_from_snapshot
from .appengine import (
    AppEngineClient,
    convert_to_decimal,
    convert_to_percentage,
    raise_for_status,
)

__all__ = [
    "TrafficPlatform",
    "versions_from_snapshot",
    "AppEngineClient",
    "convert_to_decimal",
    "convert_to_percentage",
    "raise_for_status",
]
