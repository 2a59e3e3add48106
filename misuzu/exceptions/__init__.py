# misuzu 灰度迁移工具 - 异常模块
"""自定义异常类"""

from .exceptions import (
    MisuzuError,
    ConfigInvalid,
    SnapshotUnavailable,
    NoTrafficData,
    DestinationNotFound,
    AlreadyComplete,
    AbnormalTrafficState,
    SourceMismatch,
    ApplyFailed,
    MigrationCancelled,
    PlatformError,
    PlatformNotFound,
    PlatformPermissionDenied,
    PlatformUnavailable,
    PlatformInvalidArgument,
    PlatformTimeout,
)

__all__ = [
    # 迁移异常
    "MisuzuError",
    "ConfigInvalid",
    "SnapshotUnavailable",
    "NoTrafficData",
    "DestinationNotFound",
    "AlreadyComplete",
    "AbnormalTrafficState",
    "SourceMismatch",
    "ApplyFailed",
    "MigrationCancelled",
    # 平台异常
    "PlatformError",
    "PlatformNotFound",
    "PlatformPermissionDenied",
    "PlatformUnavailable",
    "PlatformInvalidArgument",
    "PlatformTimeout",
]
