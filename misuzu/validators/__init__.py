# misuzu 灰度迁移工具 - 校验模块
"""配置校验"""

from .validators import (
    FieldViolation,
    validate_config,
    ensure_valid,
    REQUIRED,
    OUT_OF_RANGE,
    INVALID_CHOICE,
)

__all__ = [
    "FieldViolation",
    "validate_config",
    "ensure_valid",
    "REQUIRED",
    "OUT_OF_RANGE",
    "INVALID_CHOICE",
]
