# misuzu 灰度迁移工具 - 配置校验
"""迁移配置校验函数"""

from dataclasses import dataclass
from typing import Any, Dict, List

from misuzu.models import (
    MigrationConfig,
    MIN_STEP_RATE,
    MAX_STEP_RATE,
    MIN_TARGET_RATE,
    MAX_TARGET_RATE,
    SHARD_BY_CHOICES,
)
from misuzu.exceptions import ConfigInvalid

REQUIRED = "required"
OUT_OF_RANGE = "out_of_range"
INVALID_CHOICE = "invalid_choice"


@dataclass(frozen=True)
class FieldViolation:
    """字段校验错误"""
    field: str
    code: str
    message: str

    def __str__(self) -> str:
        return f"validation error for {self.field}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "code": self.code, "message": self.message}


def _check_required(value: str, field: str) -> List[FieldViolation]:
    if not value:
        return [FieldViolation(field, REQUIRED, "is required")]
    return []


def _check_range(value: int, field: str, low: int, high: int) -> List[FieldViolation]:
    if value < low or value > high:
        return [FieldViolation(
            field,
            OUT_OF_RANGE,
            f"must be between {low} and {high} (inclusive)"
        )]
    return []


def validate_config(config: MigrationConfig) -> List[FieldViolation]:
    """
    校验迁移配置

    所有检查都会执行，一次返回全部错误。

    Args:
        config: 迁移配置

    Returns:
        字段错误列表，空列表表示有效
    """
    violations: List[FieldViolation] = []

    violations += _check_required(config.project, "project")
    violations += _check_required(config.service, "service")
    violations += _check_required(config.destination_version, "destination-version")
    violations += _check_range(config.step_rate, "step-rate", MIN_STEP_RATE, MAX_STEP_RATE)
    violations += _check_range(config.target_rate, "target-rate", MIN_TARGET_RATE, MAX_TARGET_RATE)

    if config.interval < 0:
        violations.append(FieldViolation("interval", OUT_OF_RANGE, "must be greater than or equal to 0"))

    if config.shard_by not in SHARD_BY_CHOICES:
        violations.append(FieldViolation(
            "shard-by",
            INVALID_CHOICE,
            f"must be one of {', '.join(SHARD_BY_CHOICES)}"
        ))

    return violations


def ensure_valid(config: MigrationConfig) -> MigrationConfig:
    """校验失败时抛出 ConfigInvalid"""
    violations = validate_config(config)
    if violations:
        raise ConfigInvalid(violations)
    return config
