# misuzu 灰度迁移工具 - 步进计算
"""计算下一步的流量切分"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

from misuzu.models import StepPlan

# 平台切分精度：两位小数
PERCENT_PRECISION = Decimal("0.01")


def _to_decimal(value: float) -> Decimal:
    return Decimal(str(value)).quantize(PERCENT_PRECISION, rounding=ROUND_HALF_UP)


def next_step(
    current_destination_pct: float,
    step_rate: int,
    target_rate: int
) -> Tuple[float, float]:
    """
    计算下一步切分

    目标版本增加 step_rate，但不超过 target_rate。
    当前比例先按平台精度量化到两位小数再相加，
    例如 next_step(33.333, 10, 100) 返回 (43.33, 56.67)。

    Returns:
        (下一步目标版本百分比, 下一步源版本百分比)
    """
    destination = min(_to_decimal(current_destination_pct) + Decimal(step_rate), Decimal(target_rate))
    next_destination = float(destination.quantize(PERCENT_PRECISION, rounding=ROUND_HALF_UP))
    # 源版本取 100.0 的浮点补数，两者相加恰为 100.0
    next_source = 100.0 - next_destination
    return next_destination, next_source


def plan_step(
    source_version: str,
    destination_version: str,
    current_destination_pct: float,
    step_rate: int,
    target_rate: int
) -> StepPlan:
    """生成单步迁移计划"""
    destination_pct, source_pct = next_step(current_destination_pct, step_rate, target_rate)
    return StepPlan(
        source_version=source_version,
        destination_version=destination_version,
        source_percentage=source_pct,
        destination_percentage=destination_pct,
    )
