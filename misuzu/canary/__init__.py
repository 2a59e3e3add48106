# misuzu 灰度迁移工具 - 灰度模块
"""源版本解析、步进计算、单步控制器"""

from .traffic import (
    TrafficShape,
    classify_snapshot,
    ensure_destination_present,
    resolve_source,
)
from .step import (
    next_step,
    plan_step,
)
from .ticker import (
    ProgressTicker,
    ConsoleProgress,
    TickEvent,
)
from .controller import (
    CanaryController,
    MigrationState,
    StepOutcome,
    StepResult,
)

__all__ = [
    "TrafficShape",
    "classify_snapshot",
    "ensure_destination_present",
    "resolve_source",
    "next_step",
    "plan_step",
    "ProgressTicker",
    "ConsoleProgress",
    "TickEvent",
    "CanaryController",
    "MigrationState",
    "StepOutcome",
    "StepResult",
]
