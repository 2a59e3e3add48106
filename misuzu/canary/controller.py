# misuzu 灰度迁移工具 - 单步灰度控制器
"""一次调用推进一步流量迁移"""

import asyncio
import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional
import structlog

from misuzu.exceptions import (
    AlreadyComplete,
    ApplyFailed,
    MigrationCancelled,
    MisuzuError,
    PlatformError,
    SnapshotUnavailable,
    SourceMismatch,
)
from misuzu.models import MigrationConfig, StepPlan, TrafficSnapshot
from misuzu.platform.base import TrafficPlatform
from misuzu.validators import ensure_valid
from .step import plan_step
from .ticker import ProgressTicker
from .traffic import ensure_destination_present, resolve_source

logger = structlog.get_logger()


class MigrationState(str, Enum):
    """控制器状态"""
    PENDING = "pending"
    VALIDATING = "validating"
    FETCHING = "fetching"
    WAITING = "waiting"
    RESOLVING = "resolving"
    CHECKING = "checking"
    COMPUTING = "computing"
    APPLYING = "applying"
    DONE = "done"
    ERROR = "error"


class StepOutcome(str, Enum):
    """单步结果"""
    APPLIED = "applied"
    DRY_RUN = "dry_run"
    ALREADY_AT_TARGET = "already_at_target"
    ALREADY_COMPLETE = "already_complete"
    FAILED = "failed"


@dataclass
class StepResult:
    """单步运行结果"""
    state: MigrationState
    outcome: StepOutcome
    message: str = ""
    snapshot: Optional[TrafficSnapshot] = None
    source_version: Optional[str] = None
    plan: Optional[StepPlan] = None
    error: Optional[MisuzuError] = None
    history: List[MigrationState] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.outcome != StepOutcome.FAILED

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "outcome": self.outcome.value,
            "message": self.message,
            "source_version": self.source_version,
            "plan": self.plan.to_dict() if self.plan else None,
            "error": self.error.to_dict() if self.error else None,
            "history": [s.value for s in self.history],
        }


class CanaryController:
    """
    单步灰度控制器

    状态顺序：validating -> fetching -> waiting -> resolving -> checking
    -> computing -> applying -> done，任一状态出错进入 error。
    每次运行只走一遍，不重试也不循环；多步迁移由外部调度重复调用。
    """

    def __init__(
        self,
        config: MigrationConfig,
        platform: TrafficPlatform,
        waiter: Optional[Callable[[float], Awaitable[None]]] = None,
        cancel_event: Optional[asyncio.Event] = None
    ):
        self.config = config
        self.platform = platform
        self.waiter = waiter or ProgressTicker()
        self.cancel_event = cancel_event

        self.state = MigrationState.PENDING
        self.history: List[MigrationState] = []
        self.snapshot: Optional[TrafficSnapshot] = None
        self.source_version: Optional[str] = None
        self.plan: Optional[StepPlan] = None

        self._on_transition: List[Callable] = []
        self.logger = logger.bind(
            project=config.project,
            service=config.service,
            destination=config.destination_version
        )

    def on_transition(self, callback: Callable):
        """注册状态变更回调 callback(state, controller)"""
        self._on_transition.append(callback)

    async def run(self) -> StepResult:
        """执行一步迁移"""
        try:
            return await self._run()
        except MisuzuError as e:
            return await self._fail(e)

    async def _run(self) -> StepResult:
        config = self.config

        await self._enter(MigrationState.VALIDATING)
        ensure_valid(config)

        await self._enter(MigrationState.FETCHING)
        try:
            self.snapshot = await self.platform.get_traffic_snapshot(config.project, config.service)
        except PlatformError as e:
            raise SnapshotUnavailable(str(e), detail=e.to_dict()) from e
        self.logger.info("traffic snapshot retrieved", allocations=self.snapshot.as_pairs())

        await self._enter(MigrationState.WAITING)
        await self.waiter(config.interval)
        self._check_cancelled()

        await self._enter(MigrationState.RESOLVING)
        destination = config.destination_version
        ensure_destination_present(self.snapshot, destination)
        try:
            self.source_version = resolve_source(self.snapshot, destination)
        except AlreadyComplete as e:
            return await self._finish(StepOutcome.ALREADY_COMPLETE, e.message)

        if config.source_version and config.source_version != self.source_version:
            raise SourceMismatch(config.source_version, self.source_version)

        await self._enter(MigrationState.CHECKING)
        current = self.snapshot.percentage_of(destination)
        if current is None:
            current = 0.0
        if current >= config.target_rate:
            return await self._finish(
                StepOutcome.ALREADY_AT_TARGET,
                f"destination version '{destination}' has already reached the target rate "
                f"of {config.target_rate}%, no action taken"
            )

        await self._enter(MigrationState.COMPUTING)
        self.plan = plan_step(
            self.source_version,
            destination,
            current,
            config.step_rate,
            config.target_rate
        )
        self.logger.info("next traffic split computed", **self.plan.to_dict())

        await self._enter(MigrationState.APPLYING)
        if config.dry_run:
            return await self._finish(
                StepOutcome.DRY_RUN,
                f"dry run: would set {self.plan.source_version}={self.plan.source_percentage:.2f}%, "
                f"{self.plan.destination_version}={self.plan.destination_percentage:.2f}%"
            )

        self._check_cancelled()
        try:
            await self.platform.apply_traffic_split(
                config.project,
                config.service,
                self.plan.allocations,
                config.shard_by
            )
        except PlatformError as e:
            raise ApplyFailed(str(e), detail=e.to_dict()) from e

        return await self._finish(
            StepOutcome.APPLIED,
            f"traffic updated: {self.plan.source_version}={self.plan.source_percentage:.2f}%, "
            f"{self.plan.destination_version}={self.plan.destination_percentage:.2f}%"
        )

    def _check_cancelled(self):
        """只在状态边界检查取消"""
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise MigrationCancelled(f"migration step cancelled before {self._next_boundary()}")

    def _next_boundary(self) -> str:
        if self.state == MigrationState.WAITING:
            return "resolving"
        return "applying traffic split"

    async def _enter(self, state: MigrationState):
        """进入新状态"""
        self.state = state
        self.history.append(state)
        self.logger.debug("state transition", state=state.value)
        for callback in self._on_transition:
            await self._call_callback(callback, state, self)

    async def _finish(self, outcome: StepOutcome, message: str) -> StepResult:
        await self._enter(MigrationState.DONE)
        self.logger.info("migration step finished", outcome=outcome.value, message=message)
        return self._result(outcome, message)

    async def _fail(self, error: MisuzuError) -> StepResult:
        failed_in = self.state
        await self._enter(MigrationState.ERROR)
        self.logger.error(
            "migration step failed",
            failed_state=failed_in.value,
            code=error.code,
            error=error.message
        )
        return self._result(StepOutcome.FAILED, error.message, error)

    def _result(
        self,
        outcome: StepOutcome,
        message: str,
        error: Optional[MisuzuError] = None
    ) -> StepResult:
        return StepResult(
            state=self.state,
            outcome=outcome,
            message=message,
            snapshot=self.snapshot,
            source_version=self.source_version,
            plan=self.plan,
            error=error,
            history=list(self.history),
        )

    async def _call_callback(self, callback: Callable, *args):
        """调用回调"""
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error("transition callback failed", error=str(e), exc_info=True)
