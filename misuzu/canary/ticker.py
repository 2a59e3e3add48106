# misuzu 灰度迁移工具 - 等待进度
"""步骤间隔等待，按固定节拍通知进度"""

import asyncio
import math
import sys
from dataclasses import dataclass
from typing import Awaitable, Callable, IO, List, Optional

DEFAULT_TICK = 0.1
# 节拍数计算时忽略浮点误差
TICK_EPSILON = 1e-9


@dataclass
class TickEvent:
    """进度节拍"""
    description: str
    ticks_done: int
    ticks_total: int
    elapsed: float
    total_seconds: float

    @property
    def fraction(self) -> float:
        if self.ticks_total == 0:
            return 1.0
        return self.ticks_done / self.ticks_total

    @property
    def finished(self) -> bool:
        return self.ticks_done >= self.ticks_total


class ProgressTicker:
    """
    协作式等待

    与控制器状态机无关，只负责睡眠并在每个节拍回调；
    测试中可替换 sleep 为零耗时实现。
    """

    def __init__(
        self,
        tick: float = DEFAULT_TICK,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        if tick <= 0:
            raise ValueError("tick must be positive")
        self.tick = tick
        self._sleep = sleep
        self._listeners: List[Callable[[TickEvent], None]] = []

    def on_tick(self, callback: Callable[[TickEvent], None]):
        """注册节拍回调"""
        self._listeners.append(callback)

    async def wait(self, seconds: float, description: str = "Sleep until next split ..."):
        """等待 seconds 秒，seconds <= 0 时立即返回"""
        if seconds <= 0:
            return

        # 最后一拍补足余量，总睡眠时长等于 seconds
        total = max(1, math.ceil(seconds / self.tick - TICK_EPSILON))
        elapsed = 0.0
        for done in range(1, total + 1):
            step = self.tick if done < total else max(0.0, seconds - elapsed)
            await self._sleep(step)
            elapsed = seconds if done == total else elapsed + step
            event = TickEvent(description, done, total, elapsed, seconds)
            for listener in self._listeners:
                listener(event)

    async def __call__(self, seconds: float):
        await self.wait(seconds)


class ConsoleProgress:
    """终端进度条渲染"""

    def __init__(self, stream: Optional[IO[str]] = None, width: int = 30):
        self.stream = stream or sys.stdout
        self.width = width
        self._started = False

    def __call__(self, event: TickEvent):
        if not self._started:
            self.stream.write(f"\n{event.description} ({event.total_seconds:.0f} seconds)\n")
            self._started = True

        filled = int(self.width * event.fraction)
        bar = "#" * filled + "-" * (self.width - filled)
        self.stream.write(
            f"\r{event.description} [{bar}] {event.fraction * 100:3.0f}% ({event.elapsed:.1f}s)"
        )
        if event.finished:
            self.stream.write("\n")
            self._started = False
        self.stream.flush()
