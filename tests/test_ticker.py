# misuzu 灰度迁移工具 - 等待进度测试
"""ticker模块测试"""

import io
from unittest.mock import AsyncMock

import pytest

from misuzu.canary import ConsoleProgress, ProgressTicker

pytestmark = pytest.mark.asyncio


class TestProgressTicker:
    """协作式等待测试"""

    async def test_zero_interval_is_noop(self):
        sleep = AsyncMock()
        ticker = ProgressTicker(sleep=sleep)

        await ticker.wait(0)
        await ticker.wait(-3)

        sleep.assert_not_awaited()

    async def test_ticks_cover_interval(self):
        """测试节拍总时长等于间隔"""
        sleep = AsyncMock()
        events = []
        ticker = ProgressTicker(tick=0.1, sleep=sleep)
        ticker.on_tick(events.append)

        await ticker.wait(2)

        assert sleep.await_count == 20
        assert sum(call.args[0] for call in sleep.await_args_list) == pytest.approx(2.0)
        assert events[-1].finished
        assert events[-1].elapsed == pytest.approx(2.0)
        assert [e.ticks_done for e in events] == list(range(1, 21))

    @pytest.mark.parametrize("tick,seconds,expected_ticks", [
        (0.4, 1, 3),
        (0.7, 1, 2),
        (0.3, 1, 4),
        (2.0, 5, 3),
    ])
    async def test_uneven_tick_keeps_interval(self, tick, seconds, expected_ticks):
        """测试节拍不能整除间隔时总时长不变"""
        sleep = AsyncMock()
        events = []
        ticker = ProgressTicker(tick=tick, sleep=sleep)
        ticker.on_tick(events.append)

        await ticker.wait(seconds)

        durations = [call.args[0] for call in sleep.await_args_list]
        assert len(durations) == expected_ticks
        assert sum(durations) == pytest.approx(seconds)
        assert all(d <= tick + 1e-9 for d in durations)
        assert events[-1].finished
        assert events[-1].elapsed == seconds

    async def test_callable_as_waiter(self):
        sleep = AsyncMock()
        ticker = ProgressTicker(tick=0.5, sleep=sleep)

        await ticker(1)

        assert sleep.await_count == 2

    async def test_invalid_tick(self):
        with pytest.raises(ValueError):
            ProgressTicker(tick=0)


class TestConsoleProgress:
    """进度条渲染测试"""

    async def test_renders_bar(self):
        stream = io.StringIO()
        ticker = ProgressTicker(tick=0.1, sleep=AsyncMock())
        ticker.on_tick(ConsoleProgress(stream, width=10))

        await ticker.wait(1, "Sleep until next split ...")

        output = stream.getvalue()
        assert "Sleep until next split ... (1 seconds)" in output
        assert "[##########] 100%" in output
        assert output.endswith("\n")
