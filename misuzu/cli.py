#!/usr/bin/env python3
# misuzu 灰度迁移工具 - 命令行入口
"""执行一步灰度流量迁移"""

import argparse
import asyncio
import signal
import sys
from typing import IO, List, Optional

import structlog

from misuzu.canary import (
    CanaryController,
    ConsoleProgress,
    MigrationState,
    ProgressTicker,
    StepResult,
)
from misuzu.core import get_settings, setup_logging
from misuzu.display import (
    display_config,
    display_plan,
    display_service_versions,
    display_shares,
    display_traffic,
)
from misuzu.exceptions import ConfigInvalid, MisuzuError
from misuzu.models import MigrationConfig, SHARD_BY_CHOICES
from misuzu.platform import AppEngineClient, TrafficPlatform

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="misuzu",
        description="Advance one step of a canary traffic migration for an App Engine service",
        allow_abbrev=False,
    )
    parser.add_argument("-p", "-project", "--project", dest="project", default="",
                        help="Project ID (required)")
    parser.add_argument("-s", "-service", "--service", dest="service", default="",
                        help="Service name (required)")
    parser.add_argument("-f", "-source-version", "--source-version", dest="source_version",
                        help="Source version (optional, resolved automatically; when given it must match)")
    parser.add_argument("-t", "-destination-version", "--destination-version", "--target-version",
                        dest="destination_version", default="",
                        help="Migration destination version (required)")
    parser.add_argument("-i", "-interval", "--interval", dest="interval", type=int,
                        help="Interval seconds to wait before the split (default: 300)")
    parser.add_argument("-r", "-target-rate", "--target-rate", dest="target_rate", type=int,
                        help="Target percentage rate for the destination (default: 100)")
    parser.add_argument("-e", "-step-rate", "--step-rate", dest="step_rate", type=int,
                        help="Percentage of traffic to shift to the destination per step "
                             "(default: 10, min: 1, max: 100)")
    parser.add_argument("-d", "-dry-run", "--dry-run", dest="dry_run", action="store_true",
                        help="Show what would be done without actually performing the deployment")
    parser.add_argument("--shard-by", dest="shard_by", type=str.upper,
                        help=f"Traffic split sharding ({', '.join(SHARD_BY_CHOICES)}; default: UNSPECIFIED)")
    parser.add_argument("--show-versions", dest="show_versions", action="store_true",
                        help="List every deployed version of the service before the step")
    parser.add_argument("--log-level", dest="log_level",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        type=str.upper, help="Log level (default: INFO)")
    parser.add_argument("--log-format", dest="log_format", choices=["console", "json"],
                        help="Log output format (default: console)")
    return parser


class ConsoleReporter:
    """按控制器状态打印终端输出"""

    def __init__(
        self,
        platform: TrafficPlatform,
        show_versions: bool = False,
        stream: Optional[IO[str]] = None
    ):
        self.platform = platform
        self.show_versions = show_versions
        self.stream = stream or sys.stdout

    async def __call__(self, state: MigrationState, controller: CanaryController):
        config = controller.config
        out = self.stream

        if state == MigrationState.FETCHING:
            display_config(config, out)
            if self.show_versions:
                await self._show_versions(config, out)
            print("\nRetrieving traffic information...", file=out)
        elif state == MigrationState.WAITING:
            display_traffic(controller.snapshot, out)
        elif state == MigrationState.RESOLVING:
            print("\nDetermining source version...", file=out)
        elif state == MigrationState.CHECKING:
            display_shares(
                controller.snapshot,
                controller.source_version,
                config.destination_version,
                out
            )
        elif state == MigrationState.APPLYING:
            display_plan(controller.plan, config.dry_run, out)

    async def _show_versions(self, config: MigrationConfig, out: IO[str]):
        """版本列表只是附加信息，读取失败记警告后继续"""
        print("\nListing service versions...", file=out)
        try:
            versions = await self.platform.list_service_versions(config.project, config.service)
        except MisuzuError as e:
            logger.warning("could not list service versions", error=str(e))
            print(f"Could not list service versions: {e}", file=out)
            return
        display_service_versions(versions, out)


def report_result(
    result: StepResult,
    parser: Optional[argparse.ArgumentParser] = None,
    stream: Optional[IO[str]] = None,
    err_stream: Optional[IO[str]] = None
):
    """打印最终状态"""
    out = stream or sys.stdout
    err = err_stream or sys.stderr

    if result.succeeded:
        print(f"\nStatus: {result.outcome.value} - {result.message}", file=out)
        return

    print(f"Error: {result.message}", file=err)
    if isinstance(result.error, ConfigInvalid) and parser is not None:
        parser.print_help(err)


def _install_cancel_handler(cancel_event: asyncio.Event) -> bool:
    """SIGTERM 只设置取消标记，在状态边界生效"""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGTERM, cancel_event.set)
    except (NotImplementedError, RuntimeError, ValueError):
        logger.debug("signal handlers not supported, cancellation disabled")
        return False
    return True


async def run_step(
    config: MigrationConfig,
    platform: TrafficPlatform,
    show_versions: bool = False,
    tick: float = 0.1,
    stream: Optional[IO[str]] = None,
    waiter=None
) -> StepResult:
    """构造控制器并执行一步"""
    if waiter is None:
        ticker = ProgressTicker(tick=tick)
        ticker.on_tick(ConsoleProgress(stream))
        waiter = ticker

    cancel_event = asyncio.Event()
    installed = _install_cancel_handler(cancel_event)

    controller = CanaryController(config, platform, waiter=waiter, cancel_event=cancel_event)
    controller.on_transition(ConsoleReporter(platform, show_versions, stream))
    try:
        return await controller.run()
    finally:
        if installed:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGTERM)


async def _main(
    config: MigrationConfig,
    platform: Optional[TrafficPlatform],
    show_versions: bool,
    tick: float,
    stream: Optional[IO[str]],
    waiter
) -> StepResult:
    settings = get_settings()
    owned = platform is None
    platform = platform or AppEngineClient.from_settings(settings)
    try:
        return await run_step(config, platform, show_versions, tick, stream, waiter)
    finally:
        if owned:
            await platform.close()


def main(
    argv: Optional[List[str]] = None,
    platform: Optional[TrafficPlatform] = None,
    stream: Optional[IO[str]] = None,
    err_stream: Optional[IO[str]] = None,
    waiter=None
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()

    setup_logging(
        level=args.log_level or settings.LOG_LEVEL,
        json_format=(args.log_format or settings.LOG_FORMAT) == "json"
    )

    config = MigrationConfig.from_args(args, settings)
    result = asyncio.run(_main(
        config,
        platform,
        args.show_versions,
        settings.PROGRESS_TICK,
        stream,
        waiter
    ))

    report_result(result, parser, stream, err_stream)
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
