# misuzu 灰度迁移工具 - 终端输出
"""配置、流量表、版本列表、结果的打印"""

import sys
from typing import IO, Optional

from misuzu.models import MigrationConfig, ServiceVersions, StepPlan, TrafficSnapshot

TIME_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def _out(stream: Optional[IO[str]]) -> IO[str]:
    return stream or sys.stdout


def display_config(config: MigrationConfig, stream: Optional[IO[str]] = None):
    """打印迁移配置"""
    out = _out(stream)
    print("=== Misuzu Canary Deployment Configuration ===", file=out)
    print(f"Project ID: {config.project}", file=out)
    print(f"Service Name: {config.service}", file=out)
    if config.source_version:
        print(f"Source Version: {config.source_version}", file=out)
    print(f"Destination Version: {config.destination_version}", file=out)
    print(f"Interval (seconds): {config.interval}", file=out)
    print(f"Target Rate (%): {config.target_rate}", file=out)
    print(f"Step Rate (%): {config.step_rate}", file=out)
    print(f"Shard By: {config.shard_by}", file=out)
    print(f"Dry Run: {str(config.dry_run).lower()}", file=out)
    if config.dry_run:
        print("*** DRY RUN MODE - No actual deployment will be performed ***", file=out)
    print("=== Configuration Complete ===", file=out)


def display_traffic(snapshot: TrafficSnapshot, stream: Optional[IO[str]] = None):
    """打印流量分配表"""
    out = _out(stream)
    print(f"=== Traffic Allocation for Service '{snapshot.service_name}' ===", file=out)
    print(f"Total Allocations: {len(snapshot.allocations)}\n", file=out)

    print(f"{'Version':<40} {'Traffic':>10}", file=out)
    print("-" * 51, file=out)
    for allocation in snapshot.allocations:
        print(f"{allocation.version:<40} {allocation.percentage:>9.2f}%", file=out)
    print("-" * 51, file=out)


def display_service_versions(service_versions: ServiceVersions, stream: Optional[IO[str]] = None):
    """打印全部版本"""
    out = _out(stream)
    print(f"=== All Versions for Service '{service_versions.service_name}' ===", file=out)
    print(f"Total Versions: {len(service_versions.versions)}\n", file=out)

    for version in service_versions.versions:
        print(f"Version ID: {version.version_id}", file=out)
        if version.create_time is None:
            print("Create Time: Unknown", file=out)
        else:
            print(f"Create Time: {version.create_time.strftime(TIME_FORMAT)}", file=out)
        print(f"Serving Status: {version.serving_status}", file=out)
        if version.has_traffic:
            print(f"Traffic: {version.traffic_percent:.2f}%", file=out)
        else:
            print("Traffic: 0.00% (No traffic allocation)", file=out)
        print("---", file=out)


def display_shares(
    snapshot: TrafficSnapshot,
    source_version: str,
    destination_version: str,
    stream: Optional[IO[str]] = None
):
    """打印源/目标版本当前占比"""
    out = _out(stream)
    source_pct = snapshot.percentage_of(source_version) or 0.0
    destination_pct = snapshot.percentage_of(destination_version) or 0.0
    print(f"Source Version: {source_version}, Traffic: {source_pct:.2f}%", file=out)
    print(f"Destination Version: {destination_version}, Traffic: {destination_pct:.2f}%", file=out)


def display_plan(plan: StepPlan, dry_run: bool = False, stream: Optional[IO[str]] = None):
    """打印下一步切分"""
    out = _out(stream)
    header = "Intended traffic split (dry run)" if dry_run else "Next traffic split"
    print(f"\n{header}:", file=out)
    print(f"  {plan.source_version}: {plan.source_percentage:.2f}%", file=out)
    print(f"  {plan.destination_version}: {plan.destination_percentage:.2f}%", file=out)
