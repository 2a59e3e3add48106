# misuzu 灰度迁移工具 - 命令行测试
"""cli模块测试"""

from unittest.mock import AsyncMock

import pytest

from misuzu.cli import build_parser, main
from misuzu.core import get_settings
from misuzu.exceptions import PlatformPermissionDenied
from misuzu.models import MigrationConfig

from conftest import FakePlatform, no_wait

BASE_ARGS = ["-p", "my-project", "-s", "default", "-t", "v2", "-i", "0"]


class TestParser:
    """参数解析测试"""

    def test_short_and_long_flags(self):
        parser = build_parser()

        short = parser.parse_args(["-p", "a", "-s", "b", "-t", "c", "-e", "20", "-r", "80", "-d"])
        single_dash = parser.parse_args(["-project", "a", "-service", "b", "-destination-version", "c"])
        double_dash = parser.parse_args(["--project", "a", "--service", "b", "--target-version", "c"])

        assert (short.project, short.service, short.destination_version) == ("a", "b", "c")
        assert short.step_rate == 20 and short.target_rate == 80 and short.dry_run
        assert single_dash.destination_version == "c"
        assert double_dash.destination_version == "c"

    def test_defaults_from_settings(self, monkeypatch):
        """测试未指定参数时使用环境配置"""
        monkeypatch.setenv("MISUZU_STEP_RATE", "25")
        get_settings.cache_clear()

        args = build_parser().parse_args(["-p", "a", "-s", "b", "-t", "c"])
        config = MigrationConfig.from_args(args, get_settings())

        assert config.step_rate == 25
        assert config.interval == 300
        assert config.target_rate == 100
        assert config.shard_by == "UNSPECIFIED"

    def test_flags_override_settings(self, monkeypatch):
        monkeypatch.setenv("MISUZU_STEP_RATE", "25")
        get_settings.cache_clear()

        args = build_parser().parse_args(["-p", "a", "-s", "b", "-t", "c", "-e", "5", "--shard-by", "ip"])
        config = MigrationConfig.from_args(args, get_settings())

        assert config.step_rate == 5
        assert config.shard_by == "IP"


class TestMain:
    """命令行执行测试"""

    def test_applies_step(self, capsys):
        platform = FakePlatform({"v1": 100.0, "v2": 0.0})

        exit_code = main(BASE_ARGS, platform=platform, waiter=no_wait)

        out = capsys.readouterr().out
        assert exit_code == 0
        assert platform.apply_calls[0][2] == {"v1": 90.0, "v2": 10.0}
        assert "=== Misuzu Canary Deployment Configuration ===" in out
        assert "=== Traffic Allocation for Service 'default' ===" in out
        assert "Source Version: v1, Traffic: 100.00%" in out
        assert "Status: applied" in out

    def test_dry_run(self, capsys):
        platform = FakePlatform({"v1": 70.0, "v2": 30.0})

        exit_code = main(BASE_ARGS + ["-d"], platform=platform, waiter=no_wait)

        out = capsys.readouterr().out
        assert exit_code == 0
        assert platform.apply_calls == []
        assert "DRY RUN MODE" in out
        assert "Intended traffic split (dry run)" in out
        assert "v2: 40.00%" in out

    def test_already_at_target(self, capsys):
        platform = FakePlatform({"v1": 0.0, "v2": 100.0})

        exit_code = main(BASE_ARGS, platform=platform, waiter=no_wait)

        assert exit_code == 0
        assert platform.apply_calls == []
        assert "already_at_target" in capsys.readouterr().out

    def test_validation_failure(self, capsys):
        """测试配置错误打印全部字段和用法"""
        platform = FakePlatform({"v1": 100.0, "v2": 0.0})

        exit_code = main(["-e", "0"], platform=platform, waiter=no_wait)

        err = capsys.readouterr().err
        assert exit_code == 1
        assert "validation error for project: is required" in err
        assert "validation error for service: is required" in err
        assert "validation error for destination-version: is required" in err
        assert "validation error for step-rate" in err
        assert "usage: misuzu" in err
        assert platform.fetch_calls == []

    def test_abnormal_state(self, capsys):
        platform = FakePlatform({"v1": 50.0, "v2": 30.0, "v3": 20.0})

        exit_code = main(BASE_ARGS, platform=platform, waiter=no_wait)

        assert exit_code == 1
        assert "abnormal traffic state" in capsys.readouterr().err

    def test_show_versions(self, capsys):
        platform = FakePlatform({"v1": 100.0, "v2": 0.0})

        exit_code = main(BASE_ARGS + ["--show-versions", "-d"], platform=platform, waiter=no_wait)

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "=== All Versions for Service 'default' ===" in out
        assert "Version ID: v1" in out

    def test_show_versions_failure_is_warning_only(self, capsys):
        """测试版本列表失败不影响迁移"""
        platform = FakePlatform({"v1": 100.0, "v2": 0.0})
        platform.list_service_versions = AsyncMock(
            side_effect=PlatformPermissionDenied("caller lacks appengine.versions.list")
        )

        exit_code = main(BASE_ARGS + ["--show-versions"], platform=platform, waiter=no_wait)

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Could not list service versions: caller lacks appengine.versions.list" in out
        assert platform.apply_calls[0][2] == {"v1": 90.0, "v2": 10.0}
        assert "Status: applied" in out


@pytest.mark.parametrize("argv", [["-e", "abc"], ["--log-format", "xml"]])
def test_bad_flag_values_exit_2(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv, platform=FakePlatform())
    assert exc_info.value.code == 2
