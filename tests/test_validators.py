# misuzu 灰度迁移工具 - 配置校验测试
"""validators模块测试"""

import dataclasses

import pytest

from misuzu.exceptions import ConfigInvalid
from misuzu.models import MigrationConfig
from misuzu.validators import (
    OUT_OF_RANGE,
    REQUIRED,
    INVALID_CHOICE,
    ensure_valid,
    validate_config,
)


def make_config(**overrides):
    base = MigrationConfig(
        project="my-project",
        service="default",
        destination_version="v2",
    )
    return dataclasses.replace(base, **overrides)


class TestRequiredFields:
    """必填字段测试"""

    def test_valid_config(self):
        """测试有效配置"""
        assert validate_config(make_config()) == []

    @pytest.mark.parametrize("attr,field", [
        ("project", "project"),
        ("service", "service"),
        ("destination_version", "destination-version"),
    ])
    def test_missing_field(self, attr, field):
        """测试缺少单个必填字段"""
        violations = validate_config(make_config(**{attr: ""}))

        assert len(violations) == 1
        assert violations[0].field == field
        assert violations[0].code == REQUIRED

    def test_all_violations_reported(self):
        """测试一次报告全部错误"""
        config = make_config(project="", service="", destination_version="", step_rate=0)

        violations = validate_config(config)

        assert [v.field for v in violations] == [
            "project", "service", "destination-version", "step-rate"
        ]


class TestStepRate:
    """步进比例测试"""

    @pytest.mark.parametrize("step_rate", [1, 10, 100])
    def test_in_range(self, step_rate):
        assert validate_config(make_config(step_rate=step_rate)) == []

    @pytest.mark.parametrize("step_rate", [0, -5, 101])
    def test_out_of_range(self, step_rate):
        """测试越界"""
        violations = validate_config(make_config(step_rate=step_rate))

        assert len(violations) == 1
        assert violations[0].field == "step-rate"
        assert violations[0].code == OUT_OF_RANGE
        assert "between 1 and 100" in violations[0].message


class TestOtherFields:
    """其他字段测试"""

    def test_target_rate_out_of_range(self):
        violations = validate_config(make_config(target_rate=101))
        assert [(v.field, v.code) for v in violations] == [("target-rate", OUT_OF_RANGE)]

    def test_target_rate_zero_allowed(self):
        assert validate_config(make_config(target_rate=0)) == []

    def test_negative_interval(self):
        violations = validate_config(make_config(interval=-1))
        assert [(v.field, v.code) for v in violations] == [("interval", OUT_OF_RANGE)]

    def test_unknown_shard_by(self):
        violations = validate_config(make_config(shard_by="HEADER"))
        assert [(v.field, v.code) for v in violations] == [("shard-by", INVALID_CHOICE)]


class TestEnsureValid:
    """聚合异常测试"""

    def test_returns_config(self):
        config = make_config()
        assert ensure_valid(config) is config

    def test_raises_with_every_field(self):
        """测试异常包含全部字段"""
        with pytest.raises(ConfigInvalid) as exc_info:
            ensure_valid(make_config(project="", step_rate=200))

        error = exc_info.value
        assert error.fields == ["project", "step-rate"]
        assert "validation error for project: is required" in error.message
        assert error.to_dict()["errors"][1]["code"] == OUT_OF_RANGE
