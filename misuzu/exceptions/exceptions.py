# misuzu 灰度迁移工具 - 自定义异常类
"""迁移异常定义"""

from typing import Any, Dict, List, Optional, Sequence, Tuple


class MisuzuError(Exception):
    """
    异常基类

    Attributes:
        code: 错误码
        message: 错误消息
        exit_code: 进程退出码
        detail: 详细信息
        errors: 错误列表（聚合类错误使用）
    """
    code: str = "internal_error"
    message: str = "internal error"
    exit_code: int = 1

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        detail: Optional[Any] = None,
        errors: Optional[List[Dict]] = None
    ):
        self.message = message or self.message
        self.code = code or self.code
        self.detail = detail
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        result = {
            "code": self.code,
            "message": self.message,
            "data": self.detail
        }
        if self.errors:
            result["errors"] = self.errors
        return result


class ConfigInvalid(MisuzuError):
    """配置校验失败（聚合所有字段错误）"""
    code = "config_invalid"
    message = "configuration validation failed"

    def __init__(self, violations: Sequence[Any], **kwargs):
        self.violations = list(violations)
        lines = [str(v) for v in self.violations]
        message = "configuration validation failed:\n" + "\n".join(lines)
        super().__init__(
            message=message,
            errors=[v.to_dict() for v in self.violations],
            **kwargs
        )

    @property
    def fields(self) -> List[str]:
        return [v.field for v in self.violations]


class SnapshotUnavailable(MisuzuError):
    """获取流量快照失败"""
    code = "snapshot_unavailable"
    message = "failed to retrieve traffic information"


class NoTrafficData(MisuzuError):
    """无流量分配数据"""
    code = "no_traffic_data"
    message = "no traffic allocations found, cannot determine source version"


class DestinationNotFound(MisuzuError):
    """目标版本不在当前流量分配中"""
    code = "destination_not_found"
    message = "destination version not found in current traffic allocations"

    def __init__(self, destination: str, **kwargs):
        self.destination = destination
        message = f"destination version '{destination}' not found in current traffic allocations"
        super().__init__(message=message, detail={"destination": destination}, **kwargs)


class AlreadyComplete(MisuzuError):
    """目标版本已获得全部流量（视为成功）"""
    code = "already_complete"
    message = "destination already has 100% traffic, no migration needed"
    exit_code = 0

    def __init__(self, destination: str, **kwargs):
        self.destination = destination
        message = f"destination version '{destination}' already has 100% traffic, no migration needed"
        super().__init__(message=message, detail={"destination": destination}, **kwargs)


class AbnormalTrafficState(MisuzuError):
    """存在两个以上带流量的版本，需要人工介入"""
    code = "abnormal_traffic_state"
    message = "abnormal traffic state"

    def __init__(self, allocations: Sequence[Tuple[str, float]], **kwargs):
        self.allocations = list(allocations)
        versions = ", ".join(f"{version} ({percentage:.2f}%)" for version, percentage in self.allocations)
        message = (
            f"abnormal traffic state: found {len(self.allocations)} versions "
            f"with traffic allocation: [{versions}]"
        )
        super().__init__(
            message=message,
            detail={"allocations": [list(a) for a in self.allocations]},
            **kwargs
        )


class SourceMismatch(MisuzuError):
    """显式指定的源版本与解析结果不一致"""
    code = "source_mismatch"
    message = "explicit source version does not match the resolved source"

    def __init__(self, expected: str, resolved: str, **kwargs):
        self.expected = expected
        self.resolved = resolved
        message = (
            f"source version '{expected}' does not match the version currently "
            f"sharing traffic with the destination ('{resolved}')"
        )
        super().__init__(message=message, detail={"expected": expected, "resolved": resolved}, **kwargs)


class ApplyFailed(MisuzuError):
    """流量切分提交失败"""
    code = "apply_failed"
    message = "failed to update traffic"


class MigrationCancelled(MisuzuError):
    """迁移在状态边界被取消"""
    code = "cancelled"
    message = "migration step cancelled"


class PlatformError(MisuzuError):
    """平台调用异常基类"""
    code = "platform_error"
    message = "platform request failed"


class PlatformNotFound(PlatformError):
    """资源不存在"""
    code = "not_found"
    message = "resource not found"


class PlatformPermissionDenied(PlatformError):
    """权限不足"""
    code = "permission_denied"
    message = "permission denied"


class PlatformUnavailable(PlatformError):
    """平台不可用"""
    code = "unavailable"
    message = "platform unavailable"


class PlatformInvalidArgument(PlatformError):
    """请求参数错误"""
    code = "invalid_argument"
    message = "invalid argument"


class PlatformTimeout(PlatformError):
    """请求或操作超时"""
    code = "timeout"
    message = "platform operation timed out"
