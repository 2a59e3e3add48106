# misuzu 灰度迁移工具 - 日志配置
"""结构化日志配置"""

import logging
import sys
from typing import IO, Optional
import structlog


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    stream: Optional[IO[str]] = None
):
    """
    配置结构化日志

    日志写到 stderr，stdout 留给命令行输出。

    Args:
        level: 日志级别
        json_format: 是否输出JSON格式
        stream: 输出流，默认 sys.stderr
    """

    timestamper = structlog.processors.TimeStamper(fmt="iso")

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        timestamper,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False)
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=False)
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger()
    # 重复调用时替换已有handler
    for existing in list(root_logger.handlers):
        if getattr(existing, "_misuzu", False):
            root_logger.removeHandler(existing)
    handler._misuzu = True
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    # 减少第三方库日志
    for logger_name in ["httpx", "httpcore"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str = None) -> structlog.BoundLogger:
    """获取logger实例"""
    return structlog.get_logger(name)
