# misuzu 灰度迁移工具 - 核心模块
"""配置与日志"""

from .config import Settings, get_settings
from .logging import setup_logging, get_logger

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "get_logger",
]
