"""
misuzu 灰度迁移工具 - 配置模块
"""
from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """运行配置（环境变量前缀 MISUZU_）"""

    # 迁移默认值，命令行参数优先
    INTERVAL: int = 300
    TARGET_RATE: int = 100
    STEP_RATE: int = 10
    SHARD_BY: str = "UNSPECIFIED"

    # App Engine Admin API
    API_ENDPOINT: str = "https://appengine.googleapis.com/v1"
    ACCESS_TOKEN: Optional[str] = Field(default=None)
    REQUEST_TIMEOUT: float = 30.0
    OPERATION_POLL_INTERVAL: float = 1.0
    OPERATION_TIMEOUT: float = 600.0

    # 等待进度刷新间隔（秒）
    PROGRESS_TICK: float = 0.1

    # 日志配置
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"

    class Config:
        env_prefix = "MISUZU_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例"""
    return Settings()
