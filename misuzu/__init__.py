# misuzu 灰度迁移工具
"""App Engine 服务单步灰度流量迁移"""

__version__ = "1.0.0"
