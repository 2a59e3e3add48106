# misuzu 灰度迁移工具 - 模块入口
import sys

from misuzu.cli import main

sys.exit(main())
