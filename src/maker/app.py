"""maker 应用入口。

包含交互式终端检查 (init) 和日志配置。
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

from .config import get_config
from .errors import InvalidArgumentError
from .store.schema import clear_schema

__all__ = ["init", "configure_logging"]

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

TTY_REQUIRED_MESSAGE = (
    "\n⚠ This TUI requires an interactive terminal. Run this in a terminal "
    "(not a REPL, a pipe or a non-interactive/debug console).\n"
)


def configure_logging() -> None:
    """配置日志输出。

    - MAKER_LOG_DEBUG 开启：DEBUG 级别写入临时日志文件
    - 默认：INFO 级别写入 stderr
    """
    config = get_config()

    log_handlers: list[logging.Handler] = []

    if config.log_debug and config.log_file:
        # LOG_DEBUG 模式：输出到临时文件
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(file_handler)
        log_level = logging.DEBUG
    else:
        # 默认模式：输出到 stderr
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(stderr_handler)
        log_level = logging.INFO

    # 配置 root logger（第三方库）为 WARNING，减少噪音
    logging.basicConfig(
        level=logging.WARNING,
        handlers=log_handlers,
    )
    # 只对 maker 命名空间启用详细日志
    logging.getLogger("maker").setLevel(log_level)


def init(*, store_path: Optional[Any] = None) -> None:
    """初始化 maker。

    1. 校验参数；store_path 覆盖配置中的存储文件路径
    2. 要求 stdin 和 stdout 都连接到交互式终端，否则输出提示并以状态码 1 退出
    3. 配置日志
    4. 清除上次生成的类型存根（失败只记录警告）

    Args:
        store_path: 键值存储文件路径（str 或 os.PathLike）

    Raises:
        InvalidArgumentError: store_path 类型错误
        SystemExit: 不在交互式终端中（状态码 1）
    """
    if store_path is not None and not isinstance(store_path, (str, os.PathLike)):
        raise InvalidArgumentError(
            f"init() store_path must be a string or path, got {type(store_path).__name__}"
        )

    config = get_config()
    if store_path is not None:
        config.store_path = Path(store_path)

    if config.require_tty and not (sys.stdin.isatty() and sys.stdout.isatty()):
        print(TTY_REQUIRED_MESSAGE, file=sys.stderr)
        sys.exit(1)

    configure_logging()
    logger.debug(f"maker initialized: {config}")

    clear_schema(config.schema_path)
