"""maker 环境变量配置管理。

环境变量:
    MAKER_STORE_PATH: 键值存储 JSON 文件路径
        - 默认: 包目录下的 config.json

    MAKER_SCHEMA_PATH: 自动生成的类型存根 (.pyi) 路径
        - 默认: 包目录下的 storage_schema.pyi（覆盖 maker.storage_schema 的类型）

    MAKER_MAX_LINES: run() 捕获输出时保留的最大行数
        - 默认 10000
        - 无效值或小于 1 时使用默认值

    MAKER_SHUTDOWN_MESSAGE: on_exit 清理期间 spinner 显示的文字
        - 默认 "Gracefully shutting down..."

    MAKER_REQUIRE_TTY: init() 是否要求交互式终端
        - true/1/yes = 要求 (默认)
        - false/0/no = 跳过检查（CI 等非交互环境）

    MAKER_LOG_DEBUG: 日志调试模式
        - true/1/yes = 开启 (日志输出到临时文件)
        - false/0/no = 关闭 (默认，日志输出到 stderr)
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reload_config",
    "DEFAULT_MAX_LINES",
    "DEFAULT_SHUTDOWN_MESSAGE",
]

PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_MAX_LINES = 10000
DEFAULT_SHUTDOWN_MESSAGE = "Gracefully shutting down..."
DEFAULT_STORE_PATH = PACKAGE_DIR / "config.json"
DEFAULT_SCHEMA_PATH = PACKAGE_DIR / "storage_schema.pyi"


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """解析布尔值环境变量。"""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_path(value: str | None, default: Path) -> Path:
    """解析路径环境变量，空值使用默认路径。"""
    if not value or not value.strip():
        return default
    return Path(value.strip()).expanduser()


def _parse_max_lines(value: str | None) -> int:
    """解析最大保留行数。"""
    if not value:
        return DEFAULT_MAX_LINES
    try:
        max_lines = int(value)
    except ValueError:
        return DEFAULT_MAX_LINES
    return max_lines if max_lines >= 1 else DEFAULT_MAX_LINES


@dataclass
class Config:
    """maker 配置。

    Attributes:
        store_path: 键值存储文件路径
        schema_path: 类型存根文件路径
        max_lines: run() 默认保留的最大行数
        shutdown_message: 退出清理期间的 spinner 文字
        require_tty: init() 是否要求交互式终端
        log_debug: 日志调试模式（输出到临时文件）
        log_file: 日志文件路径（当 log_debug=True 时自动设置）
    """

    store_path: Path = DEFAULT_STORE_PATH
    schema_path: Path = DEFAULT_SCHEMA_PATH
    max_lines: int = DEFAULT_MAX_LINES
    shutdown_message: str = DEFAULT_SHUTDOWN_MESSAGE
    require_tty: bool = True
    log_debug: bool = False
    log_file: str | None = None

    def __repr__(self) -> str:
        return (
            f"Config(store_path={self.store_path}, "
            f"schema_path={self.schema_path}, "
            f"max_lines={self.max_lines}, "
            f"require_tty={self.require_tty}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file})"
        )


def _generate_log_file_path() -> str:
    """生成日志文件路径。

    Returns:
        临时目录下的日志文件绝对路径
    """
    log_dir = Path(tempfile.gettempdir()) / "maker"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"maker_debug_{timestamp}.log"

    return str(log_file.resolve())


def load_config() -> Config:
    """从环境变量加载配置。"""
    log_debug = _parse_bool(os.environ.get("MAKER_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    return Config(
        store_path=_parse_path(os.environ.get("MAKER_STORE_PATH"), DEFAULT_STORE_PATH),
        schema_path=_parse_path(os.environ.get("MAKER_SCHEMA_PATH"), DEFAULT_SCHEMA_PATH),
        max_lines=_parse_max_lines(os.environ.get("MAKER_MAX_LINES")),
        shutdown_message=(
            os.environ.get("MAKER_SHUTDOWN_MESSAGE") or DEFAULT_SHUTDOWN_MESSAGE
        ),
        require_tty=_parse_bool(os.environ.get("MAKER_REQUIRE_TTY"), default=True),
        log_debug=log_debug,
        log_file=log_file,
    )


# 全局配置实例（延迟加载）
_config: Config | None = None


def get_config() -> Config:
    """获取全局配置实例。"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """重新加载配置（用于测试）。"""
    global _config
    _config = load_config()
    return _config
