"""maker - helpers for interactive terminal programs.

环境变量:
    MAKER_STORE_PATH: 键值存储文件路径
    MAKER_SCHEMA_PATH: 生成的类型存根路径
    MAKER_MAX_LINES: run() 默认保留行数 (默认 10000)
    MAKER_SHUTDOWN_MESSAGE: 退出清理期间的 spinner 文字
    MAKER_REQUIRE_TTY: init() 是否要求交互式终端 (默认 true)
    MAKER_LOG_DEBUG: 日志输出到临时文件 (默认 false)

用法:
    import maker

    maker.init()
    dispose = maker.on_exit(cleanup)
    result = await maker.run("make build")
"""

__version__ = "0.1.0"

from .app import init
from .errors import (
    InvalidArgumentError,
    MakerError,
    PromptCancelledError,
    PromptError,
    StoreCorruptedError,
)
from .runtime import RunResult, run, run_sync
from .signal_manager import on_exit
from .store import load, save
from .ui import Choice, ProgressIndicator, Spinner, prompt, spinner

__all__ = [
    "__version__",
    "init",
    "run",
    "run_sync",
    "RunResult",
    "on_exit",
    "prompt",
    "Choice",
    "spinner",
    "Spinner",
    "ProgressIndicator",
    "save",
    "load",
    "MakerError",
    "InvalidArgumentError",
    "StoreCorruptedError",
    "PromptError",
    "PromptCancelledError",
]
