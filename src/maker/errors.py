"""maker 异常类。

命令执行失败（启动失败、非零退出）不以异常形式抛出，而是作为
RunResult 数据返回；这里只定义需要调用方捕获的错误。
"""

from __future__ import annotations

__all__ = [
    "MakerError",
    "InvalidArgumentError",
    "StoreCorruptedError",
    "PromptError",
    "PromptCancelledError",
]


class MakerError(Exception):
    """maker 基础异常。"""
    pass


class InvalidArgumentError(MakerError, TypeError):
    """参数错误（在任何副作用发生之前同步抛出）。"""
    pass


class StoreCorruptedError(MakerError, ValueError):
    """存储文件内容不是合法的 JSON 对象。

    Attributes:
        path: 存储文件路径
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class PromptError(MakerError):
    """交互式提示失败。"""
    pass


class PromptCancelledError(PromptError):
    """用户取消了提示（关闭对话框或按下 Cancel）。"""
    pass
