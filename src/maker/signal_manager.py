"""信号管理模块。

将终止信号 (SIGINT / SIGTERM / SIGQUIT) 转换为一次性的优雅退出流程：
- 调用方通过 on_exit(callback) 登记清理回调，得到一个 disposer
- 收到信号后，每个仍处于 IDLE 的回调恰好执行一次（同步或异步均可）
- 清理期间显示 spinner；回调异常只记录日志，不会阻止退出
- 全部回调结束后以状态码 0 退出进程

与隐式的全局信号监听不同，所有登记都保存在 ShutdownCoordinator 的显式注册表中。
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import signal
import sys
from enum import Enum
from typing import Any, Callable, Optional

from .config import get_config
from .errors import InvalidArgumentError
from .ui.spinners import ProgressIndicator, spinner

__all__ = ["ShutdownCoordinator", "ExitHandler", "HandlerState", "on_exit"]

logger = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == "win32"

DEFAULT_SIGNALS: tuple[signal.Signals, ...] = tuple(
    getattr(signal, name)
    for name in ("SIGINT", "SIGTERM", "SIGQUIT")
    if hasattr(signal, name)
)


class HandlerState(Enum):
    """单个登记的生命周期。

    - IDLE: 等待信号
    - CLEANING: 已收到信号，回调执行中
    - EXITING: 回调已结束，进程即将退出
    - DISPOSED: 已通过 disposer 注销（信号前）
    """

    IDLE = "idle"
    CLEANING = "cleaning"
    EXITING = "exiting"
    DISPOSED = "disposed"


class ExitHandler:
    """一次 on_exit 登记。

    Attributes:
        callback: 清理回调（无参数，可返回 awaitable）
        state: 当前状态
    """

    def __init__(self, callback: Callable[[], Any]) -> None:
        self.callback = callback
        self.state = HandlerState.IDLE

    def trigger(self) -> bool:
        """尝试进入 CLEANING 状态。

        Returns:
            仅当本次调用完成了 IDLE -> CLEANING 转换时返回 True
        """
        if self.state is not HandlerState.IDLE:
            return False
        self.state = HandlerState.CLEANING
        return True

    async def run_callback(self) -> None:
        """执行回调，统一同步返回值与 awaitable。

        任何异常（包括 CancelledError / KeyboardInterrupt / SystemExit）都只记录，
        不会阻止后续的退出。
        """
        try:
            result = self.callback()
            if inspect.isawaitable(result):
                await result
        except BaseException:
            logger.exception("on_exit callback error")
        finally:
            self.state = HandlerState.EXITING

    def __repr__(self) -> str:
        name = getattr(self.callback, "__qualname__", repr(self.callback))
        return f"ExitHandler(callback={name}, state={self.state.value})"


class ShutdownCoordinator:
    """退出清理协调器。

    管理 on_exit 登记与终止信号之间的映射：
    - 首次登记时安装信号处理器，最后一个登记注销时恢复原处理器
    - 每个登记各自持有 "已触发" 标记，重复信号不会重复执行回调
    - 一次清理流程结束后调用 exit_func(0)

    Example:
        ```python
        coordinator = ShutdownCoordinator()

        async def close_db():
            await db.close()

        dispose = coordinator.on_exit(close_db)
        ...
        dispose()  # 不再需要时注销
        ```

    Attributes:
        signals: 监听的信号
        message: 清理期间 spinner 显示的文字
    """

    def __init__(
        self,
        *,
        exit_func: Optional[Callable[[int], Any]] = None,
        spinner_factory: Optional[Callable[[str], ProgressIndicator]] = None,
        message: Optional[str] = None,
        signals: Optional[tuple[int, ...]] = None,
    ) -> None:
        """初始化协调器。

        Args:
            exit_func: 退出函数（默认 sys.exit）
            spinner_factory: 根据文字创建进度指示器（默认 maker.spinner）
            message: spinner 文字（默认从配置读取）
            signals: 监听的信号（默认 SIGINT/SIGTERM/SIGQUIT）
        """
        self._exit_func = exit_func if exit_func is not None else sys.exit
        self._spinner_factory = spinner_factory if spinner_factory is not None else spinner
        self._message = message
        self.signals = signals if signals is not None else DEFAULT_SIGNALS

        # 内部状态
        self._handlers: list[ExitHandler] = []
        self._installed: dict[int, Any] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._cleaning: int = 0
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def message(self) -> str:
        if self._message is not None:
            return self._message
        return get_config().shutdown_message

    @property
    def handlers(self) -> tuple[ExitHandler, ...]:
        """当前登记（只读快照）。"""
        return tuple(self._handlers)

    @property
    def is_installed(self) -> bool:
        """是否已安装信号处理器。"""
        return bool(self._installed)

    def on_exit(self, callback: Callable[[], Any]) -> Callable[[], None]:
        """登记清理回调。

        Args:
            callback: 无参数回调，可以是同步函数或返回 awaitable

        Returns:
            disposer：注销该登记，可重复调用

        Raises:
            InvalidArgumentError: callback 不可调用
        """
        if not callable(callback):
            raise InvalidArgumentError("on_exit requires a callback function")

        handler = ExitHandler(callback)
        self._install()
        self._handlers.append(handler)
        logger.debug(f"Registered {handler} ({len(self._handlers)} total)")

        def dispose() -> None:
            self._dispose(handler)

        return dispose

    def dispatch(self, signum: int) -> Optional[asyncio.Task[None]]:
        """处理一次信号投递。

        所有仍为 IDLE 的登记进入 CLEANING；没有可触发的登记时什么都不做。
        在事件循环中调用时返回清理任务，否则同步完成清理（通过 asyncio.run）。

        Args:
            signum: 信号编号

        Returns:
            清理任务（事件循环中），或 None
        """
        triggered = [h for h in list(self._handlers) if h.trigger()]
        if not triggered:
            logger.debug(f"{_signal_name(signum)} ignored, no idle exit handlers")
            return None

        logger.debug(
            f"{_signal_name(signum)} received, running {len(triggered)} exit handler(s)"
        )
        self._cleaning += 1

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._shutdown(triggered))
            return None

        task = loop.create_task(self._shutdown(triggered))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _shutdown(self, handlers: list[ExitHandler]) -> None:
        """执行一次清理流程并退出。"""
        try:
            indicator = self._spinner_factory(self.message).start()
        except Exception as e:
            # 例如已有另一个 live display 在运行
            logger.debug(f"Could not start shutdown spinner: {e}")
            indicator = None

        try:
            await asyncio.gather(*(h.run_callback() for h in handlers))
        finally:
            try:
                stop = getattr(indicator, "stop", None)
                if callable(stop):
                    stop()
            finally:
                self._cleaning -= 1
                if not self._handlers and not self._cleaning:
                    self._uninstall()
                # 无论回调结果如何都以 0 退出
                logger.debug("Exit handlers completed, exiting with status 0")
                self._exit_func(0)

    def _dispose(self, handler: ExitHandler) -> None:
        """注销登记；已触发的登记不会被撤销。"""
        if handler not in self._handlers:
            return

        self._handlers.remove(handler)
        if handler.state is HandlerState.IDLE:
            handler.state = HandlerState.DISPOSED
        logger.debug(f"Disposed {handler} ({len(self._handlers)} remaining)")

        if not self._handlers and not self._cleaning:
            self._uninstall()

    def _install(self) -> None:
        """安装信号处理器。

        POSIX 上若有运行中的事件循环则使用 loop.add_signal_handler，
        否则使用 signal.signal。
        """
        if self._installed:
            if self._loop is None or not self._loop.is_closed():
                return
            # 事件循环已关闭，其信号处理器已随之移除
            self._installed.clear()
            self._loop = None

        try:
            loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None and not IS_WINDOWS:
            for sig in self.signals:
                loop.add_signal_handler(sig, self.dispatch, sig)
                self._installed[sig] = None
            self._loop = loop
        else:
            for sig in self.signals:
                self._installed[sig] = signal.signal(sig, self._handle_raw_signal)
            self._loop = None

        logger.debug(
            f"Signal handlers installed for "
            f"{', '.join(_signal_name(s) for s in self._installed)}"
        )

    def _uninstall(self) -> None:
        """移除信号处理器并恢复原处理器。"""
        for sig, previous in self._installed.items():
            try:
                if self._loop is not None:
                    if not self._loop.is_closed():
                        self._loop.remove_signal_handler(sig)
                else:
                    signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
            except Exception as e:
                logger.debug(f"Error removing handler for {_signal_name(sig)}: {e}")

        self._installed.clear()
        self._loop = None
        logger.debug("Signal handlers removed")

    def _handle_raw_signal(self, signum: int, frame: Any) -> None:
        """signal.signal 处理器：有运行中的事件循环时转交给循环。"""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.dispatch(signum)
            return
        loop.call_soon_threadsafe(self.dispatch, signum)


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


# 进程级默认协调器
_coordinator = ShutdownCoordinator()


def on_exit(callback: Callable[[], Any]) -> Callable[[], None]:
    """在默认协调器上登记清理回调。

    收到 SIGINT / SIGTERM / SIGQUIT 时显示 spinner、执行回调（只执行一次），
    然后以状态码 0 退出。

    Args:
        callback: 无参数回调，可以是同步函数或 async 函数

    Returns:
        disposer：移除该回调的所有信号监听，可安全重复调用

    Raises:
        InvalidArgumentError: callback 不可调用
    """
    return _coordinator.on_exit(callback)
