"""Terminal spinner built on rich.

Spinner wraps ``rich.status.Status`` behind a small, fixed progress-indicator
interface: start/stop, the four terminal states (succeed, fail, warn, info),
clear, and a mutable label.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.status import Status
from rich.text import Text

__all__ = ["ProgressIndicator", "Spinner", "spinner"]


SUCCESS_SYMBOL = ("✔", "green")
FAIL_SYMBOL = ("✖", "red")
WARN_SYMBOL = ("⚠", "yellow")
INFO_SYMBOL = ("ℹ", "blue")


@runtime_checkable
class ProgressIndicator(Protocol):
    """Capabilities the rest of maker relies on from a progress indicator."""

    text: str

    def start(self, text: str | None = None) -> ProgressIndicator: ...

    def stop(self) -> ProgressIndicator: ...

    def succeed(self, text: str | None = None) -> ProgressIndicator: ...

    def fail(self, text: str | None = None) -> ProgressIndicator: ...

    def warn(self, text: str | None = None) -> ProgressIndicator: ...

    def info(self, text: str | None = None) -> ProgressIndicator: ...

    def clear(self) -> ProgressIndicator: ...


class Spinner:
    """A rich-backed spinner.

    Example:
        ```python
        task = spinner("Processing...").start()
        try:
            await do_work()
            task.succeed("Done")
        except Exception:
            task.fail()
            raise
        ```

    Attributes:
        console: rich Console the spinner renders to (stderr by default)
    """

    def __init__(
        self,
        text: str = "",
        *,
        console: Console | None = None,
        spinner_name: str = "dots",
    ) -> None:
        self.console = console if console is not None else Console(stderr=True)
        self._text = text
        self._status = Status(text, console=self.console, spinner=spinner_name)
        self._spinning = False

    @property
    def text(self) -> str:
        return self._text

    @text.setter
    def text(self, value: str) -> None:
        self._text = value
        if self._spinning:
            self._status.update(value)

    @property
    def is_spinning(self) -> bool:
        return self._spinning

    def start(self, text: str | None = None) -> Spinner:
        """Start spinning (restarting is allowed); returns self for chaining."""
        if text is not None:
            self.text = text
        if not self._spinning:
            self._status.update(self._text)
            self._status.start()
            self._spinning = True
        return self

    def stop(self) -> Spinner:
        """Stop and erase the spinner line."""
        if self._spinning:
            self._status.stop()
            self._spinning = False
        return self

    def clear(self) -> Spinner:
        return self.stop()

    def stop_and_persist(
        self,
        symbol: str,
        text: str | None = None,
        style: str | None = None,
    ) -> Spinner:
        """Stop and leave a ``symbol text`` line behind.

        Args:
            symbol: Leading symbol
            text: Final label (defaults to the current text)
            style: rich style for the symbol
        """
        self.stop()
        line = Text()
        line.append(symbol, style=style)
        line.append(" ")
        line.append(text if text is not None else self._text)
        self.console.print(line)
        return self

    def succeed(self, text: str | None = None) -> Spinner:
        symbol, style = SUCCESS_SYMBOL
        return self.stop_and_persist(symbol, text, style)

    def fail(self, text: str | None = None) -> Spinner:
        symbol, style = FAIL_SYMBOL
        return self.stop_and_persist(symbol, text, style)

    def warn(self, text: str | None = None) -> Spinner:
        symbol, style = WARN_SYMBOL
        return self.stop_and_persist(symbol, text, style)

    def info(self, text: str | None = None) -> Spinner:
        symbol, style = INFO_SYMBOL
        return self.stop_and_persist(symbol, text, style)

    def __enter__(self) -> Spinner:
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def __repr__(self) -> str:
        state = "spinning" if self._spinning else "stopped"
        return f"Spinner(text={self._text!r}, {state})"


def spinner(text: str = "", **kwargs) -> Spinner:
    """Create a spinner labelled ``text`` (not started)."""
    return Spinner(text, **kwargs)
