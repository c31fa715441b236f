"""Interactive prompts built on prompt_toolkit.

Prompter exposes a fixed set of prompt operations, each a coroutine
resolving to the user's answer:

- input / password: free text (optionally masked)
- number: integer or float, range-checked
- confirm: yes/no with a default
- select / checkbox: single or multiple choice dialogs
- search: filtered single choice with completion
- rawlist: numbered list answered by number
- editor: edit text in $VISUAL / $EDITOR
"""

from __future__ import annotations

import logging
import math
import os
import shlex
import sys
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Union

import anyio
from prompt_toolkit import PromptSession, print_formatted_text
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.shortcuts import checkboxlist_dialog, radiolist_dialog
from prompt_toolkit.validation import ValidationError, Validator
from pydantic import BaseModel, ConfigDict

from ..errors import PromptCancelledError, PromptError

__all__ = ["Choice", "Prompter", "prompt"]

logger = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == "win32"

_YES = ("y", "yes")
_NO = ("n", "no")


class Choice(BaseModel):
    """A selectable answer.

    Attributes:
        value: Value returned when chosen
        name: Label shown to the user (defaults to str(value))
        description: Extra text shown next to the label in dialogs
        disabled: Shown but not selectable
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    value: Any
    name: str | None = None
    description: str | None = None
    disabled: bool = False

    @property
    def label(self) -> str:
        return self.name if self.name is not None else str(self.value)


ChoiceLike = Union[str, Choice]
ValidateFunc = Callable[[str], Union[bool, str]]


class _CallableValidator(Validator):
    """Validator from a function returning True or an error message."""

    def __init__(self, func: ValidateFunc) -> None:
        self._func = func

    def validate(self, document: Document) -> None:
        outcome = self._func(document.text)
        if outcome is True:
            return
        message = outcome if isinstance(outcome, str) else "Invalid input"
        raise ValidationError(message=message, cursor_position=len(document.text))


def _question(message: str) -> FormattedText:
    return FormattedText([("fg:ansigreen bold", "? "), ("bold", f"{message} ")])


def _normalize_choices(choices: Sequence[ChoiceLike]) -> list[Choice]:
    normalized = [c if isinstance(c, Choice) else Choice(value=c) for c in choices]
    if not any(not c.disabled for c in normalized):
        raise PromptError("At least one selectable choice is required")
    return normalized


def _dialog_label(choice: Choice) -> str:
    if choice.description:
        return f"{choice.label} - {choice.description}"
    return choice.label


def _parse_number(text: str) -> int | float | None:
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _editor_command() -> str:
    return (
        os.environ.get("VISUAL")
        or os.environ.get("EDITOR")
        or ("notepad" if IS_WINDOWS else "vi")
    )


def _quote_path(path: Path) -> str:
    return f'"{path}"' if IS_WINDOWS else shlex.quote(str(path))


class Prompter:
    """prompt_toolkit-backed implementation of the prompt operations.

    Example:
        ```python
        name = await prompt.input("Project name?", default="demo")
        if await prompt.confirm("Create it?"):
            kind = await prompt.select("Template", ["library", "cli"])
        ```
    """

    async def _ask(self, message: str, **kwargs: Any) -> str:
        session: PromptSession[str] = PromptSession()
        try:
            return await session.prompt_async(
                _question(message),
                validate_while_typing=False,
                **kwargs,
            )
        except EOFError as e:
            raise PromptCancelledError(f"{message!r}: no input") from e

    async def input(
        self,
        message: str,
        *,
        default: str = "",
        validate: ValidateFunc | None = None,
    ) -> str:
        """Ask for free text.

        Args:
            message: Question
            default: Pre-filled answer
            validate: Returns True, or an error message to show
        """
        validator = _CallableValidator(validate) if validate is not None else None
        return await self._ask(message, default=default, validator=validator)

    async def password(self, message: str, *, mask: bool = True) -> str:
        return await self._ask(message, is_password=mask)

    async def number(
        self,
        message: str,
        *,
        default: int | float | None = None,
        min_value: int | float | None = None,
        max_value: int | float | None = None,
    ) -> int | float | None:
        """Ask for a number.

        An empty answer returns ``default`` (required when there is none).
        Integral text yields an int, anything else a float.
        """

        def check(text: str) -> bool | str:
            text = text.strip()
            if not text:
                return True if default is not None else "A number is required"
            value = _parse_number(text)
            if value is None:
                return "Please enter a valid number"
            if min_value is not None and value < min_value:
                return f"Must be at least {min_value}"
            if max_value is not None and value > max_value:
                return f"Must be at most {max_value}"
            return True

        hint = f"{message} ({default})" if default is not None else message
        text = (await self._ask(hint, validator=_CallableValidator(check))).strip()
        if not text:
            return default
        return _parse_number(text)

    async def confirm(self, message: str, *, default: bool = True) -> bool:
        def check(text: str) -> bool | str:
            answer = text.strip().lower()
            return not answer or answer in _YES + _NO or "Please answer y or n"

        hint = "(Y/n)" if default else "(y/N)"
        answer = (
            await self._ask(f"{message} {hint}", validator=_CallableValidator(check))
        ).strip().lower()
        if not answer:
            return default
        return answer in _YES

    async def select(
        self,
        message: str,
        choices: Sequence[ChoiceLike],
        *,
        default: Any = None,
    ) -> Any:
        """Pick one choice from a radio-list dialog.

        Raises:
            PromptCancelledError: The dialog was cancelled
        """
        options = [c for c in _normalize_choices(choices) if not c.disabled]
        result = await radiolist_dialog(
            title=message,
            values=[(c.value, _dialog_label(c)) for c in options],
            default=default,
        ).run_async()
        if result is None:
            raise PromptCancelledError(f"{message!r}: cancelled")
        return result

    async def checkbox(
        self,
        message: str,
        choices: Sequence[ChoiceLike],
        *,
        default: Sequence[Any] | None = None,
    ) -> list[Any]:
        """Pick any number of choices from a checkbox-list dialog.

        Raises:
            PromptCancelledError: The dialog was cancelled
        """
        options = [c for c in _normalize_choices(choices) if not c.disabled]
        result = await checkboxlist_dialog(
            title=message,
            values=[(c.value, _dialog_label(c)) for c in options],
            default_values=list(default) if default is not None else None,
        ).run_async()
        if result is None:
            raise PromptCancelledError(f"{message!r}: cancelled")
        return list(result)

    async def search(self, message: str, choices: Sequence[ChoiceLike]) -> Any:
        """Type to filter the choices; the answer must match a choice label."""
        options = [c for c in _normalize_choices(choices) if not c.disabled]
        by_label = {c.label: c.value for c in options}
        completer = WordCompleter(
            list(by_label),
            ignore_case=True,
            match_middle=True,
            sentence=True,
        )

        def check(text: str) -> bool | str:
            return text.strip() in by_label or "Pick one of the listed choices"

        text = await self._ask(
            message,
            completer=completer,
            complete_while_typing=True,
            validator=_CallableValidator(check),
        )
        return by_label[text.strip()]

    async def rawlist(self, message: str, choices: Sequence[ChoiceLike]) -> Any:
        """Show a numbered list and answer with the number."""
        options = _normalize_choices(choices)

        print_formatted_text(_question(message))
        for index, choice in enumerate(options, start=1):
            suffix = " (disabled)" if choice.disabled else ""
            print_formatted_text(f"  {index}) {choice.label}{suffix}")

        def check(text: str) -> bool | str:
            text = text.strip()
            if not text.isdigit() or not 1 <= int(text) <= len(options):
                return f"Enter a number between 1 and {len(options)}"
            if options[int(text) - 1].disabled:
                return "That choice is disabled"
            return True

        text = await self._ask("Answer:", validator=_CallableValidator(check))
        return options[int(text.strip()) - 1].value

    async def editor(
        self,
        message: str,
        *,
        default: str = "",
        postfix: str = ".txt",
    ) -> str:
        """Edit text in the user's editor and return the saved contents.

        Raises:
            PromptError: The editor exited with a non-zero status
        """
        command = _editor_command()
        print_formatted_text(_question(message))

        fd, name = tempfile.mkstemp(prefix="maker-", suffix=postfix)
        path = Path(name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(default)

            logger.debug(f"Launching editor: {command} {path}")
            async with await anyio.open_process(
                f"{command} {_quote_path(path)}",
                stdin=None,
                stdout=None,
                stderr=None,
            ) as process:
                returncode = await process.wait()

            if returncode != 0:
                raise PromptError(f"Editor {command!r} exited with status {returncode}")
            return path.read_text(encoding="utf-8")
        finally:
            path.unlink(missing_ok=True)


prompt = Prompter()
