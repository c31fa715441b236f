"""prompt / spinner 测试。

prompt 测试通过 prompt_toolkit 的 pipe input 模拟键盘输入；
对话框 (select / checkbox) 通过 mock 替换。
"""

from __future__ import annotations

import io
import sys
from unittest import mock

import pytest
from prompt_toolkit.application import create_app_session
from prompt_toolkit.input import DummyInput, create_pipe_input
from prompt_toolkit.output import DummyOutput
from rich.console import Console

from maker.errors import PromptCancelledError, PromptError
from maker.ui import Choice, ProgressIndicator, Prompter, Spinner, spinner

IS_WINDOWS = sys.platform == "win32"


async def _answer(keys: str, method: str, *args, **kwargs):
    """向 Prompter 方法发送按键并返回答案。"""
    with create_pipe_input() as inp:
        inp.send_text(keys)
        with create_app_session(input=inp, output=DummyOutput()):
            return await getattr(Prompter(), method)(*args, **kwargs)


def _dialog(result):
    dialog = mock.MagicMock()
    dialog.return_value.run_async = mock.AsyncMock(return_value=result)
    return dialog


class TestChoice:
    """Choice 模型测试。"""

    def test_label_defaults_to_value(self):
        assert Choice(value=3).label == "3"

    def test_label_uses_name(self):
        assert Choice(value="x", name="Ex").label == "Ex"

    def test_frozen(self):
        choice = Choice(value=1)
        with pytest.raises(Exception):
            choice.value = 2


class TestTextPrompts:
    """文本类 prompt 测试。"""

    @pytest.mark.asyncio
    async def test_input(self):
        assert await _answer("hello\r", "input", "Name?") == "hello"

    @pytest.mark.asyncio
    async def test_input_default(self):
        """直接回车返回预填内容。"""
        assert await _answer("\r", "input", "Name?", default="demo") == "demo"

    @pytest.mark.asyncio
    async def test_input_validation_retry(self):
        """校验失败后可以修改输入。"""

        def validate(text: str):
            return text.startswith("ok") or "must start with ok"

        keys = "bad\r" + "\x7f" * 3 + "okay\r"
        answer = await _answer(keys, "input", "Value?", validate=validate)

        assert answer == "okay"

    @pytest.mark.asyncio
    async def test_password(self):
        assert await _answer("s3cret\r", "password", "Password?") == "s3cret"

    @pytest.mark.asyncio
    async def test_eof_cancels(self):
        """Ctrl-D 取消输入。"""
        with pytest.raises(PromptCancelledError):
            await _answer("\x04", "input", "Name?")


class TestNumber:
    """number prompt 测试。"""

    @pytest.mark.asyncio
    async def test_integer(self):
        answer = await _answer("42\r", "number", "Count?")
        assert answer == 42
        assert isinstance(answer, int)

    @pytest.mark.asyncio
    async def test_float(self):
        assert await _answer("2.5\r", "number", "Ratio?") == 2.5

    @pytest.mark.asyncio
    async def test_default(self):
        """空输入返回默认值。"""
        assert await _answer("\r", "number", "Count?", default=7) == 7

    @pytest.mark.asyncio
    async def test_invalid_then_valid(self):
        """非数字输入被拒绝。"""
        assert await _answer("abc\r" + "\x7f" * 3 + "12\r", "number", "Count?") == 12

    @pytest.mark.asyncio
    async def test_range(self):
        """超出范围的输入被拒绝。"""
        answer = await _answer(
            "99\r" + "\x7f" * 2 + "5\r", "number", "Count?", min_value=1, max_value=10
        )
        assert answer == 5


class TestConfirm:
    """confirm prompt 测试。"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "keys, default, expected",
        [
            ("y\r", False, True),
            ("yes\r", False, True),
            ("n\r", True, False),
            ("NO\r", True, False),
            ("\r", True, True),
            ("\r", False, False),
        ],
    )
    async def test_confirm(self, keys: str, default: bool, expected: bool):
        assert await _answer(keys, "confirm", "Continue?", default=default) is expected


class TestChoicePrompts:
    """选择类 prompt 测试。"""

    @pytest.mark.asyncio
    async def test_select(self):
        """select 使用 radiolist 对话框，跳过禁用项。"""
        dialog = _dialog("b")
        choices = ["a", Choice(value="b", description="second"), Choice(value="c", disabled=True)]

        with mock.patch("maker.ui.prompts.radiolist_dialog", dialog):
            answer = await Prompter().select("Pick", choices, default="b")

        assert answer == "b"
        kwargs = dialog.call_args.kwargs
        assert kwargs["title"] == "Pick"
        assert kwargs["values"] == [("a", "a"), ("b", "b - second")]
        assert kwargs["default"] == "b"

    @pytest.mark.asyncio
    async def test_select_cancelled(self):
        """对话框取消时抛出 PromptCancelledError。"""
        with mock.patch("maker.ui.prompts.radiolist_dialog", _dialog(None)):
            with pytest.raises(PromptCancelledError):
                await Prompter().select("Pick", ["a"])

    @pytest.mark.asyncio
    async def test_no_selectable_choice(self):
        """没有可选项时抛出 PromptError。"""
        with pytest.raises(PromptError, match="selectable"):
            await Prompter().select("Pick", [Choice(value="a", disabled=True)])

    @pytest.mark.asyncio
    async def test_checkbox(self):
        """checkbox 返回列表。"""
        dialog = _dialog(("a", "c"))

        with mock.patch("maker.ui.prompts.checkboxlist_dialog", dialog):
            answer = await Prompter().checkbox("Pick", ["a", "b", "c"], default=["a"])

        assert answer == ["a", "c"]
        assert dialog.call_args.kwargs["default_values"] == ["a"]

    @pytest.mark.asyncio
    async def test_checkbox_cancelled(self):
        with mock.patch("maker.ui.prompts.checkboxlist_dialog", _dialog(None)):
            with pytest.raises(PromptCancelledError):
                await Prompter().checkbox("Pick", ["a"])

    @pytest.mark.asyncio
    async def test_search(self):
        """search 返回与标签匹配的值。"""
        choices = [Choice(value=1, name="Alpha"), Choice(value=2, name="Beta")]

        assert await _answer("Beta\r", "search", "Find", choices) == 2

    @pytest.mark.asyncio
    async def test_rawlist(self):
        """rawlist 按编号选择。"""
        assert await _answer("2\r", "rawlist", "Pick", ["x", "y", "z"]) == "y"

    @pytest.mark.asyncio
    async def test_rawlist_disabled_rejected(self):
        """禁用项的编号被拒绝。"""
        choices = ["x", Choice(value="y", disabled=True), "z"]

        assert await _answer("2\r\x7f3\r", "rawlist", "Pick", choices) == "z"


@pytest.mark.skipif(IS_WINDOWS, reason="POSIX shell required")
class TestEditor:
    """editor prompt 测试。"""

    @pytest.mark.asyncio
    async def test_editor_result(self, monkeypatch: pytest.MonkeyPatch):
        """返回编辑器保存的内容。"""
        monkeypatch.setenv("VISUAL", "sh -c 'printf edited > \"$1\"' --")

        with create_app_session(input=DummyInput(), output=DummyOutput()):
            answer = await Prompter().editor("Message?", default="draft")

        assert answer == "edited"

    @pytest.mark.asyncio
    async def test_editor_keeps_default(self, monkeypatch: pytest.MonkeyPatch):
        """编辑器未修改时返回预填内容。"""
        monkeypatch.delenv("VISUAL", raising=False)
        monkeypatch.setenv("EDITOR", "true")

        with create_app_session(input=DummyInput(), output=DummyOutput()):
            answer = await Prompter().editor("Message?", default="draft")

        assert answer == "draft"

    @pytest.mark.asyncio
    async def test_editor_failure(self, monkeypatch: pytest.MonkeyPatch):
        """编辑器非零退出时抛出 PromptError。"""
        monkeypatch.setenv("VISUAL", "false")

        with create_app_session(input=DummyInput(), output=DummyOutput()):
            with pytest.raises(PromptError, match="exited with status 1"):
                await Prompter().editor("Message?")


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=80, color_system=None)


def _printed(console: Console) -> str:
    return console.file.getvalue()


class TestSpinner:
    """Spinner 测试。"""

    def test_protocol(self, console: Console):
        assert isinstance(spinner("x", console=console), ProgressIndicator)

    def test_default_console_is_stderr(self):
        assert Spinner().console.stderr is True

    def test_start_stop(self, console: Console):
        task = spinner("Working", console=console)

        assert task.start() is task
        assert task.is_spinning is True
        assert task.stop() is task
        assert task.is_spinning is False

    def test_restart(self, console: Console):
        """可以多次启动和停止。"""
        task = spinner("Working", console=console)
        task.start().stop()
        task.start("Again")

        assert task.is_spinning is True
        assert task.text == "Again"
        task.stop()

    def test_text_update(self, console: Console):
        task = spinner("One", console=console).start()
        task.text = "Two"

        assert task.text == "Two"
        task.stop()

    @pytest.mark.parametrize(
        "method, symbol",
        [("succeed", "✔"), ("fail", "✖"), ("warn", "⚠"), ("info", "ℹ")],
    )
    def test_final_states(self, console: Console, method: str, symbol: str):
        """终态输出符号和文字并停止。"""
        task = spinner("Building", console=console).start()

        getattr(task, method)("Finished")

        assert task.is_spinning is False
        assert f"{symbol} Finished" in _printed(console)

    def test_final_state_default_text(self, console: Console):
        """未指定文字时使用当前文字。"""
        spinner("Building", console=console).start().succeed()

        assert "✔ Building" in _printed(console)

    def test_clear(self, console: Console):
        """clear 停止且不留下输出。"""
        task = spinner("Building", console=console).start()
        task.clear()

        assert task.is_spinning is False
        assert "Building" not in _printed(console)

    def test_context_manager(self, console: Console):
        with spinner("Working", console=console) as task:
            assert task.is_spinning is True
        assert task.is_spinning is False

    def test_repr(self, console: Console):
        assert repr(spinner("Working", console=console)) == "Spinner(text='Working', stopped)"
