"""Command runner with live pass-through and bounded output capture.

maker runtime module

This module provides:
- Shell (or direct) subprocess spawning with caller-supplied spawn options
- Real-time pass-through of child stdout/stderr to the parent's streams
- Retention of only the last N lines of each stream for inspection
- Launch failures and non-zero exits reported as data, never raised

Key design points:
- run() validates synchronously and returns an asyncio.Task, so the call can
  be awaited (foreground) or left running on its own (background)
- RunResult.output is the full transcript and is never trimmed
- Trimming is idempotent; a final trim on exit makes the result respect
  max_lines even when the streaming check lagged a chunk behind
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import re
import shlex
import subprocess
import sys
from dataclasses import dataclass, field
from typing import Any

import anyio

from ..config import get_config
from ..errors import InvalidArgumentError

__all__ = [
    "ProcessRunner",
    "RunResult",
    "run",
    "run_sync",
    "trim_to_last_lines",
]

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"

CHUNK_SIZE = 4096

# Only used when the surrounding task is cancelled while the child still runs
DEFAULT_TERM_TIMEOUT = 2.0  # seconds to wait after terminate()
DEFAULT_KILL_TIMEOUT = 1.0  # seconds to wait after kill()

_TRAILING_NEWLINES = re.compile(r"[\r\n]*\n\Z")

# Un-awaited run() tasks stay referenced here until they finish
_background_tasks: set[asyncio.Task[RunResult]] = set()


@dataclass(frozen=True)
class RunResult:
    """Outcome of one run() invocation.

    Attributes:
        output: Full stdout followed by full stderr (never trimmed)
        stdout: Captured stdout, trimmed to the last max_lines lines
        stderr: Captured stderr, trimmed to the last max_lines lines
        code: Exit code, or None when the process never started
        is_error: True on non-zero exit or launch failure
        error: The launch failure, if any
    """

    output: str = ""
    stdout: str = ""
    stderr: str = ""
    code: int | None = None
    is_error: bool = False
    error: BaseException | None = None


def trim_to_last_lines(text: str, max_lines: int) -> str:
    """Keep only the last ``max_lines`` lines of ``text``.

    The trailing run of newlines is stripped before counting and a single
    ``\\n`` is put back afterwards. Lines are split on ``\\n`` only, so a
    ``\\r`` ending a retained line (CRLF output) is preserved.

    Args:
        text: Captured output
        max_lines: Number of trailing lines to keep (>= 1)

    Returns:
        The trimmed text; applying it again with the same limit is a no-op
    """
    if not text:
        return text

    body = _TRAILING_NEWLINES.sub("", text)
    had_trailing_newline = len(body) < len(text)

    lines = body.split("\n")
    if len(lines) > max_lines:
        body = "\n".join(lines[-max_lines:])

    return body + "\n" if had_trailing_newline else body


@dataclass
class _StreamCapture:
    """Full transcript plus a bounded tail of one child stream."""

    max_lines: int
    retained: str = ""
    chunks: list[str] = field(default_factory=list)

    def feed(self, text: str) -> None:
        self.chunks.append(text)
        self.retained += text
        if self.retained.count("\n") > self.max_lines:
            self.retained = trim_to_last_lines(self.retained, self.max_lines)

    @property
    def transcript(self) -> str:
        return "".join(self.chunks)

    def finish(self) -> str:
        return trim_to_last_lines(self.retained, self.max_lines)


def _validate_command(command: Any) -> None:
    if not isinstance(command, str) or not command.strip():
        raise InvalidArgumentError("run() requires a non-empty string command")


def _resolve_max_lines(max_lines: Any) -> int:
    if max_lines is None:
        return get_config().max_lines
    if isinstance(max_lines, bool) or not isinstance(max_lines, int) or max_lines < 1:
        raise InvalidArgumentError(
            f"max_lines must be a positive integer, got {max_lines!r}"
        )
    return max_lines


@dataclass
class ProcessRunner:
    """Run one command, streaming and capturing its output.

    Spawn options are forwarded verbatim to
    ``asyncio.create_subprocess_shell`` (or ``create_subprocess_exec`` when
    ``shell=False``). Only ``shell`` is interpreted here.

    Example:
        runner = ProcessRunner(max_lines=100)
        result = await runner.run("make test", cwd="/workspace")
        if result.is_error:
            print(result.stderr)
    """

    max_lines: int = field(default_factory=lambda: get_config().max_lines)
    term_timeout: float = DEFAULT_TERM_TIMEOUT
    kill_timeout: float = DEFAULT_KILL_TIMEOUT

    async def run(self, command: str, **spawn_options: Any) -> RunResult:
        """Run ``command`` to completion.

        This method:
        1. Spawns the command (through the shell unless ``shell=False``)
        2. Pumps stdout and stderr concurrently, writing every chunk to the
           parent's stream and keeping the last ``max_lines`` lines
        3. Waits for the process and trims both buffers one final time

        Args:
            command: Command line to execute
            **spawn_options: Forwarded to the asyncio subprocess factory

        Returns:
            RunResult; launch failures resolve with ``code=None`` and ``error``
        """
        shell, kwargs = self._build_subprocess_kwargs(spawn_options)

        try:
            process = await self._spawn(command, shell, kwargs)
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            logger.debug(f"Failed to start command {command!r}: {e}")
            return RunResult(code=None, is_error=True, error=e)

        logger.debug(
            f"Started subprocess pid={process.pid} "
            f"shell={shell} cwd={kwargs.get('cwd')}"
        )

        stdout = _StreamCapture(self.max_lines)
        stderr = _StreamCapture(self.max_lines)

        try:
            await asyncio.gather(
                self._pump(process.stdout, stdout, "stdout"),
                self._pump(process.stderr, stderr, "stderr"),
            )
            returncode = await process.wait()
        except asyncio.CancelledError:
            await self._terminate_process(process)
            raise

        logger.debug(
            f"Subprocess completed pid={process.pid} returncode={returncode}"
        )

        return RunResult(
            output=stdout.transcript + stderr.transcript,
            stdout=stdout.finish(),
            stderr=stderr.finish(),
            code=returncode,
            is_error=returncode != 0,
            error=None,
        )

    def _build_subprocess_kwargs(
        self, spawn_options: dict[str, Any]
    ) -> tuple[bool, dict[str, Any]]:
        """Split ``shell`` off the spawn options and apply stream defaults.

        Args:
            spawn_options: Caller-supplied options

        Returns:
            Tuple of (shell, kwargs for the asyncio subprocess factory)
        """
        kwargs = dict(spawn_options)
        shell = bool(kwargs.pop("shell", True))

        kwargs.setdefault("stdout", asyncio.subprocess.PIPE)
        kwargs.setdefault("stderr", asyncio.subprocess.PIPE)
        # A piped stdin nobody writes to would block children that read it
        kwargs.setdefault("stdin", asyncio.subprocess.DEVNULL)

        return shell, kwargs

    async def _spawn(
        self,
        command: str,
        shell: bool,
        kwargs: dict[str, Any],
    ) -> asyncio.subprocess.Process:
        if shell:
            return await asyncio.create_subprocess_shell(command, **kwargs)
        argv = shlex.split(command, posix=not IS_WINDOWS)
        return await asyncio.create_subprocess_exec(*argv, **kwargs)

    async def _pump(
        self,
        stream: asyncio.StreamReader | None,
        capture: _StreamCapture,
        sink_name: str,
    ) -> None:
        """Copy one child stream to the parent's stream and the capture.

        Args:
            stream: Child stream, or None when it was not piped
            capture: Capture buffer for this stream
            sink_name: "stdout" or "stderr" (looked up on sys per chunk)
        """
        if stream is None:
            return

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            chunk = await stream.read(CHUNK_SIZE)
            text = decoder.decode(chunk, final=not chunk)
            if text:
                capture.feed(text)
                sink = getattr(sys, sink_name)
                if sink is not None:
                    sink.write(text)
                    sink.flush()
            if not chunk:
                break

    async def _terminate_process(
        self,
        process: asyncio.subprocess.Process,
    ) -> None:
        """Terminate the child, then kill it if it does not exit in time.

        Args:
            process: The subprocess
        """
        if process.returncode is not None:
            return

        pid = process.pid
        logger.debug(f"Terminating subprocess pid={pid}")

        try:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=self.term_timeout)
                return
            except asyncio.TimeoutError:
                pass

            logger.debug(f"Force killing subprocess pid={pid}")
            process.kill()
            try:
                await asyncio.wait_for(process.wait(), timeout=self.kill_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Subprocess did not exit after kill pid={pid}")

        except ProcessLookupError:
            logger.debug(f"Subprocess already exited pid={pid}")


def run(
    command: str,
    *,
    max_lines: int | None = None,
    **spawn_options: Any,
) -> asyncio.Task[RunResult]:
    """Run a shell command, streaming its output while capturing the tail.

    Must be called while an event loop is running. Awaiting the returned task
    waits for completion (foreground); leaving it un-awaited lets the command
    run in the background.

    Args:
        command: Shell command to execute
        max_lines: Lines retained in the captured stdout/stderr
            (default ``Config.max_lines``); never forwarded to the spawn call
        **spawn_options: Forwarded to the subprocess factory
            (e.g. ``cwd``, ``env``, ``stdout``, ``shell``). stdout and stderr
            default to pipes; stdin defaults to ``DEVNULL`` (pass ``stdin=``
            to override)

    Returns:
        Task resolving to a RunResult

    Raises:
        InvalidArgumentError: If command is not a non-empty string or
            max_lines is not a positive integer
    """
    _validate_command(command)
    runner = ProcessRunner(max_lines=_resolve_max_lines(max_lines))

    loop = asyncio.get_running_loop()
    task = loop.create_task(runner.run(command, **spawn_options))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


def run_sync(command: str, **kwargs: Any) -> RunResult:
    """Blocking variant of run() for code without an event loop.

    Args:
        command: Shell command to execute
        **kwargs: Same keyword arguments as run()

    Returns:
        RunResult
    """
    _validate_command(command)

    async def _run() -> RunResult:
        return await run(command, **kwargs)

    return anyio.run(_run)
