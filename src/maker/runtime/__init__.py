"""Runtime module for command execution.

This module runs shell commands with live output pass-through and bounded
capture of the most recent output lines.
"""

from __future__ import annotations

from .process_runner import ProcessRunner, RunResult, run, run_sync, trim_to_last_lines

__all__ = [
    "ProcessRunner",
    "RunResult",
    "run",
    "run_sync",
    "trim_to_last_lines",
]
