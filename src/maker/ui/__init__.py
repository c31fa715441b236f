"""Terminal UI adapters: prompts (prompt_toolkit) and spinners (rich)."""

from __future__ import annotations

from .prompts import Choice, Prompter, prompt
from .spinners import ProgressIndicator, Spinner, spinner

__all__ = [
    "Choice",
    "Prompter",
    "prompt",
    "ProgressIndicator",
    "Spinner",
    "spinner",
]
