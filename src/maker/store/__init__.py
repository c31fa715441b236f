"""Persisted key/value store with a generated typing stub."""

from __future__ import annotations

from .json_store import JsonStore, load, save
from .schema import clear_schema, infer_type, render_schema, write_schema

__all__ = [
    "JsonStore",
    "load",
    "save",
    "clear_schema",
    "infer_type",
    "render_schema",
    "write_schema",
]
