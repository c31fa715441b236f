"""Typing stub generation for the key/value store.

Every save() rewrites a ``.pyi`` stub declaring ``StorageSchema``, a
``TypedDict`` with one entry per stored key. The functional TypedDict syntax
is used so keys that are not identifiers ("key with space") stay legal.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

__all__ = ["infer_type", "render_schema", "write_schema", "clear_schema"]

logger = logging.getLogger(__name__)

SCHEMA_NAME = "StorageSchema"
HEADER = "# Auto-generated by maker from {source}; do not edit."

_NON_WORD = re.compile(r"[^0-9a-zA-Z]+")


def infer_type(value: Any) -> str:
    """Infer a type expression for a JSON value.

    Objects are not expanded here; see render_schema() for the one level of
    object expansion done for top-level values.
    """
    if value is None:
        return "None"
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "str"
    if isinstance(value, (list, tuple)):
        return _infer_list(value)
    if isinstance(value, Mapping):
        return "dict[str, Any]"
    return "Any"


def _infer_list(items: list[Any] | tuple[Any, ...]) -> str:
    if not items:
        return "list[Any]"

    seen: list[str] = []
    for item in items:
        item_type = infer_type(item)
        if item_type not in seen:
            seen.append(item_type)

    return f"list[{' | '.join(seen)}]"


def _value_type_name(key: str, taken: set[str]) -> str:
    words = [w for w in _NON_WORD.split(key) if w]
    base = "_" + "".join(w[:1].upper() + w[1:] for w in words) + "Value"
    name = base
    suffix = 2
    while name in taken:
        name = f"{base}{suffix}"
        suffix += 1
    taken.add(name)
    return name


def _render_typeddict(name: str, fields: list[tuple[str, str]], total: bool) -> list[str]:
    if not fields:
        tail = "" if total else ", total=False"
        return [f'{name} = TypedDict("{name}", {{}}{tail})']

    lines = [f"{name} = TypedDict(", f'    "{name}",', "    {"]
    for key, type_expr in fields:
        lines.append(f"        {json.dumps(key, ensure_ascii=False)}: {type_expr},")
    lines.append("    },")
    if not total:
        lines.append("    total=False,")
    lines.append(")")
    return lines


def render_schema(data: Mapping[str, Any], source: str = "store") -> str:
    """Render the stub text for the stored ``data``.

    Keys are sorted alphabetically. A non-empty object value gets its own
    shallow TypedDict; its nested values are inferred with infer_type().

    Args:
        data: Decoded store contents
        source: Store location, mentioned in the header

    Returns:
        Stub file contents
    """
    taken = {SCHEMA_NAME}
    value_types: list[list[str]] = []
    entries: list[tuple[str, str]] = []

    for key in sorted(data):
        value = data[key]
        if isinstance(value, Mapping) and value:
            type_name = _value_type_name(key, taken)
            fields = [(k, infer_type(v)) for k, v in sorted(value.items())]
            value_types.append(_render_typeddict(type_name, fields, total=True))
            entries.append((key, type_name))
        else:
            entries.append((key, infer_type(value)))

    lines = [
        HEADER.format(source=source),
        "",
        "from typing import Any, TypedDict",
        "",
    ]
    for block in value_types:
        lines.extend(block)
        lines.append("")
    lines.extend(_render_typeddict(SCHEMA_NAME, entries, total=False))
    return "\n".join(lines) + "\n"


def write_schema(data: Mapping[str, Any], path: Path, source: str = "store") -> bool:
    """Rewrite the stub at ``path``; failures are logged, not raised.

    Returns:
        True when the stub was written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_schema(data, source), encoding="utf-8")
    except OSError as e:
        logger.warning(f"Could not write storage schema {path}: {e}")
        return False
    logger.debug(f"Storage schema written: {path} ({len(data)} keys)")
    return True


def clear_schema(path: Path) -> bool:
    """Delete the stub at ``path``; a missing file is fine, other failures are logged.

    Returns:
        True when no stub remains
    """
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not clear storage schema {path}: {e}")
        return False
    return True
