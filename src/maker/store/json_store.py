"""JSON file-backed key/value store.

The whole file is read and rewritten on every call; there is no locking.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from ..config import get_config
from ..errors import InvalidArgumentError, StoreCorruptedError
from .schema import write_schema

__all__ = ["JsonStore", "save", "load"]

logger = logging.getLogger(__name__)


def _check_key(key: Any, operation: str) -> None:
    if not isinstance(key, str) or not key:
        raise InvalidArgumentError(f"{operation} requires a non-empty string key")


class JsonStore:
    """Key/value store persisted as one JSON object.

    Example:
        ```python
        store = JsonStore(Path("settings.json"))
        store.save("theme", "dark")
        store.load("theme")            # "dark"
        store.load("missing", "light") # "light"
        ```

    Attributes:
        path: JSON file
        schema_path: Typing stub regenerated on every save (None = disabled)
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        schema_path: str | os.PathLike[str] | None = None,
    ) -> None:
        self.path = Path(path)
        self.schema_path = Path(schema_path) if schema_path is not None else None

    def load(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default`` if absent.

        Raises:
            InvalidArgumentError: key is not a non-empty string
            StoreCorruptedError: the file holds invalid JSON
        """
        _check_key(key, "load(key)")
        return self._read().get(key, default)

    def save(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, overwriting any previous value.

        Raises:
            InvalidArgumentError: key is not a non-empty string
            TypeError: value is not JSON serializable
            StoreCorruptedError: the existing file holds invalid JSON
        """
        _check_key(key, "save(key, value)")
        # Fail before touching the file
        json.dumps(value)

        data = self._read()
        data[key] = value
        self._write(data)
        logger.debug(f"Saved key {key!r} to {self.path}")

    def delete(self, key: str) -> bool:
        """Remove ``key``; returns False if it was not stored."""
        _check_key(key, "delete(key)")
        data = self._read()
        if key not in data:
            return False
        del data[key]
        self._write(data)
        return True

    def keys(self) -> list[str]:
        return sorted(self._read())

    def _read(self) -> dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}

        if not text.strip():
            return {}

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StoreCorruptedError(str(self.path), f"invalid JSON ({e})") from e

        if not isinstance(data, dict):
            raise StoreCorruptedError(
                str(self.path),
                f"expected a JSON object, found {type(data).__name__}",
            )
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        if self.schema_path is not None:
            write_schema(data, self.schema_path, source=self.path.name)

    def __repr__(self) -> str:
        return f"JsonStore(path={self.path}, schema_path={self.schema_path})"


def _default_store() -> JsonStore:
    config = get_config()
    return JsonStore(config.store_path, config.schema_path)


def save(key: str, value: Any) -> None:
    """Save ``value`` under ``key`` in the configured store (MAKER_STORE_PATH)."""
    _default_store().save(key, value)


def load(key: str, default: Any = None) -> Any:
    """Load ``key`` from the configured store; ``default`` when file or key is missing."""
    return _default_store().load(key, default)
