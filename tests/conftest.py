"""Pytest 配置和 fixtures。"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

# 项目根目录
PROJECT_ROOT = Path(__file__).parent.parent

# 添加 src 目录到 Python 路径
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from maker.config import reload_config  # noqa: E402


@pytest.fixture
def project_root() -> Path:
    """项目根目录。"""
    return PROJECT_ROOT


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """每个测试使用独立的存储路径和干净的配置。"""
    for name in (
        "MAKER_MAX_LINES",
        "MAKER_SHUTDOWN_MESSAGE",
        "MAKER_REQUIRE_TTY",
        "MAKER_LOG_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("MAKER_STORE_PATH", str(tmp_path / "config.json"))
    monkeypatch.setenv("MAKER_SCHEMA_PATH", str(tmp_path / "storage_schema.pyi"))

    config = reload_config()
    yield config

    logging.getLogger("maker").setLevel(logging.NOTSET)
    monkeypatch.undo()
    reload_config()


@pytest.fixture
def store_path(isolated_config) -> Path:
    """测试用存储文件路径。"""
    return isolated_config.store_path


@pytest.fixture
def schema_path(isolated_config) -> Path:
    """测试用类型存根路径。"""
    return isolated_config.schema_path
