from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

import pytest
from PySide6 import QtWidgets

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qt_app() -> Iterator[QtWidgets.QApplication]:
    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication([])
    yield app


@pytest.fixture()
def config_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the platform config root (APPDATA / XDG_CONFIG_HOME) at a temp dir."""
    root = tmp_path / "config"
    monkeypatch.setenv("APPDATA", str(root))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(root))
    return root


@pytest.fixture()
def appsettings_logger() -> Iterator[logging.Logger]:
    """Restore the package logger after a test configures it."""
    logger = logging.getLogger("appsettings")
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
