"""Shared pytest fixtures for the Qt application and key derivation."""

import os
import sys

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication  # noqa: E402
from PySide6.QtGui import QGuiApplication  # noqa: E402

import journal_crypto  # noqa: E402


@pytest.fixture(scope="session")
def app():
    """Provide a single QGuiApplication for all tests."""
    instance = QGuiApplication.instance()
    if instance is None:
        instance = QGuiApplication(sys.argv)

    yield instance

    QCoreApplication.processEvents()


@pytest.fixture(autouse=True)
def fast_kdf():
    """Use a cheap Argon2 profile so tests do not spend seconds per save."""
    # Patched with a private MonkeyPatch so a test's own monkeypatch.undo()
    # does not switch KDF parameters between a save and the matching load.
    patcher = pytest.MonkeyPatch()
    patcher.setitem(journal_crypto.KDF_PARAMS, "time_cost", 1)
    patcher.setitem(journal_crypto.KDF_PARAMS, "memory_cost", 8 * 1024)
    yield
    patcher.undo()


@pytest.fixture
def datadir(tmp_path, monkeypatch):
    """Isolated data directory, also exported through the environment."""
    path = tmp_path / "data"
    path.mkdir()
    monkeypatch.setenv("DEVJOURNAL_DATA_DIR", str(path))
    return path
