import os
import time
from typing import Callable

import pytest
from PyQt5.QtWidgets import QApplication

# Ensure headless Qt on CI/CLI runs.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qt_app():
    """Ensure a single QApplication exists for Qt-based tests."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def wait_until(qt_app) -> Callable[..., bool]:
    """Process Qt events until a condition holds or the time runs out."""

    def waiter(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            qt_app.processEvents()
            if predicate():
                return True
            time.sleep(0.005)
        return predicate()

    return waiter
