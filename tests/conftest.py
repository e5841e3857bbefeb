import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt6.QtCore import QCoreApplication
from PyQt6.QtGui import QColor, QImage
from PyQt6.QtWidgets import QApplication

from tour360.storage.settings_store import TourConfig


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


def process_events(rounds: int = 5) -> None:
    for _ in range(rounds):
        QCoreApplication.processEvents()


@pytest.fixture
def config():
    return TourConfig()


@pytest.fixture
def pano_file(tmp_path, qapp):
    """좌측 절반 빨강 / 우측 절반 파랑 200x100 PNG."""
    img = QImage(200, 100, QImage.Format.Format_RGB32)
    img.fill(QColor(255, 0, 0))
    for x in range(100, 200):
        for y in range(100):
            img.setPixelColor(x, y, QColor(0, 0, 255))
    path = tmp_path / "pano.png"
    assert img.save(str(path), "PNG")
    return path
