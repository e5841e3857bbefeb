import pytest

from tour360.storage.settings_store import TourConfig
from tour360.ui.main_window import TourWindow

from conftest import process_events


@pytest.fixture
def window(qapp):
    w = TourWindow(config=TourConfig())
    yield w
    w.close()
    w.deleteLater()
    process_events()


def test_window_mounts_viewer(window):
    assert window.viewer is not None
    assert window.viewer.parentWidget() is window.tour_container
    assert "Yaw 0.0°" in window.status_label.text()
    assert "Zoom 100%" in window.status_label.text()


def test_status_follows_view_changes(window):
    window.viewer.look_right()
    window.viewer.zoom_in()
    text = window.status_label.text()
    assert "Yaw 5.0°" in text
    assert "Zoom 110%" in text
    assert "[Fullscreen]" not in text


def test_window_loads_given_image(qapp, pano_file):
    w = TourWindow(image_url=str(pano_file), config=TourConfig())
    try:
        w.viewer.image_service.wait_for_done(5000)
        process_events()
        assert w.viewer.current_image() is not None
        assert w.viewer.image_url == str(pano_file)
    finally:
        w.close()
        w.deleteLater()
        process_events()
