import pytest
from PyQt6.QtGui import QColor, QImage

from tour360.ui.renderer import PanoramaRenderer, plan_frame, wrap_offsets
from tour360.ui.state import ViewState


def _close(c: QColor, hex_color: str, tol: int = 6) -> bool:
    e = QColor(hex_color)
    return abs(c.red() - e.red()) <= tol and abs(c.green() - e.green()) <= tol and abs(c.blue() - e.blue()) <= tol


@pytest.fixture
def pano(pano_file):
    img = QImage(str(pano_file))
    assert not img.isNull()
    return img


def test_wrap_offsets_at_origin():
    assert wrap_offsets(0, 2048) == (0.0, 2048.0)


def test_wrap_offsets_quarter_turn():
    a, b = wrap_offsets(90, 2048)
    assert a == pytest.approx(-512.0)
    assert b == pytest.approx(1536.0)
    assert b - a == pytest.approx(2048.0)


def test_plan_without_image_is_placeholder():
    plan = plan_frame(ViewState(), 800, 500, None)
    assert plan.placeholder is True
    assert plan.image_offsets is None
    assert plan.rotation_degrees == 0.0


def test_plan_with_image_uses_offsets():
    plan = plan_frame(ViewState(yaw=180), 800, 500, (1000, 500))
    assert plan.placeholder is False
    assert plan.image_offsets == (pytest.approx(-500.0), pytest.approx(500.0))


def test_plan_ignores_pitch():
    a = plan_frame(ViewState(yaw=30, pitch=0), 800, 500, (1000, 500))
    b = plan_frame(ViewState(yaw=30, pitch=60), 800, 500, (1000, 500))
    assert a == b


def test_composed_projection_rotates_by_yaw():
    plan = plan_frame(ViewState(yaw=45), 800, 500, (1000, 500), projection="composed")
    assert plan.rotation_degrees == 45.0
    assert plan_frame(ViewState(yaw=45), 800, 500, None, projection="composed").rotation_degrees == 45.0
    assert plan_frame(ViewState(yaw=45), 800, 500, (1000, 500), projection="offset").rotation_degrees == 0.0


def test_placeholder_pixels(qapp):
    r = PanoramaRenderer()
    out = r.render_image(200, 100, ViewState(), None)
    assert _close(out.pixelColor(0, 0), "#1a5f7a")
    assert _close(out.pixelColor(199, 99), "#0d3a4a")


def test_null_image_degrades_to_placeholder(qapp):
    r = PanoramaRenderer()
    plan = r.plan(ViewState(), 200, 100, QImage())
    assert plan.placeholder is True


def test_image_drawn_twice_at_origin(qapp, pano):
    r = PanoramaRenderer()
    out = r.render_image(200, 150, ViewState(), pano)
    assert _close(out.pixelColor(50, 50), "#ff0000")
    assert _close(out.pixelColor(150, 50), "#0000ff")
    # 이미지 아래 영역은 배경색
    assert _close(out.pixelColor(10, 140), "#1a1a1a")


def test_image_wraps_seamlessly(qapp, pano):
    r = PanoramaRenderer()
    out = r.render_image(200, 100, ViewState(yaw=90), pano)
    # 첫 사본(-50): x=10 → 원본 x=60(빨강), x=120 → 원본 x=170(파랑)
    assert _close(out.pixelColor(10, 50), "#ff0000")
    assert _close(out.pixelColor(120, 50), "#0000ff")
    # 두 번째 사본(150): x=160 → 원본 x=10(빨강)
    assert _close(out.pixelColor(160, 50), "#ff0000")


def test_composed_projection_rotates_frame(qapp, pano):
    r = PanoramaRenderer(projection="composed")
    out = r.render_image(200, 100, ViewState(yaw=180), pano)
    assert _close(out.pixelColor(20, 20), "#ff0000")
    assert _close(out.pixelColor(180, 20), "#0000ff")


def test_zero_sized_surface_draws_nothing(qapp, pano):
    r = PanoramaRenderer()
    out = QImage(10, 10, QImage.Format.Format_ARGB32)
    out.fill(QColor(1, 2, 3))
    from PyQt6.QtGui import QPainter
    p = QPainter(out)
    try:
        plan = r.paint(p, 0, 0, ViewState(), pano)
    finally:
        p.end()
    assert plan.width == 0
    assert _close(out.pixelColor(5, 5), "#010203", tol=0)
