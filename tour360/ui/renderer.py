from __future__ import annotations

from dataclasses import dataclass

from PyQt6.QtCore import QPointF, QRectF, Qt  # type: ignore[import]
from PyQt6.QtGui import QBrush, QColor, QFont, QImage, QLinearGradient, QPainter  # type: ignore[import]

from .state import ViewState

PLACEHOLDER_TEXT = "360 Virtual Tour - Load Image URL"
GRADIENT_START = "#1a5f7a"
GRADIENT_END = "#0d3a4a"
BACKGROUND = "#1a1a1a"


def wrap_offsets(yaw: float, image_width: float) -> tuple[float, float]:
    """이미지를 두 번 그릴 x 위치. 두 사본이 한 장 너비만큼 떨어져 있어 이음새가 보이지 않는다."""
    h = (float(yaw) / 360.0) * float(image_width)
    return -h, float(image_width) - h


@dataclass(frozen=True)
class FramePlan:
    width: int
    height: int
    rotation_degrees: float
    placeholder: bool
    image_offsets: tuple[float, float] | None = None


def plan_frame(state: ViewState, width: int, height: int,
               image_size: tuple[int, int] | None, projection: str = "offset") -> FramePlan:
    # composed: 전체 프레임 회전 + 가로 오프셋(원래 동작), offset: 가로 오프셋만
    rotation = float(state.yaw) if projection == "composed" else 0.0
    w = max(0, int(width))
    h = max(0, int(height))
    if not image_size or image_size[0] <= 0 or image_size[1] <= 0:
        return FramePlan(w, h, rotation, True, None)
    return FramePlan(w, h, rotation, False, wrap_offsets(state.yaw, image_size[0]))


class PanoramaRenderer:
    def __init__(self, projection: str = "offset", placeholder_text: str = PLACEHOLDER_TEXT,
                 gradient_start: str = GRADIENT_START, gradient_end: str = GRADIENT_END,
                 background: str = BACKGROUND):
        self.projection = projection
        self.placeholder_text = placeholder_text
        self.gradient_start = QColor(gradient_start)
        self.gradient_end = QColor(gradient_end)
        self.background = QColor(background)

    @classmethod
    def from_config(cls, cfg) -> "PanoramaRenderer":
        return cls(
            projection=cfg.projection,
            placeholder_text=cfg.placeholder_text,
            gradient_start=cfg.gradient_start,
            gradient_end=cfg.gradient_end,
            background=cfg.background,
        )

    def plan(self, state: ViewState, width: int, height: int, image: QImage | None) -> FramePlan:
        size = None
        if image is not None and not image.isNull():
            size = (int(image.width()), int(image.height()))
        return plan_frame(state, width, height, size, self.projection)

    def paint(self, painter: QPainter, width: int, height: int, state: ViewState,
              image: QImage | None) -> FramePlan:
        plan = self.plan(state, width, height, image)
        if plan.width <= 0 or plan.height <= 0:
            return plan
        painter.save()
        try:
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
            painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
            if plan.rotation_degrees:
                cx = plan.width / 2.0
                cy = plan.height / 2.0
                painter.translate(cx, cy)
                painter.rotate(plan.rotation_degrees)
                painter.translate(-cx, -cy)
            painter.fillRect(QRectF(0, 0, plan.width, plan.height), self.background)
            if plan.placeholder:
                self._paint_placeholder(painter, plan)
            else:
                a, b = plan.image_offsets
                painter.drawImage(QPointF(a, 0.0), image)
                painter.drawImage(QPointF(b, 0.0), image)
        finally:
            painter.restore()
        return plan

    def _paint_placeholder(self, painter: QPainter, plan: FramePlan) -> None:
        grad = QLinearGradient(0.0, 0.0, float(plan.width), float(plan.height))
        grad.setColorAt(0.0, self.gradient_start)
        grad.setColorAt(1.0, self.gradient_end)
        rect = QRectF(0, 0, plan.width, plan.height)
        painter.fillRect(rect, QBrush(grad))
        font = QFont("Arial")
        font.setPixelSize(20)
        painter.setFont(font)
        painter.setPen(QColor("white"))
        painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, self.placeholder_text)

    def render_image(self, width: int, height: int, state: ViewState, image: QImage | None) -> QImage:
        """오프스크린 프레임(테스트/스냅샷용)."""
        out = QImage(max(1, int(width)), max(1, int(height)), QImage.Format.Format_ARGB32)
        out.fill(QColor(0, 0, 0))
        p = QPainter(out)
        try:
            self.paint(p, width, height, state, image)
        finally:
            p.end()
        return out
