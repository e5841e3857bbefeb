from PyQt6.QtWidgets import QWidget, QSizePolicy  # type: ignore[import]
from PyQt6.QtGui import QPainter, QImage  # type: ignore[import]
from PyQt6.QtCore import Qt, QEvent, QSize  # type: ignore[import]

from .input_tracker import InputTracker
from .renderer import FramePlan, PanoramaRenderer


def _active_touch_points(event) -> list[tuple[float, float]]:
    from PyQt6.QtGui import QEventPoint  # type: ignore[import]
    pts: list[tuple[float, float]] = []
    for p in event.points():
        if p.state() == QEventPoint.State.Released:
            continue
        pos = p.position()
        pts.append((float(pos.x()), float(pos.y())))
    return pts


class PanoramaCanvas(QWidget):
    """파노라마 그리기 면. 입력 이벤트를 InputTracker 로 넘기고, 그리기는 PanoramaRenderer 에 위임."""

    def __init__(self, tracker: InputTracker, renderer: PanoramaRenderer, parent=None):
        super().__init__(parent)
        self._tracker = tracker
        self._renderer = renderer
        self._image = None  # type: QImage | None
        self.last_plan = None  # type: FramePlan | None
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)
        self.setAttribute(Qt.WidgetAttribute.WA_OpaquePaintEvent, True)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setCursor(Qt.CursorShape.OpenHandCursor)

    def image(self) -> QImage | None:
        return self._image

    def set_image(self, image: QImage | None) -> None:
        if image is not None and image.isNull():
            image = None
        self._image = image

    def set_dragging_cursor(self, dragging: bool) -> None:
        self.setCursor(Qt.CursorShape.ClosedHandCursor if dragging else Qt.CursorShape.OpenHandCursor)

    def sizeHint(self) -> QSize:
        return QSize(800, 500)

    # 매 그리기마다 현재 위젯 크기를 다시 읽는다(별도 resize 처리 없음)
    def paintEvent(self, event):
        p = QPainter(self)
        try:
            self.last_plan = self._renderer.paint(p, self.width(), self.height(), self._tracker.state, self._image)
        finally:
            p.end()

    # Events
    def mousePressEvent(self, event):
        if event.button() != Qt.MouseButton.LeftButton:
            return super().mousePressEvent(event)
        pos = event.position()
        self._tracker.press(pos.x(), pos.y())
        event.accept()

    def mouseMoveEvent(self, event):
        pos = event.position()
        if self._tracker.move(pos.x(), pos.y()):
            event.accept()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.MouseButton.LeftButton:
            return super().mouseReleaseEvent(event)
        self._tracker.release()
        event.accept()

    def wheelEvent(self, event):
        dy = event.angleDelta().y()
        # 일부 환경에서 y가 0이 되는 문제를 x로 폴백
        if dy == 0:
            dy = event.angleDelta().x()
        # Qt: 위로 굴림 = 양수 → 브라우저 관례(아래로 = 양수)로 변환
        self._tracker.wheel(-dy)
        # 기본 스크롤 동작 억제
        event.accept()

    def event(self, event):
        et = event.type()
        if et == QEvent.Type.TouchBegin:
            self._tracker.touch_start(_active_touch_points(event))
            event.accept()
            return True
        if et == QEvent.Type.TouchUpdate:
            self._tracker.touch_move(_active_touch_points(event))
            event.accept()
            return True
        if et in (QEvent.Type.TouchEnd, QEvent.Type.TouchCancel):
            self._tracker.touch_end()
            event.accept()
            return True
        return super().event(event)
