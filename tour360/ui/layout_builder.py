from __future__ import annotations

from PyQt6.QtWidgets import QHBoxLayout, QPushButton, QWidget, QLabel, QVBoxLayout  # type: ignore[import]
from PyQt6.QtCore import Qt  # type: ignore[import]

HELP_TEXT = "Drag mouse to look around | Scroll to zoom | Press R to reset"

_BUTTON_STYLE = (
    "QPushButton { padding: 10px 15px; background: rgba(255,255,255,0.8); border: none;"
    " border-radius: 5px; font-weight: bold; color: #000000; }"
)
_INFO_STYLE = (
    "color: white; font-size: 12px; background: rgba(0,0,0,0.5); padding: 10px; border-radius: 5px;"
)


def _make_button(text: str, tip: str, slot) -> QPushButton:
    btn = QPushButton(text)
    btn.setToolTip(tip)
    btn.setStyleSheet(_BUTTON_STYLE)
    btn.setCursor(Qt.CursorShape.PointingHandCursor)
    # 버튼이 키 포커스를 가져가면 Space 가 버튼 클릭으로 소비되므로 포커스 비활성
    btn.setFocusPolicy(Qt.FocusPolicy.NoFocus)
    btn.clicked.connect(slot)
    return btn


def build_tour_surface(viewer, canvas) -> None:
    """그리기 면 + 조작 버튼 + 도움말 캡션. 뷰어 인스턴스당 한 번만 호출된다."""
    viewer.main_layout = QVBoxLayout(viewer)
    viewer.main_layout.setContentsMargins(0, 0, 0, 0)
    viewer.main_layout.setSpacing(0)
    viewer.main_layout.addWidget(canvas)

    # 하단 중앙 조작 버튼(오버레이)
    viewer.controls = QWidget(viewer)
    viewer.controls.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground, True)
    viewer.button_layout = QHBoxLayout(viewer.controls)
    viewer.button_layout.setContentsMargins(0, 0, 0, 0)
    viewer.button_layout.setSpacing(10)

    viewer.zoom_in_button = _make_button("+", "Zoom In", viewer.zoom_in)
    viewer.zoom_out_button = _make_button("-", "Zoom Out", viewer.zoom_out)
    viewer.reset_button = _make_button("Reset", "Reset View", viewer.reset_view)
    viewer.fullscreen_button = _make_button("Fullscreen", "Fullscreen", viewer.toggle_fullscreen)
    for btn in (viewer.zoom_in_button, viewer.zoom_out_button, viewer.reset_button, viewer.fullscreen_button):
        viewer.button_layout.addWidget(btn)

    # 좌상단 도움말 캡션(정적)
    viewer.info_label = QLabel(HELP_TEXT, viewer)
    viewer.info_label.setStyleSheet(_INFO_STYLE)
    viewer.info_label.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents, True)

    viewer.controls.raise_()
    viewer.info_label.raise_()


def position_overlays(viewer) -> None:
    w = viewer.width()
    h = viewer.height()
    ctrl = viewer.controls
    ctrl.adjustSize()
    cw = ctrl.sizeHint().width()
    ch = ctrl.sizeHint().height()
    ctrl.setGeometry(max(0, (w - cw) // 2), max(0, h - 20 - ch), cw, ch)
    info = viewer.info_label
    info.adjustSize()
    info.move(10, 10)
