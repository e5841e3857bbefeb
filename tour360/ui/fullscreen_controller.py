from __future__ import annotations

from typing import TYPE_CHECKING

from PyQt6.QtCore import Qt  # type: ignore[import]

if TYPE_CHECKING:
    from .tour_viewer import TourViewer


class FullscreenRequestError(RuntimeError):
    """호스트가 전체화면 요청을 거부함."""


def enter_fullscreen(viewer: "TourViewer") -> None:
    """뷰어 표면을 독립 최상위 창으로 분리해 전체화면으로 표시한다.

    표면이 화면에 표시되어 있지 않으면 요청을 거부한다(재시도 없음).
    """
    if not viewer.isVisible():
        raise FullscreenRequestError("viewer surface is not visible")
    viewer.release_surface_height()
    viewer.setWindowFlag(Qt.WindowType.Window, True)
    viewer.showFullScreen()
    if not viewer.isFullScreen():
        # 원상 복구 후 거부로 처리
        viewer.setWindowFlag(Qt.WindowType.Window, False)
        viewer.show()
        viewer.apply_surface_height()
        raise FullscreenRequestError("host did not enter fullscreen")


def exit_fullscreen(viewer: "TourViewer") -> None:
    """전체화면 종료: 원래 부모 레이아웃 안으로 되돌린다."""
    if viewer.isFullScreen():
        viewer.showNormal()
    if viewer.isWindow() and viewer.parentWidget() is not None:
        viewer.setWindowFlag(Qt.WindowType.Window, False)
        viewer.show()
    viewer.apply_surface_height()
