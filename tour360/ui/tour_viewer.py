from __future__ import annotations

from PyQt6.QtWidgets import QWidget, QVBoxLayout  # type: ignore[import]
from PyQt6.QtCore import QEvent, pyqtSignal  # type: ignore[import]
from PyQt6.QtGui import QImage  # type: ignore[import]

from .state import ViewState, zoom_bounds
from .input_tracker import InputTracker
from .renderer import PanoramaRenderer
from .pano_view import PanoramaCanvas
from .layout_builder import build_tour_surface, position_overlays
from .fullscreen_controller import FullscreenRequestError, enter_fullscreen as fs_enter_fullscreen, exit_fullscreen as fs_exit_fullscreen
from ..services.image_service import ImageService
from ..shortcuts.shortcuts_manager import (
    apply_shortcuts,
    mark_active,
    refresh_shortcuts,
    set_global_shortcuts_enabled,
    unregister_viewer,
)
from ..storage.settings_store import TourConfig, load_config
from ..utils.logging_setup import get_logger

DEFAULT_CONTAINER = "tour360Viewer"
_QWIDGETSIZE_MAX = 16777215

_log = get_logger("ui.mount")


class TourViewer(QWidget):
    """360° 투어 뷰어: 그리기 면과 조작 버튼을 소유하고 입력 → 상태 → 렌더를 연결한다."""

    viewChanged = pyqtSignal(object)  # ViewState snapshot
    imageLoaded = pyqtSignal(str, bool)  # url, success

    def __init__(self, mount: QWidget, image_url: str | None = None, config: TourConfig | None = None,
                 settings=None):
        super().__init__(mount)
        self.setObjectName("tour360Wrapper")
        self.log = get_logger("ui.TourViewer")
        self.config = config or load_config()
        self.settings = settings
        self._mount = mount
        self._fs_transition = False
        self._shortcuts = []
        self._global_shortcuts_enabled = True
        self._image_url = None  # type: str | None

        cfg = self.config
        min_s, max_s = zoom_bounds(cfg.base_height, cfg.min_height, cfg.max_height)
        self.state = ViewState(min_scale=min_s, max_scale=max_s)
        self.tracker = InputTracker(
            self.state,
            on_change=self.update_view,
            on_fullscreen=self.toggle_fullscreen,
            on_drag_changed=self._on_drag_changed,
            sensitivity=cfg.sensitivity,
            key_step=cfg.key_step_degrees,
            zoom_in_factor=cfg.zoom_in_factor,
            zoom_out_factor=cfg.zoom_out_factor,
        )
        self.renderer = PanoramaRenderer.from_config(cfg)
        self.image_service = ImageService.from_config(cfg, parent=self)
        self.image_service.loaded.connect(self._on_image_loaded)

        self.canvas = PanoramaCanvas(self.tracker, self.renderer, self)
        build_tour_surface(self, self.canvas)
        # 사용자가 만진 뷰어가 겹치는 단축키를 받는다
        for w in (self.canvas, self.zoom_in_button, self.zoom_out_button, self.reset_button, self.fullscreen_button):
            w.installEventFilter(self)

        lay = mount.layout()
        if lay is None:
            lay = QVBoxLayout(mount)
            lay.setContentsMargins(0, 0, 0, 0)
        lay.addWidget(self)

        self.apply_surface_height()
        apply_shortcuts(self)
        self.log.info("tour_init | mount=%s | projection=%s | scale=[%.2f, %.2f]",
                      mount.objectName() or "-", cfg.projection, min_s, max_s)
        if image_url:
            self.load_tour_image(image_url)
        else:
            self.update_view()

    # ----- public operations -----
    def load_tour_image(self, url: str) -> None:
        # 진행 중인 드래그 세션은 건드리지 않음. 새 이미지가 도착할 때까지 이전 프레임 유지
        self._image_url = url
        gen = self.image_service.load_async(url)
        self.log.info("tour_image_request | url=%s | gen=%d", url, gen)

    def reset_view(self) -> None:
        self.tracker.reset()

    def zoom(self, factor: float) -> None:
        self.tracker.zoom(factor)

    def toggle_fullscreen(self) -> None:
        """전체화면 토글. 실제 호스트 상태(isFullScreen)를 기준으로 판단."""
        if self.isFullScreen():
            self.exit_fullscreen()
            return
        self._fs_transition = True
        try:
            fs_enter_fullscreen(self)
        except FullscreenRequestError as e:
            self.log.warning("fullscreen_request_failed | err=%s", str(e))
            return
        finally:
            self._fs_transition = False
        self.state.is_fullscreen = True
        mark_active(self)
        refresh_shortcuts(self)
        self.log.info("fullscreen_enter")
        self.update_view()

    def exit_fullscreen(self) -> None:
        if not self.isFullScreen() and not self.state.is_fullscreen:
            return
        self._fs_transition = True
        try:
            fs_exit_fullscreen(self)
        finally:
            self._fs_transition = False
        self.state.is_fullscreen = False
        refresh_shortcuts(self)
        self.log.info("fullscreen_exit")
        self.update_view()

    # 버튼/단축키 핸들러
    def zoom_in(self) -> None:
        self.zoom(self.config.zoom_in_factor)

    def zoom_out(self) -> None:
        self.zoom(self.config.zoom_out_factor)

    def look_left(self) -> None:
        self.tracker.key("ArrowLeft")

    def look_right(self) -> None:
        self.tracker.key("ArrowRight")

    def look_up(self) -> None:
        self.tracker.key("ArrowUp")

    def look_down(self) -> None:
        self.tracker.key("ArrowDown")

    @property
    def image_url(self) -> str | None:
        return self._image_url

    def current_image(self) -> QImage | None:
        return self.canvas.image()

    # ----- render -----
    def update_view(self) -> None:
        self.apply_surface_height()
        self.canvas.update()
        self.viewChanged.emit(self.state.snapshot())

    def apply_surface_height(self) -> None:
        # 배율은 표시 면 높이(px)로 구현됨. 전체화면 중에는 높이 고정 해제
        if self.state.is_fullscreen or self.isFullScreen():
            return
        self.setFixedHeight(self.state.surface_height(self.config.base_height))

    def release_surface_height(self) -> None:
        self.setMinimumHeight(0)
        self.setMaximumHeight(_QWIDGETSIZE_MAX)

    def teardown(self) -> None:
        set_global_shortcuts_enabled(self, False)
        unregister_viewer(self)
        self.tracker.release()
        self.image_service.shutdown()
        self.image_service.clear_cache()
        self.canvas.set_image(None)
        self.log.info("tour_teardown")
        self.hide()
        self.deleteLater()

    # ----- callbacks -----
    def _on_drag_changed(self, dragging: bool) -> None:
        self.canvas.set_dragging_cursor(dragging)

    def _on_image_loaded(self, url: str, img: QImage, success: bool, error: str, generation: int) -> None:
        if not success or img is None or img.isNull():
            # 실패 시 이전 프레임(플레이스홀더 또는 마지막 이미지) 유지
            self.log.warning("tour_image_failed | url=%s | gen=%d | err=%s", url, generation, error)
            self.imageLoaded.emit(url, False)
            return
        self.canvas.set_image(img)
        self.log.info("tour_image_loaded | url=%s | gen=%d | w=%d | h=%d", url, generation, img.width(), img.height())
        self.update_view()
        self.imageLoaded.emit(url, True)

    # ----- Events -----
    def eventFilter(self, obj, event):
        if event.type() in (QEvent.Type.MouseButtonPress, QEvent.Type.Wheel, QEvent.Type.TouchBegin):
            mark_active(self)
        return super().eventFilter(obj, event)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        position_overlays(self)

    def changeEvent(self, event):
        super().changeEvent(event)
        if event.type() != QEvent.Type.WindowStateChange or self._fs_transition:
            return
        # 창 관리자 등 호스트 측에서 전체화면이 해제된 경우 상태 동기화
        if self.state.is_fullscreen and not self.isFullScreen():
            self.log.info("fullscreen_host_exit")
            self.exit_fullscreen()


def mount_tour_viewer(root: QWidget | None, container_name: str = DEFAULT_CONTAINER, image_url: str | None = None,
                      config: TourConfig | None = None, settings=None) -> TourViewer | None:
    """마운트 컨테이너를 찾아 뷰어를 생성. 없으면 로그만 남기고 None(재시도 없음)."""
    mount = None
    if root is not None:
        if root.objectName() == container_name:
            mount = root
        else:
            mount = root.findChild(QWidget, container_name)
    if mount is None:
        _log.error("tour_container_missing | name=%s", container_name)
        return None
    _log.info("tour_mount | name=%s", container_name)
    return TourViewer(mount, image_url=image_url, config=config, settings=settings)
