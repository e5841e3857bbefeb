from __future__ import annotations

from typing import Callable, Sequence

from .state import DragSession, PointerSample, ViewState
from ..utils.logging_setup import get_logger

_log = get_logger("ui.InputTracker")

SENSITIVITY = 0.5
KEY_STEP_DEGREES = 5.0
ZOOM_IN_FACTOR = 1.1
ZOOM_OUT_FACTOR = 0.9


def _noop(*_args) -> None:
    return None


class InputTracker:
    """포인터/터치/휠/키 입력을 회전·배율 변화로 변환한다.

    Qt에 의존하지 않으며, 호스트 어댑터(PanoramaCanvas, 단축키)가 좌표와 키 이름만 전달한다.
    상태가 바뀔 때마다 on_change 를 정확히 한 번 호출한다.
    """

    def __init__(
        self,
        state: ViewState,
        on_change: Callable[[], None] | None = None,
        on_fullscreen: Callable[[], None] | None = None,
        on_drag_changed: Callable[[bool], None] | None = None,
        sensitivity: float = SENSITIVITY,
        key_step: float = KEY_STEP_DEGREES,
        zoom_in_factor: float = ZOOM_IN_FACTOR,
        zoom_out_factor: float = ZOOM_OUT_FACTOR,
    ):
        self.state = state
        self.drag = DragSession()
        self._on_change = on_change or _noop
        self._on_fullscreen = on_fullscreen or _noop
        self._on_drag_changed = on_drag_changed or _noop
        self.sensitivity = float(sensitivity)
        self.key_step = float(key_step)
        self.zoom_in_factor = float(zoom_in_factor)
        self.zoom_out_factor = float(zoom_out_factor)
        self._keymap: dict[str, Callable[[], None]] = {
            "r": self.reset,
            "R": self.reset,
            "ArrowLeft": lambda: self.step_yaw(-1),
            "ArrowRight": lambda: self.step_yaw(+1),
            "ArrowUp": lambda: self.step_pitch(-1),
            "ArrowDown": lambda: self.step_pitch(+1),
            " ": self.request_fullscreen,
            "Space": self.request_fullscreen,
        }

    # ----- drag (pointer) -----
    def press(self, x: float, y: float) -> None:
        self.drag.begin(x, y)
        self._on_drag_changed(True)

    def move(self, x: float, y: float) -> bool:
        if not self.drag.is_dragging or self.drag.sample is None:
            return False
        prev = self.drag.sample
        dx = float(x) - prev.x
        dy = float(y) - prev.y
        self.state.rotate(dx * self.sensitivity, dy * self.sensitivity)
        self.drag.sample = PointerSample(float(x), float(y))
        self._on_change()
        return True

    def release(self) -> None:
        was = self.drag.is_dragging
        self.drag.end()
        if was:
            self._on_drag_changed(False)

    # ----- drag (touch) -----
    def touch_start(self, points: Sequence[tuple[float, float]]) -> None:
        if len(points) != 1:
            self.drag.end()
            return
        x, y = points[0]
        self.drag.begin(x, y)

    def touch_move(self, points: Sequence[tuple[float, float]]) -> bool:
        # 드래그는 단일 터치에서만 정의됨: 다중 터치가 감지되면 세션 종료
        if len(points) != 1:
            self.drag.end()
            return False
        x, y = points[0]
        return self.move(x, y)

    def touch_end(self) -> None:
        self.drag.end()

    # ----- wheel -----
    def wheel(self, delta_y: float) -> bool:
        """delta_y > 0: 아래로 스크롤(축소), < 0: 위로 스크롤(확대)."""
        if delta_y > 0:
            return self.zoom(self.zoom_out_factor)
        if delta_y < 0:
            return self.zoom(self.zoom_in_factor)
        return False

    # ----- keyboard -----
    def key(self, name: str) -> bool:
        action = self._keymap.get(name)
        if action is None:
            return False
        action()
        return True

    # ----- discrete actions -----
    def reset(self) -> None:
        self.state.reset_rotation()
        _log.debug("view_reset")
        self._on_change()

    def zoom(self, factor: float) -> bool:
        changed = self.state.zoom_by(factor)
        _log.debug("zoom | factor=%.3f | scale=%.4f | changed=%s", float(factor), self.state.zoom_scale, changed)
        self._on_change()
        return changed

    def step_yaw(self, sign: int) -> None:
        self.state.rotate(self.key_step * (1 if sign >= 0 else -1), 0.0)
        self._on_change()

    def step_pitch(self, sign: int) -> None:
        self.state.rotate(0.0, self.key_step * (1 if sign >= 0 else -1))
        self._on_change()

    def request_fullscreen(self) -> None:
        self._on_fullscreen()
