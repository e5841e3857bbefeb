from __future__ import annotations

from dataclasses import dataclass, field, replace

PITCH_LIMIT = 90.0
FULL_TURN = 360.0


def clamp(value: float, min_v: float, max_v: float) -> float:
    return max(min_v, min(value, max_v))


def wrap_yaw(degrees: float) -> float:
    y = float(degrees) % FULL_TURN
    # -1e-20 % 360 == 360.0 (부동소수 반올림) → 구간 [0, 360) 유지
    if y >= FULL_TURN:
        y = 0.0
    return y


def clamp_pitch(degrees: float) -> float:
    return clamp(float(degrees), -PITCH_LIMIT, PITCH_LIMIT)


def zoom_bounds(base_height: float, min_height: float, max_height: float) -> tuple[float, float]:
    """표시 면 높이 제한(px)을 배율 구간으로 변환."""
    base = float(base_height) if base_height > 0 else 1.0
    return float(min_height) / base, float(max_height) / base


@dataclass
class ViewState:
    yaw: float = 0.0
    pitch: float = 0.0
    zoom_scale: float = 1.0
    is_fullscreen: bool = False
    min_scale: float = field(default=0.6, repr=False)
    max_scale: float = field(default=1.6, repr=False)

    def rotate(self, d_yaw: float, d_pitch: float) -> None:
        self.yaw = wrap_yaw(self.yaw + d_yaw)
        self.pitch = clamp_pitch(self.pitch + d_pitch)

    def reset_rotation(self) -> None:
        # 회전만 초기화(배율/전체화면 유지)
        self.yaw = 0.0
        self.pitch = 0.0

    def zoom_by(self, factor: float) -> bool:
        prev = self.zoom_scale
        self.zoom_scale = clamp(self.zoom_scale * float(factor), self.min_scale, self.max_scale)
        return self.zoom_scale != prev

    def surface_height(self, base_height: float) -> int:
        return int(round(float(base_height) * self.zoom_scale))

    def snapshot(self) -> "ViewState":
        return replace(self)


@dataclass(frozen=True)
class PointerSample:
    x: float
    y: float


@dataclass
class DragSession:
    is_dragging: bool = False
    sample: PointerSample | None = None

    def begin(self, x: float, y: float) -> None:
        self.is_dragging = True
        self.sample = PointerSample(float(x), float(y))

    def end(self) -> None:
        self.is_dragging = False
        self.sample = None
