import weakref
from dataclasses import dataclass
from functools import partial
from typing import List, Dict, Callable

from PyQt6 import sip
from PyQt6.QtGui import QKeySequence, QShortcut
from PyQt6.QtCore import Qt

from ..storage.settings_store import read_setting
from ..utils.logging_setup import get_logger

_log = get_logger("shortcuts")


@dataclass(frozen=True)
class Command:
    id: str
    label: str
    desc: str
    handler_name: str
    default_keys: List[str]
    lock_key: bool = False  # true면 사용자 재매핑 불가(Space/Escape)
    fullscreen_only: bool = False  # 전체화면 중에만 활성


# 명령 레지스트리: 모두 전역(ApplicationShortcut)으로 등록됨
COMMANDS: List[Command] = [
    Command("reset_view", "Reset view", "Return yaw/pitch to the origin", "reset_view", ["R", "Shift+R"]),
    Command("look_left", "Look left", "Rotate yaw by one key step to the left", "look_left", ["Left"]),
    Command("look_right", "Look right", "Rotate yaw by one key step to the right", "look_right", ["Right"]),
    Command("look_up", "Look up", "Rotate pitch by one key step up", "look_up", ["Up"]),
    Command("look_down", "Look down", "Rotate pitch by one key step down", "look_down", ["Down"]),
    # Space는 전체화면 토글 전용(다른 명령에 할당 금지)
    Command("toggle_fullscreen", "Toggle fullscreen", "Enter or leave fullscreen", "toggle_fullscreen", ["Space"], lock_key=True),
    Command("exit_fullscreen", "Exit fullscreen", "Leave fullscreen", "exit_fullscreen", ["Escape"],
            lock_key=True, fullscreen_only=True),
]

# 뷰어 등록 순서 = 최근 상호작용 순서(마지막이 활성)
_viewers: List["weakref.ref"] = []


def _norm_key(key: str) -> str:
    return "".join(str(key).split()).lower()


def _load_custom_keymap(settings) -> Dict[str, List[str]]:
    keymap: Dict[str, List[str]] = {}
    if settings is None:
        return keymap
    for cmd in COMMANDS:
        if cmd.lock_key:
            continue
        raw = read_setting(settings, f"keys/custom/{cmd.id}", "", str)
        if raw:
            parts = [p.strip() for p in raw.split(";") if p.strip()]
            if parts:
                keymap[cmd.id] = parts
    return keymap


def save_custom_keymap(settings, mapping: Dict[str, List[str]]) -> None:
    for cmd in COMMANDS:
        if cmd.lock_key:
            continue
        keys = mapping.get(cmd.id, []) or []
        settings.setValue(f"keys/custom/{cmd.id}", ";".join(keys))


def get_effective_keymap(settings) -> Dict[str, List[str]]:
    custom = _load_custom_keymap(settings)
    # 기본 키는 해당 명령이 선점. 다른 명령의 사용자 지정 키로 쓸 수 없음
    owner: Dict[str, str] = {}
    for cmd in COMMANDS:
        for k in cmd.default_keys:
            owner.setdefault(_norm_key(k), cmd.id)
    eff: Dict[str, List[str]] = {}
    for cmd in COMMANDS:
        # 고정키는 기본값 고정
        if cmd.lock_key:
            eff[cmd.id] = cmd.default_keys[:]
            continue
        # 사용자 지정과 기본값을 병합(사용자 지정 우선, 중복 제거)
        merged: List[str] = []
        for src in (custom.get(cmd.id, []) or []) + (cmd.default_keys or []):
            s = str(src).strip()
            if not s:
                continue
            if s.lower() in ("space", "escape", "esc"):
                continue
            taken_by = owner.setdefault(_norm_key(s), cmd.id)
            if taken_by != cmd.id:
                _log.warning("shortcut_conflict | cmd=%s | key=%s | owner=%s", cmd.id, s, taken_by)
                continue
            if s not in merged:
                merged.append(s)
        eff[cmd.id] = merged
    return eff


# ----- 다중 뷰어 라우팅 -----
def _alive(viewer) -> bool:
    return viewer is not None and not sip.isdeleted(viewer)


def _forget(viewer) -> None:
    _viewers[:] = [r for r in _viewers if r() is not None and r() is not viewer]


def mark_active(viewer) -> None:
    """뷰어를 가장 최근에 상호작용한 뷰어로 표시한다."""
    _forget(viewer)
    _viewers.append(weakref.ref(viewer))


def unregister_viewer(viewer) -> None:
    _forget(viewer)


def active_viewer(handler_name: str | None = None):
    for ref in reversed(_viewers):
        v = ref()
        if not _alive(v) or not getattr(v, "_global_shortcuts_enabled", True):
            continue
        if handler_name and not callable(getattr(v, handler_name, None)):
            continue
        return v
    return None


def _dispatch_ambiguous(handler_name: str) -> None:
    # 같은 키를 가진 뷰어가 여럿이면 Qt는 activatedAmbiguously 만 보냄 → 활성 뷰어로 전달
    v = active_viewer(handler_name)
    if v is None:
        _log.debug("shortcut_ambiguous_unrouted | handler=%s", handler_name)
        return
    _log.debug("shortcut_ambiguous_routed | handler=%s | viewer=%s", handler_name, v.objectName())
    getattr(v, handler_name)()


def _is_fullscreen(viewer) -> bool:
    return bool(getattr(getattr(viewer, "state", None), "is_fullscreen", False))


def apply_shortcuts(viewer) -> None:
    # 기존 단축키 제거
    for sc in getattr(viewer, "_shortcuts", []) or []:
        sc.setEnabled(False)
        sc.setParent(None)
    viewer._shortcuts = []
    viewer._shortcut_bindings = []

    eff = get_effective_keymap(getattr(viewer, "settings", None))

    for cmd in COMMANDS:
        handler: Callable | None = getattr(viewer, cmd.handler_name, None)
        if not callable(handler):
            continue
        for key in eff.get(cmd.id, []) or []:
            seq = QKeySequence(key)
            if seq.isEmpty():
                _log.warning("shortcut_parse_fail | cmd=%s | key=%s", cmd.id, key)
                continue
            sc = QShortcut(seq, viewer)
            # 포커스와 무관한 전역 단축키
            sc.setContext(Qt.ShortcutContext.ApplicationShortcut)
            sc.activated.connect(handler)
            sc.activatedAmbiguously.connect(partial(_dispatch_ambiguous, cmd.handler_name))
            viewer._shortcuts.append(sc)
            viewer._shortcut_bindings.append((sc, cmd))
    mark_active(viewer)
    refresh_shortcuts(viewer)
    _log.debug("shortcuts_applied | count=%d", len(viewer._shortcuts))


def refresh_shortcuts(viewer) -> None:
    """전역 활성 여부와 전체화면 상태에 맞춰 각 단축키의 활성 상태를 다시 계산한다."""
    enabled = getattr(viewer, "_global_shortcuts_enabled", True)
    fullscreen = _is_fullscreen(viewer)
    for sc, cmd in getattr(viewer, "_shortcut_bindings", []) or []:
        sc.setEnabled(bool(enabled and (fullscreen or not cmd.fullscreen_only)))


def set_global_shortcuts_enabled(viewer, enabled: bool) -> None:
    viewer._global_shortcuts_enabled = bool(enabled)
    refresh_shortcuts(viewer)
