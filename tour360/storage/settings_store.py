import copy
import os
from dataclasses import dataclass
from typing import Any, Dict

import yaml

from ..utils.logging_setup import get_logger

_log = get_logger("storage.settings")

PROJECTIONS = ("offset", "composed")

DEFAULTS: Dict[str, Any] = {
    "viewer": {
        "sensitivity": 0.5,
        "key_step_degrees": 5.0,
        "zoom_in_factor": 1.1,
        "zoom_out_factor": 0.9,
        "base_height": 500,
        "min_height": 300,
        "max_height": 800,
        "default_image": "",
    },
    "render": {
        "projection": "offset",
        "placeholder_text": "360 Virtual Tour - Load Image URL",
        "gradient_start": "#1a5f7a",
        "gradient_end": "#0d3a4a",
        "background": "#1a1a1a",
    },
    "loader": {
        "discard_stale": True,
        "http_timeout_s": 10.0,
        "cache_mb": 128,
    },
    "log": {
        "level": "INFO",
    },
}


@dataclass(frozen=True)
class TourConfig:
    sensitivity: float = 0.5
    key_step_degrees: float = 5.0
    zoom_in_factor: float = 1.1
    zoom_out_factor: float = 0.9
    base_height: int = 500
    min_height: int = 300
    max_height: int = 800
    default_image: str = ""
    projection: str = "offset"
    placeholder_text: str = "360 Virtual Tour - Load Image URL"
    gradient_start: str = "#1a5f7a"
    gradient_end: str = "#0d3a4a"
    background: str = "#1a1a1a"
    discard_stale: bool = True
    http_timeout_s: float = 10.0
    cache_mb: int = 128
    log_level: str = "INFO"


def _default_config_paths() -> list[str]:
    # 최상단(실행 디렉터리) config.yaml만 사용
    exe_dir = os.path.abspath(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
    return [os.path.join(exe_dir, "config.yaml")]


def _load_yaml_file(path: str) -> Dict[str, Any]:
    if not path or not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        _log.warning("config_read_fail | path=%s | err=%s", os.path.basename(path), str(e))
        return {}
    if isinstance(raw, dict):
        return raw
    _log.warning("config_not_mapping | path=%s", os.path.basename(path))
    return {}


def _merge_dict(dst: Dict[str, Any], src: Dict[str, Any]) -> Dict[str, Any]:
    for k, v in (src or {}).items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            _merge_dict(dst[k], v)
        else:
            dst[k] = v
    return dst


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _positive(value: float, default: float) -> float:
    return value if value > 0 else default


def build_config(data: Dict[str, Any]) -> TourConfig:
    merged = _merge_dict(copy.deepcopy(DEFAULTS), data or {})
    v = merged.get("viewer") or {}
    r = merged.get("render") or {}
    ld = merged.get("loader") or {}
    lg = merged.get("log") or {}
    d = TourConfig()

    min_h = _as_int(v.get("min_height"), d.min_height)
    max_h = _as_int(v.get("max_height"), d.max_height)
    if min_h <= 0 or max_h <= 0 or min_h > max_h:
        _log.warning("config_bad_height_range | min=%s | max=%s", min_h, max_h)
        min_h, max_h = d.min_height, d.max_height
    base_h = _as_int(v.get("base_height"), d.base_height)
    if base_h <= 0:
        base_h = d.base_height

    projection = str(r.get("projection") or d.projection).strip().lower()
    if projection not in PROJECTIONS:
        _log.warning("config_bad_projection | value=%s", projection)
        projection = d.projection

    return TourConfig(
        sensitivity=_positive(_as_float(v.get("sensitivity"), d.sensitivity), d.sensitivity),
        key_step_degrees=_positive(_as_float(v.get("key_step_degrees"), d.key_step_degrees), d.key_step_degrees),
        zoom_in_factor=_positive(_as_float(v.get("zoom_in_factor"), d.zoom_in_factor), d.zoom_in_factor),
        zoom_out_factor=_positive(_as_float(v.get("zoom_out_factor"), d.zoom_out_factor), d.zoom_out_factor),
        base_height=base_h,
        min_height=min_h,
        max_height=max_h,
        default_image=str(v.get("default_image") or ""),
        projection=projection,
        placeholder_text=str(r.get("placeholder_text") or d.placeholder_text),
        gradient_start=str(r.get("gradient_start") or d.gradient_start),
        gradient_end=str(r.get("gradient_end") or d.gradient_end),
        background=str(r.get("background") or d.background),
        discard_stale=bool(ld.get("discard_stale", d.discard_stale)),
        http_timeout_s=_positive(_as_float(ld.get("http_timeout_s"), d.http_timeout_s), d.http_timeout_s),
        cache_mb=max(0, _as_int(ld.get("cache_mb"), d.cache_mb)),
        log_level=str(lg.get("level") or d.log_level).upper(),
    )


def load_config(path: str | None = None) -> TourConfig:
    """config.yaml을 읽어 기본값 위에 병합한다. 파일이 없으면 기본값."""
    p = path or _default_config_paths()[0]
    data = _load_yaml_file(p)
    cfg = build_config(data)
    _log.debug("config_loaded | path=%s | found=%s | projection=%s", os.path.basename(p), bool(data), cfg.projection)
    return cfg


# ---- QSettings helpers ----
def read_setting(settings, key: str, default: Any, caster: Any = None) -> Any:
    if settings is None:
        return default
    try:
        v = settings.value(key, default)
        return caster(v) if caster else v
    except (TypeError, ValueError):
        return default
