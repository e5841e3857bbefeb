from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

_ROOT_NAME = "tour360"
_FORMAT = "%(asctime)s %(levelname)s %(name)s | %(message)s"
_handlers: list[logging.Handler] = []


def get_log_dir() -> str:
    # 실행 디렉터리(프로젝트 루트)의 logs 폴더
    base = os.path.abspath(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))
    return os.path.join(base, "logs")


def setup_logging(level: str | int = "INFO", log_to_file: bool = True) -> logging.Logger:
    root = logging.getLogger(_ROOT_NAME)
    if isinstance(level, str):
        lvl = logging.getLevelName(level.strip().upper() or "INFO")
        if not isinstance(lvl, int):
            lvl = logging.INFO
    else:
        lvl = int(level)
    root.setLevel(lvl)
    # 재호출 시 핸들러 중복 방지
    if _handlers:
        for h in _handlers:
            h.setLevel(lvl)
        return root
    fmt = logging.Formatter(_FORMAT)
    console = logging.StreamHandler()
    console.setFormatter(fmt)
    console.setLevel(lvl)
    root.addHandler(console)
    _handlers.append(console)
    if log_to_file:
        try:
            log_dir = get_log_dir()
            os.makedirs(log_dir, exist_ok=True)
            fh = RotatingFileHandler(
                os.path.join(log_dir, "tour360.log"),
                maxBytes=1024 * 1024,
                backupCount=3,
                encoding="utf-8",
            )
            fh.setFormatter(fmt)
            fh.setLevel(lvl)
            root.addHandler(fh)
            _handlers.append(fh)
        except OSError as e:
            root.warning("log_file_unavailable | err=%s", str(e))
    root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    if not name:
        return logging.getLogger(_ROOT_NAME)
    return logging.getLogger(f"{_ROOT_NAME}.{name}")


def shutdown_logging() -> None:
    root = logging.getLogger(_ROOT_NAME)
    while _handlers:
        h = _handlers.pop()
        try:
            h.flush()
            h.close()
        finally:
            root.removeHandler(h)
    root.propagate = True
