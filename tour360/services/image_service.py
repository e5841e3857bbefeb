import os
from collections import OrderedDict
from typing import Optional, Tuple
from urllib.parse import unquote, urlparse

import requests
from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal  # type: ignore[import]
from PyQt6.QtGui import QImage, QImageReader  # type: ignore[import]

from ..utils.logging_setup import get_logger

_log = get_logger("svc.ImageService")

_HTTP_TIMEOUT_S_DEFAULT = 10.0


def _is_http(url: str) -> bool:
    return url.lower().startswith(("http://", "https://"))


def _local_path(url: str) -> str:
    if url.lower().startswith("file://"):
        return unquote(urlparse(url).path)
    return os.path.abspath(os.path.expanduser(url))


def _short(url: str) -> str:
    # 로그에는 파일명만
    try:
        return os.path.basename(urlparse(url).path) or url
    except ValueError:
        return url


def _read_qimage_with_exif_auto_transform(path: str) -> tuple[QImage, bool, str]:
    reader = QImageReader(path)
    # EXIF Orientation 등 자동 변환 활성화
    reader.setAutoTransform(True)
    img = reader.read()
    if img.isNull():
        _log.warning("qimage_read_null | file=%s | qerr=%s", os.path.basename(path), reader.errorString() or "")
        return QImage(), False, reader.errorString() or "image could not be decoded"
    return img, True, ""


def _fetch_http_image(url: str, timeout_s: float) -> tuple[QImage, bool, str]:
    try:
        resp = requests.get(url, timeout=timeout_s)
        resp.raise_for_status()
    except requests.RequestException as e:
        _log.warning("load_http_fail | file=%s | err=%s", _short(url), str(e))
        return QImage(), False, str(e)
    img = QImage.fromData(resp.content)
    if img.isNull():
        _log.warning("load_http_decode_fail | file=%s | bytes=%d", _short(url), len(resp.content))
        return QImage(), False, "image could not be decoded"
    return img, True, ""


def read_image(url: str, timeout_s: float = _HTTP_TIMEOUT_S_DEFAULT) -> tuple[QImage, bool, str]:
    if not url:
        return QImage(), False, "empty url"
    if _is_http(url):
        return _fetch_http_image(url, timeout_s)
    path = _local_path(url)
    if not os.path.isfile(path):
        return QImage(), False, f"file not found: {os.path.basename(path)}"
    return _read_qimage_with_exif_auto_transform(path)


class _LoadSignals(QObject):
    done = pyqtSignal(str, QImage, bool, str, int)


class _LoadTask(QRunnable):
    """백그라운드 디코드 작업: 결과는 세대 번호와 함께 GUI 스레드로 전달."""

    def __init__(self, url: str, generation: int, timeout_s: float, signals: _LoadSignals):
        super().__init__()
        self._url = url
        self._generation = generation
        self._timeout_s = timeout_s
        self._signals = signals

    def run(self) -> None:
        try:
            img, ok, err = read_image(self._url, self._timeout_s)
        except Exception as e:
            _log.exception("load_task_exception | file=%s | err=%s", _short(self._url), str(e))
            img, ok, err = QImage(), False, str(e)
        self._signals.done.emit(self._url, img, ok, err, self._generation)


class ImageService(QObject):
    loaded = pyqtSignal(str, QImage, bool, str, int)  # url, img, success, error, generation

    def __init__(self, parent=None, discard_stale: bool = True, http_timeout_s: float = _HTTP_TIMEOUT_S_DEFAULT,
                 cache_max_bytes: int = 128 * 1024 * 1024):
        super().__init__(parent)
        self._pool = QThreadPool(self)
        self._signals = _LoadSignals(self)
        self._signals.done.connect(self._on_task_done)
        self._generation = 0
        self._discard_stale = bool(discard_stale)
        self._http_timeout_s = float(http_timeout_s)
        self._img_cache = _QImageCache(max_bytes=cache_max_bytes)

    @classmethod
    def from_config(cls, cfg, parent=None) -> "ImageService":
        return cls(
            parent=parent,
            discard_stale=cfg.discard_stale,
            http_timeout_s=cfg.http_timeout_s,
            cache_max_bytes=int(cfg.cache_mb) * 1024 * 1024,
        )

    @property
    def generation(self) -> int:
        return self._generation

    def load(self, url: str) -> Tuple[str, QImage | None, bool, str]:
        cached = self._img_cache.get(url)
        if cached is not None and not cached.isNull():
            _log.info("load_cache_hit | file=%s | w=%d | h=%d", _short(url), int(cached.width()), int(cached.height()))
            return url, cached, True, ""
        img, ok, err = read_image(url, self._http_timeout_s)
        if not ok:
            _log.error("load_decode_fail | file=%s | err=%s", _short(url), err or "")
            return url, None, False, err
        self._img_cache.put(url, img)
        _log.info("load_decode_ok | file=%s | w=%d | h=%d", _short(url), int(img.width()), int(img.height()))
        return url, img, True, ""

    def load_async(self, url: str) -> int:
        # 이전 작업은 취소하지 않는다. 세대 번호로 완료 순서를 판별
        self._generation += 1
        generation = self._generation
        cached = self._img_cache.get(url)
        if cached is not None and not cached.isNull():
            # 캐시 히트는 즉시 전달(같은 스레드 → 직접 호출)
            self._signals.done.emit(url, cached, True, "", generation)
            return generation
        self._pool.start(_LoadTask(url, generation, self._http_timeout_s, self._signals))
        _log.debug("load_async_start | file=%s | gen=%d", _short(url), generation)
        return generation

    def _on_task_done(self, url: str, img: QImage, success: bool, error: str, generation: int) -> None:
        if success and not img.isNull():
            self._img_cache.put(url, img)
        else:
            _log.error("load_async_fail | file=%s | gen=%d | err=%s", _short(url), generation, error or "")
        if self._discard_stale and generation != self._generation:
            _log.info("load_stale_dropped | file=%s | gen=%d | latest=%d", _short(url), generation, self._generation)
            return
        self.loaded.emit(url, img, success, error, generation)

    def wait_for_done(self, msecs: int = -1) -> bool:
        return bool(self._pool.waitForDone(msecs))

    def get_cached_image(self, url: str) -> Optional[QImage]:
        return self._img_cache.get(url)

    def clear_cache(self) -> None:
        self._img_cache.clear()

    def shutdown(self) -> None:
        self._pool.clear()
        self._pool.waitForDone(2000)


class _QImageCache:
    """바이트 상한이 있는 간단한 LRU QImage 캐시."""

    def __init__(self, max_bytes: int = 128 * 1024 * 1024):
        self._max_bytes = max(0, int(max_bytes))
        self._cur_bytes = 0
        self._map: "OrderedDict[str, tuple[QImage, int]]" = OrderedDict()

    def _estimate_bytes(self, img: QImage) -> int:
        try:
            return int(img.sizeInBytes())
        except AttributeError:
            return int(img.width()) * int(img.height()) * 4

    def get(self, key: str) -> Optional[QImage]:
        item = self._map.get(key)
        if item is None:
            return None
        self._map.move_to_end(key)
        return item[0]

    def put(self, key: str, img: QImage) -> None:
        if self._max_bytes <= 0 or img is None or img.isNull():
            return
        size = self._estimate_bytes(img)
        if size > self._max_bytes:
            return
        self.delete(key)
        self._map[key] = (img, size)
        self._cur_bytes += size
        self._evict_if_needed()

    def delete(self, key: str) -> None:
        item = self._map.pop(key, None)
        if item is not None:
            self._cur_bytes -= item[1]

    def clear(self) -> None:
        self._map.clear()
        self._cur_bytes = 0

    def __len__(self) -> int:
        return len(self._map)

    def _evict_if_needed(self) -> None:
        while self._cur_bytes > self._max_bytes and self._map:
            _, (_, size) = self._map.popitem(last=False)
            self._cur_bytes -= size
