import pytest
import requests

from tour360.services import image_service as svc_mod
from tour360.services.image_service import ImageService, _QImageCache, read_image

from conftest import process_events


class _FakeResponse:
    def __init__(self, content: bytes, status: int = 200):
        self.content = content
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def _collect(service):
    got = []
    service.loaded.connect(lambda url, img, ok, err, gen: got.append((url, ok, gen, img.width())))
    return got


def test_read_local_file(qapp, pano_file):
    img, ok, err = read_image(str(pano_file))
    assert ok and err == ""
    assert (img.width(), img.height()) == (200, 100)


def test_read_file_url(qapp, pano_file):
    img, ok, _ = read_image(pano_file.as_uri())
    assert ok and img.width() == 200


def test_read_missing_file(qapp, tmp_path):
    img, ok, err = read_image(str(tmp_path / "nope.jpg"))
    assert not ok
    assert img.isNull()
    assert "nope.jpg" in err


def test_read_empty_url(qapp):
    _, ok, err = read_image("")
    assert not ok and err


def test_read_http(qapp, pano_file, monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return _FakeResponse(pano_file.read_bytes())

    monkeypatch.setattr(svc_mod.requests, "get", fake_get)
    img, ok, _ = read_image("https://example.com/pano.png", timeout_s=3.0)
    assert ok and img.width() == 200
    assert calls == [("https://example.com/pano.png", 3.0)]


def test_read_http_error(qapp, monkeypatch):
    def fake_get(url, timeout):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(svc_mod.requests, "get", fake_get)
    img, ok, err = read_image("http://example.com/pano.jpg")
    assert not ok and "offline" in err


def test_read_http_undecodable(qapp, monkeypatch):
    monkeypatch.setattr(svc_mod.requests, "get", lambda url, timeout: _FakeResponse(b"not an image"))
    _, ok, _ = read_image("http://example.com/pano.jpg")
    assert not ok


def test_read_http_status_error(qapp, monkeypatch):
    monkeypatch.setattr(svc_mod.requests, "get", lambda url, timeout: _FakeResponse(b"", status=404))
    _, ok, err = read_image("http://example.com/pano.jpg")
    assert not ok and "404" in err


def test_sync_load_uses_cache(qapp, pano_file):
    service = ImageService()
    url, img, ok, _ = service.load(str(pano_file))
    assert ok and img.width() == 200
    assert service.get_cached_image(str(pano_file)) is not None
    pano_file.unlink()
    _, img2, ok2, _ = service.load(str(pano_file))
    assert ok2 and img2.width() == 200


def test_async_load_emits_on_gui_thread(qapp, pano_file):
    service = ImageService()
    got = _collect(service)
    gen = service.load_async(str(pano_file))
    assert service.wait_for_done(5000)
    process_events()
    assert got == [(str(pano_file), True, gen, 200)]


def test_async_load_failure_is_reported(qapp, tmp_path):
    service = ImageService()
    got = _collect(service)
    service.load_async(str(tmp_path / "missing.png"))
    service.wait_for_done(5000)
    process_events()
    assert len(got) == 1 and got[0][1] is False


def test_stale_completion_is_discarded(qapp, pano_file, tmp_path):
    other = tmp_path / "other.png"
    other.write_bytes(pano_file.read_bytes())
    service = ImageService(discard_stale=True)
    got = _collect(service)
    g1 = service.load_async(str(pano_file))
    g2 = service.load_async(str(other))
    assert g2 == g1 + 1
    service.wait_for_done(5000)
    process_events()
    assert [(u, g) for u, _, g, _ in got] == [(str(other), g2)]


def test_last_writer_wins_mode_delivers_every_completion(qapp, pano_file, tmp_path):
    other = tmp_path / "other.png"
    other.write_bytes(pano_file.read_bytes())
    service = ImageService(discard_stale=False)
    got = _collect(service)
    service.load_async(str(pano_file))
    service.load_async(str(other))
    service.wait_for_done(5000)
    process_events()
    assert {u for u, _, _, _ in got} == {str(pano_file), str(other)}


def test_cached_async_load_is_immediate(qapp, pano_file):
    service = ImageService()
    service.load(str(pano_file))
    got = _collect(service)
    gen = service.load_async(str(pano_file))
    assert got == [(str(pano_file), True, gen, 200)]


def test_cache_evicts_least_recently_used(qapp):
    from PyQt6.QtGui import QImage
    a = QImage(10, 10, QImage.Format.Format_ARGB32)
    one = a.sizeInBytes()
    cache = _QImageCache(max_bytes=one * 2)
    cache.put("a", a)
    cache.put("b", QImage(a))
    assert cache.get("a") is not None  # a 최근 사용
    cache.put("c", QImage(a))
    assert cache.get("b") is None
    assert cache.get("a") is not None and cache.get("c") is not None
    assert len(cache) == 2


def test_cache_disabled_with_zero_budget(qapp):
    from PyQt6.QtGui import QImage
    cache = _QImageCache(max_bytes=0)
    cache.put("a", QImage(4, 4, QImage.Format.Format_ARGB32))
    assert cache.get("a") is None


@pytest.fixture(autouse=True)
def _no_network(monkeypatch):
    def refuse(*_a, **_k):
        raise AssertionError("unexpected network call")
    monkeypatch.setattr(svc_mod.requests, "get", refuse)
