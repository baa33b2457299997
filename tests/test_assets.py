from __future__ import annotations

import pytest
import requests

from facetrace.errors import ModelLoadError
from facetrace.vision import assets
from facetrace.vision.assets import download_asset, resolve_asset


class FakeResponse:
    def __init__(self, chunks, status=200):
        self.chunks = chunks
        self.status = status

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def iter_content(self, chunk_size=1):
        return iter(self.chunks)


def test_local_asset_used_without_download(monkeypatch, tmp_path):
    model = tmp_path / "face.task"
    model.write_bytes(b"model")

    def fail(*args, **kwargs):
        raise AssertionError("network used")

    monkeypatch.setattr(assets.requests, "get", fail)
    assert resolve_asset(model, "https://example.invalid/face.task") == model


def test_missing_asset_without_url(tmp_path):
    with pytest.raises(ModelLoadError):
        resolve_asset(tmp_path / "face.task", None)


def test_download_from_registry(monkeypatch, tmp_path):
    calls = []

    def fake_get(url, stream, timeout):
        calls.append((url, stream, timeout))
        return FakeResponse([b"abc", b"", b"def"])

    monkeypatch.setattr(assets.requests, "get", fake_get)
    target = tmp_path / "models" / "face.task"
    path = resolve_asset(target, "https://example.invalid/face.task", timeout=3.0)
    assert path == target
    assert target.read_bytes() == b"abcdef"
    assert calls == [("https://example.invalid/face.task", True, 3.0)]


def test_http_error_is_model_load_error(monkeypatch, tmp_path):
    monkeypatch.setattr(assets.requests, "get", lambda *a, **k: FakeResponse([], status=404))
    target = tmp_path / "face.task"
    with pytest.raises(ModelLoadError) as info:
        download_asset("https://example.invalid/face.task", target)
    assert info.value.source == "https://example.invalid/face.task"
    assert not target.exists()
    assert not list(tmp_path.glob("*.part"))


def test_empty_download_rejected(monkeypatch, tmp_path):
    monkeypatch.setattr(assets.requests, "get", lambda *a, **k: FakeResponse([]))
    with pytest.raises(ModelLoadError):
        download_asset("https://example.invalid/face.task", tmp_path / "face.task")
    assert not (tmp_path / "face.task").exists()
