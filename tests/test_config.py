from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from facetrace.config import Config, load_config


def test_compiled_in_defaults():
    config = load_config(environ={})
    assert config == Config()
    assert config.loop.interval_ms == 100
    assert config.render.marker_radius == 2
    assert config.render.color == (0, 0, 255)
    assert config.recording.fps == 30
    assert config.recording.mime_type == "video/webm"
    assert config.recording.filename == "face-tracking-video.webm"
    assert config.model.asset_url.startswith("https://")


def test_yaml_file_is_merged(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "model:\n  backend: haar\n  num_faces: 3\nrender:\n  style: outline\n  color: [255, 0, 0]\n"
    )
    config = load_config(path, environ={})
    assert config.model.backend == "haar"
    assert config.model.num_faces == 3
    assert config.render.style == "outline"
    assert config.render.color == (255, 0, 0)
    assert config.loop.interval_ms == 100


def test_environment_overrides_file(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text("loop:\n  interval_ms: 250\n")
    env = {
        "FACETRACE_LOOP__INTERVAL_MS": "50",
        "FACETRACE_RECORDING__OUTPUT_DIR": str(tmp_path),
        "FACETRACE_IGNORED": "1",
        "OTHER_LOOP__INTERVAL_MS": "7",
    }
    config = load_config(path, environ=env)
    assert config.loop.interval_ms == 50.0
    assert config.recording.output_dir == tmp_path


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        load_config(environ={"FACETRACE_MODEL__BACKEND": "dlib"})
