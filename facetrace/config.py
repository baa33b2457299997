# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Tuple

import yaml
from pydantic import BaseModel

ENV_PREFIX = "FACETRACE_"

FACE_LANDMARKER_URL = (
    "https://storage.googleapis.com/mediapipe-models/face_landmarker/"
    "face_landmarker/float16/latest/face_landmarker.task"
)


class CameraConfig(BaseModel):
    device: int | str = 0
    width: Optional[int] = None
    height: Optional[int] = None
    mirror: bool = False


class ModelConfig(BaseModel):
    backend: Literal["mediapipe", "haar"] = "mediapipe"
    # local static asset; downloaded from asset_url when missing
    asset_path: Path = Path("models/face_landmarker.task")
    asset_url: Optional[str] = FACE_LANDMARKER_URL
    download_timeout_s: Optional[float] = None
    num_faces: int = 1
    min_detection_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    # haar backend
    cascade_path: Optional[Path] = None
    scale_factor: float = 1.1
    min_neighbors: int = 5
    min_face_size: int = 60


class LoopConfig(BaseModel):
    cadence: Literal["timer", "refresh"] = "timer"
    interval_ms: float = 100.0
    refresh_hz: float = 60.0

    @property
    def period_s(self) -> float:
        if self.cadence == "refresh":
            return 1.0 / self.refresh_hz
        return self.interval_ms / 1000.0


class RenderConfig(BaseModel):
    style: Literal["points", "outline"] = "points"
    marker_radius: int = 2
    # BGR
    color: Tuple[int, int, int] = (0, 0, 255)
    thickness: int = 1
    draw_frame: bool = True


class RecordingConfig(BaseModel):
    fps: int = 30
    mime_type: str = "video/webm"
    container: str = "webm"
    codec: str = "libvpx"
    bit_rate: int = 2_000_000
    filename: str = "face-tracking-video.webm"
    output_dir: Path = Path(".")


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_logs: bool = True


class Config(BaseModel):
    camera: CameraConfig = CameraConfig()
    model: ModelConfig = ModelConfig()
    loop: LoopConfig = LoopConfig()
    render: RenderConfig = RenderConfig()
    recording: RecordingConfig = RecordingConfig()
    logging: LoggingConfig = LoggingConfig()


def _env_overrides(environ: Dict[str, str]) -> Dict[str, Any]:
    """Turn FACETRACE_LOOP__INTERVAL_MS=50 into {"loop": {"interval_ms": "50"}}."""
    overrides: Dict[str, Any] = {}
    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        parts = key[len(ENV_PREFIX):].lower().split("__")
        if len(parts) != 2 or not all(parts):
            continue
        section, field = parts
        overrides.setdefault(section, {})[field] = value
    return overrides


def load_config(path: Path | None = None, environ: Dict[str, str] | None = None) -> Config:
    """Build the configuration from compiled-in defaults.

    An optional YAML file is merged first, then ``FACETRACE_<SECTION>__<FIELD>``
    environment variables.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        data = yaml.safe_load(Path(path).read_text()) or {}

    env = os.environ if environ is None else environ
    for section, fields in _env_overrides(dict(env)).items():
        current = data.setdefault(section, {})
        if isinstance(current, dict):
            current.update(fields)
    return Config(**data)
