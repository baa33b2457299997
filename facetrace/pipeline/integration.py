# SPDX-License-Identifier: Apache-2.0
"""Pipeline owner: the single holder of source, detector, surface and recorder."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from facetrace.config import Config
from facetrace.errors import CameraUnavailableError, ModelLoadError
from facetrace.io.camera import CameraSource, FrameSource
from facetrace.logging_utils import get_logger
from facetrace.pipeline.capture_loop import CaptureLoop
from facetrace.pipeline.recording import EncoderFactory, RecordingController
from facetrace.schemas import PipelineStatus, RecordingArtifact
from facetrace.vision import LandmarkDetector, build_detector
from facetrace.viz.overlays import AnnotationRenderer
from facetrace.viz.surface import Surface

LOGGER = get_logger(__name__)


class Pipeline:
    def __init__(
        self,
        config: Config | None = None,
        source: FrameSource | None = None,
        detector: LandmarkDetector | None = None,
        renderer: AnnotationRenderer | None = None,
        encoder_factory: EncoderFactory | None = None,
    ):
        self.config = config or Config()
        self.source = source or CameraSource(self.config.camera)
        self.detector = detector or build_detector(self.config.model)
        self.renderer = renderer or AnnotationRenderer(self.config.render)
        self.surface = Surface()
        self.loop = CaptureLoop(
            self.source,
            self.detector,
            self.renderer,
            self.surface,
            self.config.loop,
            draw_frame=self.config.render.draw_frame,
        )
        self.recorder = RecordingController(self.config.recording, encoder_factory)
        # user-visible, session-fatal error; cleared by a successful retry
        self.error: Optional[str] = None

    def open_camera(self) -> None:
        try:
            self.source.open()
        except CameraUnavailableError as exc:
            self.error = str(exc)
            LOGGER.error("camera unavailable", error=self.error)
            raise

    async def load_model(self) -> None:
        try:
            await self.detector.load()
        except ModelLoadError as exc:
            self.error = str(exc)
            LOGGER.error("model load failed", error=self.error)
            raise
        self.error = None

    async def start(self) -> None:
        """Open the camera, load the model and start capturing."""
        self.open_camera()
        try:
            await self.load_model()
        except ModelLoadError:
            # release the device so a retry can open it again
            self.source.close()
            raise
        self.loop.start()

    def start_recording(self) -> None:
        self.recorder.start(self.surface)

    async def stop_recording(self) -> RecordingArtifact:
        return await self.recorder.stop()

    async def toggle_recording(self) -> Optional[RecordingArtifact]:
        if self.recorder.recording:
            return await self.stop_recording()
        self.start_recording()
        return None

    def save_recording(self, path: Path | None = None) -> Optional[Path]:
        return self.recorder.save(path)

    async def shutdown(self) -> None:
        self.loop.stop()
        await self.loop.wait_idle()
        try:
            if self.recorder.recording:
                await self.recorder.stop()
        finally:
            self.source.close()
            self.detector.close()

    def status(self) -> PipelineStatus:
        stats = self.loop.stats
        artifact = self.recorder.artifact
        error = self.error
        if error is None and self.recorder.failure is not None:
            error = f"recording stalled: {self.recorder.failure}"
        return PipelineStatus(
            capture_state=self.loop.state.value,
            recording_state=self.recorder.state.value,
            has_artifact=artifact is not None,
            artifact_size=artifact.size if artifact else 0,
            frame_size=self.surface.size if self.surface.width else None,
            cycles=stats.cycles,
            rendered=stats.rendered,
            skipped=stats.skipped,
            errors=stats.errors,
            faces=stats.last_faces,
            error=error,
        )
