# SPDX-License-Identifier: Apache-2.0
"""Recording of a surface into a downloadable media artifact."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Callable, List, Optional

from facetrace.config import RecordingConfig
from facetrace.errors import AlreadyRecordingError, NotRecordingError, RecordingError
from facetrace.logging_utils import get_logger
from facetrace.pipeline.encoder import StreamEncoder, WebmEncoder
from facetrace.schemas import RecordingArtifact
from facetrace.utils.io import write_bytes
from facetrace.viz.surface import Surface

LOGGER = get_logger(__name__)

EncoderFactory = Callable[[RecordingConfig], StreamEncoder]


class RecordingState(str, enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"


class RecordingSession:
    """Append-only sequence of encoded chunks for one start-to-stop recording."""

    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        self._chunks: List[bytes] = []
        self._sealed = False

    @property
    def chunks(self) -> List[bytes]:
        return list(self._chunks)

    @property
    def size(self) -> int:
        return sum(len(c) for c in self._chunks)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def append(self, chunk: bytes) -> None:
        if self._sealed:
            raise RecordingError("Cannot append to a sealed recording session")
        if not chunk:
            return
        self._chunks.append(bytes(chunk))

    def seal(self) -> RecordingArtifact:
        self._sealed = True
        return RecordingArtifact(
            data=b"".join(self._chunks),
            mime_type=self.mime_type,
            chunk_count=len(self._chunks),
        )


class RecordingController:
    """Records one surface at a time.

    The artifact of the last finished session stays available while idle and
    is replaced when the next session stops.
    """

    def __init__(
        self,
        config: RecordingConfig | None = None,
        encoder_factory: Optional[EncoderFactory] = None,
    ):
        self.config = config or RecordingConfig()
        self.encoder_factory = encoder_factory or WebmEncoder
        self.artifact: Optional[RecordingArtifact] = None
        self._state = RecordingState.IDLE
        self._session: Optional[RecordingSession] = None
        self._encoder: Optional[StreamEncoder] = None

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def recording(self) -> bool:
        return self._state is RecordingState.RECORDING

    @property
    def session(self) -> Optional[RecordingSession]:
        return self._session

    @property
    def failure(self) -> Optional[BaseException]:
        """Error that stopped the active encoder from sampling, if any."""
        if self._encoder is None:
            return None
        return self._encoder.failure

    def start(self, surface: Surface) -> RecordingSession:
        if self.recording:
            raise AlreadyRecordingError("A recording is already in progress")
        stream = surface.capture_stream(self.config.fps)
        session = RecordingSession(self.config.mime_type)
        encoder = self.encoder_factory(self.config)
        encoder.start(stream, session.append)
        self._session = session
        self._encoder = encoder
        self._state = RecordingState.RECORDING
        LOGGER.info("recording started", width=stream.width, height=stream.height, fps=stream.fps)
        return session

    async def stop(self) -> RecordingArtifact:
        if not self.recording:
            raise NotRecordingError("No recording in progress")
        encoder, session = self._encoder, self._session
        # idle before the flush so a concurrent stop() sees no recording
        self._state = RecordingState.IDLE
        self._encoder = None
        await encoder.finalize()
        self.artifact = session.seal()
        LOGGER.info(
            "recording stopped",
            size=self.artifact.size,
            chunks=self.artifact.chunk_count,
            mime_type=self.artifact.mime_type,
        )
        return self.artifact

    def default_path(self) -> Path:
        return Path(self.config.output_dir) / self.config.filename

    def save(self, path: Path | None = None) -> Optional[Path]:
        """Write the last artifact to disk, overwriting any existing file."""
        if self.artifact is None:
            LOGGER.warning("nothing to save; no finished recording")
            return None
        target = write_bytes(Path(path) if path else self.default_path(), self.artifact.data)
        LOGGER.info("recording saved", path=str(target), size=self.artifact.size)
        return target
