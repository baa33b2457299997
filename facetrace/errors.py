# SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for the capture and recording pipeline."""

from __future__ import annotations


class FacetraceError(Exception):
    """Base exception for pipeline errors"""


class NotReadyError(FacetraceError):
    """Frame requested before the source produced one; retry next cycle"""


class CameraUnavailableError(FacetraceError):
    """Camera could not be opened (no device or access denied)"""

    def __init__(self, message: str, device: int | str | None = None):
        super().__init__(message)
        self.device = device


class ModelLoadError(FacetraceError):
    """Landmark model could not be fetched, parsed or built"""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


class DetectionTransientError(FacetraceError):
    """A single detection call failed; the frame is skipped"""


class RecordingError(FacetraceError):
    """Base exception for recording controller errors"""


class UnsupportedStreamError(RecordingError):
    """Surface cannot be captured as a media stream"""


class AlreadyRecordingError(RecordingError):
    """A recording session is already active"""


class NotRecordingError(RecordingError):
    """No recording session is active"""
