# SPDX-License-Identifier: Apache-2.0
"""OpenCV preview window and headless recording around a :class:`Pipeline`."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import cv2
from rich.console import Console

from facetrace.errors import RecordingError
from facetrace.pipeline.integration import Pipeline

WINDOW = "facetrace"
KEY_QUIT = ord("q")
KEY_RECORD = ord("r")
KEY_SAVE = ord("s")
UI_PERIOD_S = 0.015


def _badge(image, recording: bool):
    if recording:
        cv2.circle(image, (20, 20), 8, (0, 0, 255), -1)
        cv2.putText(image, "REC", (34, 26), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 255), 2)
    return image


async def run_preview(pipeline: Pipeline, console: Console | None = None) -> None:  # pragma: no cover
    """Show the annotated surface; r toggles recording, s saves, q quits."""
    console = console or Console()
    try:
        await pipeline.start()
        cv2.namedWindow(WINDOW, cv2.WINDOW_NORMAL)
        console.print("Press [bold]r[/] to start/stop recording, [bold]s[/] to save, [bold]q[/] to quit")
        while True:
            image = pipeline.surface.snapshot()
            if image.size:
                cv2.imshow(WINDOW, _badge(image, pipeline.recorder.recording))
            key = cv2.waitKey(1) & 0xFF
            if key == KEY_QUIT:
                break
            if key == KEY_RECORD:
                try:
                    artifact = await pipeline.toggle_recording()
                except RecordingError as exc:
                    console.print(f"[yellow]{exc}")
                else:
                    if artifact is not None:
                        console.print(f"Recorded {artifact.size} bytes ({artifact.mime_type})")
            elif key == KEY_SAVE:
                path = pipeline.save_recording()
                console.print(f"Saved {path}" if path else "[yellow]Nothing recorded yet")
            if cv2.getWindowProperty(WINDOW, cv2.WND_PROP_VISIBLE) < 1:
                break
            await asyncio.sleep(UI_PERIOD_S)
    finally:
        await pipeline.shutdown()
        cv2.destroyAllWindows()


async def record_clip(
    pipeline: Pipeline,
    seconds: float,
    path: Path | None = None,
    warmup_s: float = 5.0,
) -> Optional[Path]:
    """Capture for *seconds* without a window and save the recording."""
    try:
        await pipeline.start()
        # the surface takes the camera's size on the first rendered frame
        waited = 0.0
        while pipeline.surface.width == 0:
            if waited >= warmup_s:
                raise RecordingError(f"No frame rendered within {warmup_s:.1f}s")
            await asyncio.sleep(UI_PERIOD_S)
            waited += UI_PERIOD_S
        pipeline.start_recording()
        await asyncio.sleep(seconds)
        await pipeline.stop_recording()
    finally:
        await pipeline.shutdown()
    return pipeline.save_recording(path)
