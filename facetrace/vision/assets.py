# SPDX-License-Identifier: Apache-2.0
"""Model asset resolution: local static path first, remote registry second."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import requests

from facetrace.errors import ModelLoadError
from facetrace.logging_utils import get_logger
from facetrace.utils.io import ensure_dir

LOGGER = get_logger(__name__)

CHUNK_SIZE = 1 << 16


def download_asset(url: str, path: Path, timeout: Optional[float] = None) -> Path:
    """Download *url* to *path*, replacing any partial file."""
    LOGGER.info("downloading model asset", url=url, path=str(path))
    ensure_dir(path.parent)
    partial = path.with_name(path.name + ".part")
    try:
        with requests.get(url, stream=True, timeout=timeout) as resp:
            resp.raise_for_status()
            with open(partial, "wb") as f:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
    except requests.RequestException as exc:
        partial.unlink(missing_ok=True)
        raise ModelLoadError(f"Failed to download model from {url}: {exc}", source=url) from exc
    except OSError as exc:
        partial.unlink(missing_ok=True)
        raise ModelLoadError(f"Failed to write model to {path}: {exc}", source=url) from exc

    if partial.stat().st_size == 0:
        partial.unlink()
        raise ModelLoadError(f"Downloaded model from {url} is empty", source=url)
    partial.replace(path)
    return path


def resolve_asset(path: Path, url: Optional[str] = None, timeout: Optional[float] = None) -> Path:
    """Return a local path for the model, downloading it when missing."""
    path = Path(path)
    if path.is_file():
        return path
    if not url:
        raise ModelLoadError(
            f"Model asset {path} not found and no download URL configured",
            source=str(path),
        )
    return download_asset(url, path, timeout=timeout)
