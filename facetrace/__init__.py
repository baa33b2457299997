# SPDX-License-Identifier: Apache-2.0
"""Live face-landmark annotation and recording pipeline."""

from __future__ import annotations

try:  # load environment variables from .env if present
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:  # pragma: no cover - optional at import time
    pass

__all__: list[str] = []
__version__ = "0.1.0"
