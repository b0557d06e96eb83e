"""Time helpers."""

from __future__ import annotations

import time


def now_ms() -> int:
    """Current Unix time in milliseconds, as stored in the index tables."""
    return int(time.time() * 1000)
