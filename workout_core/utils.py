"""Utility helpers used across the session modules."""

from __future__ import annotations


def format_clock(seconds: float | None) -> str:
    """Return ``seconds`` rendered as zero padded ``MM:SS``."""

    total = max(0, int(seconds or 0))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"
