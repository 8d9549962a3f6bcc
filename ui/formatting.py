"""Display helpers for pick timestamps (epoch milliseconds)."""

from __future__ import annotations

from datetime import datetime

from picker_core.schemas import now_ms


def format_time(ts_ms: int) -> str:
    """Local absolute time, e.g. ``2026-01-05 09:30:00``."""
    return datetime.fromtimestamp(ts_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def relative(ts_ms: int, now: int | None = None) -> str:
    """Coarse "time ago" label in seconds, minutes, hours or days."""
    current = now_ms() if now is None else now
    seconds = max(0, current - ts_ms) // 1000
    if seconds < 60:
        return f"{seconds}s ago"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"
