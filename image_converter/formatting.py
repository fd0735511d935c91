"""Label text helpers shared by the info overlays."""

from __future__ import annotations

KB_THRESHOLD = 1024
MB_THRESHOLD = 1024 * 1024


def format_size(size_bytes: int) -> str:
    if size_bytes < 0:
        raise ValueError("size_bytes must be non-negative")
    if size_bytes < KB_THRESHOLD:
        return f"{int(size_bytes)} B"
    if size_bytes < MB_THRESHOLD:
        return f"{size_bytes / KB_THRESHOLD:.1f} KB"
    return f"{size_bytes / MB_THRESHOLD:.1f} MB"


def format_label(prefix: str, kind: str, size_bytes: int) -> str:
    return f"{prefix}: {kind.upper()} - {format_size(size_bytes)}"


def format_percent(value: float) -> str:
    return f"{round(value * 100)}%"
