"""Small presentation helpers."""

from __future__ import annotations

_UNITS = ("B", "KB", "MB", "GB")


def format_bytes(size: int) -> str:
    """Format a byte count as e.g. "1.5 MB"; one decimal below 10, none above."""

    if not size:
        return "0 B"
    value = float(size)
    index = 0
    while value >= 1024 and index < len(_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{value:.{0 if value >= 10 else 1}f} {_UNITS[index]}"
