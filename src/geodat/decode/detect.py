"""File type detection from an explicit hint or the source filename."""

from __future__ import annotations

from geodat.types import DetectedType, FileType


def detect_type(hint: FileType | str, filename: str | None) -> DetectedType:
    """Resolve which list layout applies.

    An explicit `geoip`/`geosite` hint always wins. With `auto`, the lower-cased
    filename is checked for "geoip" first, then "geosite"; otherwise the type
    is unknown.
    """

    file_type = FileType(hint)
    if file_type is FileType.GEOIP:
        return DetectedType.GEOIP
    if file_type is FileType.GEOSITE:
        return DetectedType.GEOSITE

    lower = (filename or "").lower()
    if "geoip" in lower:
        return DetectedType.GEOIP
    if "geosite" in lower:
        return DetectedType.GEOSITE
    return DetectedType.UNKNOWN
