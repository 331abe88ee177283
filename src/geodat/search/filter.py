"""Case-insensitive substring filter over normalized entries."""

from __future__ import annotations

from collections.abc import Sequence

from geodat.models import Entry, GeoIPEntry, GeoSiteEntry


def matches_search(entry: Entry, needle: str) -> bool:
    """Check one entry against an already lower-cased, non-empty needle.

    The tag is checked first; then CIDRs for GeoIP entries, or domain values
    and kind labels for GeoSite entries.
    """

    if needle in entry.tag.lower():
        return True

    match entry:
        case GeoIPEntry(cidrs=cidrs):
            return any(needle in cidr.lower() for cidr in cidrs)
        case GeoSiteEntry(domains=domains):
            return any(
                needle in domain.value.lower() or needle in domain.label.lower()
                for domain in domains
            )
    raise TypeError(f"Unsupported entry type: {type(entry).__name__}")


def filter_entries(entries: Sequence[Entry], query: str) -> list[Entry]:
    """Return the entries matching `query`, preserving order.

    A blank query returns every entry.
    """

    needle = query.strip().lower()
    if not needle:
        return list(entries)
    return [entry for entry in entries if matches_search(entry, needle)]
