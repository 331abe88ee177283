"""Maps decoded records into the uniform entry model and computes totals."""

from __future__ import annotations

from collections.abc import Sequence

from geodat.format.ip import format_cidr
from geodat.models import DomainEntry, Entry, GeoIPEntry, GeoSiteEntry, Totals
from geodat.types import DetectedType, GeoIPRecord, GeoSiteRecord, RecordList


def normalize_geoip(records: Sequence[GeoIPRecord]) -> tuple[list[Entry], Totals]:
    entries: list[Entry] = [
        GeoIPEntry(
            tag=record.country_code.upper(),
            cidrs=tuple(format_cidr(cidr) for cidr in record.cidrs),
        )
        for record in records
    ]
    total_cidrs = sum(len(entry.cidrs) for entry in entries)
    return entries, Totals(lists=len(entries), cidrs=total_cidrs, domains=0)


def normalize_geosite(records: Sequence[GeoSiteRecord]) -> tuple[list[Entry], Totals]:
    entries: list[Entry] = [
        GeoSiteEntry(
            tag=record.country_code.upper(),
            domains=tuple(
                DomainEntry(kind=domain.kind, value=domain.value or "")
                for domain in record.domains
            ),
        )
        for record in records
    ]
    total_domains = sum(len(entry.domains) for entry in entries)
    return entries, Totals(lists=len(entries), cidrs=0, domains=total_domains)


def normalize(detected_type: DetectedType, records: RecordList) -> tuple[list[Entry], Totals]:
    """Produce ordered entries plus aggregate totals for a decoded record list."""

    match detected_type:
        case DetectedType.GEOIP:
            return normalize_geoip(records)  # type: ignore[arg-type]
        case DetectedType.GEOSITE:
            return normalize_geosite(records)  # type: ignore[arg-type]
        case _:
            raise ValueError(f"Cannot normalize records of type: {detected_type.value}")
