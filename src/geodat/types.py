"""Decoded record types and file type enums."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class FileType(str, Enum):
    """Type hint supplied by the caller."""

    AUTO = "auto"
    GEOIP = "geoip"
    GEOSITE = "geosite"


class DetectedType(str, Enum):
    """Layout resolved for a file."""

    GEOIP = "geoip"
    GEOSITE = "geosite"
    UNKNOWN = "unknown"


@dataclass(slots=True)
class CidrRecord:
    """One address range: 4 or 16 address bytes plus a prefix length."""

    address: bytes = b""
    prefix_length: int = 0


@dataclass(slots=True)
class DomainRecord:
    """One domain rule. `kind` is 0=Plain, 1=Regex, 2=Domain, 3=Full."""

    kind: int = 0
    value: str = ""


@dataclass(slots=True)
class GeoIPRecord:
    country_code: str = ""
    cidrs: list[CidrRecord] = field(default_factory=list)


@dataclass(slots=True)
class GeoSiteRecord:
    country_code: str = ""
    domains: list[DomainRecord] = field(default_factory=list)


RecordList = list[GeoIPRecord] | list[GeoSiteRecord]
