"""GeoIP / GeoSite list decoding and search."""

from .config import SearchConfig, ServiceConfig, WorkerConfig
from .engine import DecodeEngine
from .errors import MalformedInput, NoActiveDecode, TransportFailure
from .models import DecodedResult, GeoIPEntry, GeoSiteEntry, Totals
from .types import DetectedType, FileType

__all__ = [
    "DecodeEngine",
    "DecodedResult",
    "DetectedType",
    "FileType",
    "GeoIPEntry",
    "GeoSiteEntry",
    "MalformedInput",
    "NoActiveDecode",
    "SearchConfig",
    "ServiceConfig",
    "Totals",
    "TransportFailure",
    "WorkerConfig",
]
