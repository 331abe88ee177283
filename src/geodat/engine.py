"""Decode orchestrator: detection, decoding, normalization and the cached entry set."""

from __future__ import annotations

from collections.abc import Sequence

from geodat.decode.detect import detect_type
from geodat.decode.layouts import decode_records
from geodat.decode.normalizer import normalize
from geodat.errors import NoActiveDecode
from geodat.models import DecodedResult, Entry
from geodat.search.filter import filter_entries
from geodat.types import DetectedType, FileType


class DecodeEngine:
    """Owns one decode-then-filter session.

    The cached entry set is replaced wholesale by each successful decode, so a
    search never sees a partially built set. A failed decode leaves the
    previous set in place, and an `unknown` detection does not touch it.
    """

    def __init__(self) -> None:
        self._entries: tuple[Entry, ...] | None = None

    @property
    def has_result(self) -> bool:
        return self._entries is not None

    @property
    def entries(self) -> Sequence[Entry]:
        if self._entries is None:
            raise NoActiveDecode()
        return self._entries

    def decode(
        self,
        data: bytes | bytearray | memoryview,
        file_type: FileType | str = FileType.AUTO,
        filename: str = "",
    ) -> DecodedResult:
        """Decode a GeoIP/GeoSite list file and cache its entries for searching.

        Raises:
            MalformedInput: the bytes do not parse against the resolved layout.
        """

        detected = detect_type(file_type, filename)
        if detected is DetectedType.UNKNOWN:
            return DecodedResult.empty()

        records = decode_records(detected, data)
        entries, totals = normalize(detected, records)
        result = DecodedResult(detected_type=detected, entries=tuple(entries), totals=totals)
        self._entries = result.entries
        return result

    def search(self, query: str) -> list[Entry]:
        """Filter the cached entry set.

        Raises:
            NoActiveDecode: no decode has completed on this engine.
        """

        return filter_entries(self.entries, query)

    def clear(self) -> None:
        self._entries = None
