"""Caller-side incremental search with "last request wins" semantics."""

from __future__ import annotations

import asyncio
from typing import Protocol

from geodat.config import SearchConfig
from geodat.models import DecodedResult, Entry
from geodat.types import DetectedType, FileType


class EntryBackend(Protocol):
    """Anything that can decode files and filter the decoded entries asynchronously."""

    async def decode(
        self, data: bytes, file_type: FileType | str = FileType.AUTO, filename: str = ""
    ) -> DecodedResult: ...

    async def filter(self, search: str) -> tuple[Entry, ...]: ...


class SearchSession:
    """Tracks the current decode result and discards stale search responses.

    Every `search` call takes a new token. After the optional debounce and the
    backend round-trip, the result is only returned if no newer `search` or
    `load` started meanwhile; otherwise `None` signals a stale response the
    caller should ignore. A timeout is treated the same way.
    """

    def __init__(self, backend: EntryBackend, config: SearchConfig | None = None) -> None:
        self.backend = backend
        self.config = config or SearchConfig()
        self._result: DecodedResult | None = None
        self._token = 0

    @property
    def result(self) -> DecodedResult | None:
        return self._result

    def _next_token(self) -> int:
        self._token += 1
        return self._token

    def _is_latest(self, token: int) -> bool:
        return token == self._token

    async def load(
        self, data: bytes, file_type: FileType | str = FileType.AUTO, filename: str = ""
    ) -> DecodedResult:
        """Decode a file through the backend and make it the current result.

        An `unknown` result is returned but does not replace the current one,
        since the backend keeps its previously cached entries in that case.
        """

        self._next_token()
        result = await self.backend.decode(data, file_type, filename)
        if result.detected_type is not DetectedType.UNKNOWN:
            self._result = result
        return result

    async def search(self, query: str) -> tuple[Entry, ...] | None:
        token = self._next_token()
        if self._result is None:
            return None

        query = query.strip()
        if not query:
            return self._result.entries

        if self.config.debounce_ms:
            await asyncio.sleep(self.config.debounce_ms / 1000.0)
            if not self._is_latest(token):
                return None

        try:
            entries = await asyncio.wait_for(
                self.backend.filter(query), self.config.timeout_seconds
            )
        except asyncio.TimeoutError:
            return None

        if not self._is_latest(token):
            return None
        return entries
