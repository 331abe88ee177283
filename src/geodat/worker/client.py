"""Async client for the isolated decode worker."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import multiprocessing
import threading
from collections.abc import Callable
from multiprocessing.connection import Connection
from typing import Any, Protocol

from geodat.config import WorkerConfig
from geodat.errors import TransportFailure, WorkerError, error_from_response
from geodat.models import DecodedResult, Entry
from geodat.types import FileType
from geodat.worker.messages import (
    DecodeRequest,
    DecodeResultResponse,
    ErrorResponse,
    FilterRequest,
    FilterResultResponse,
    WorkerRequest,
    WorkerResponse,
)
from geodat.worker.server import serve

log = logging.getLogger(__name__)


class Transport(Protocol):
    """Bidirectional message channel to a worker."""

    def start(self) -> None:
        """Bring the worker up."""

    def send(self, message: WorkerRequest) -> None:
        """Deliver one request; raise `TransportFailure` if the channel is broken."""

    def recv(self) -> WorkerResponse:
        """Block for the next response; raise `TransportFailure` if the channel is broken."""

    def close(self) -> None:
        """Shut the worker down and release the channel."""

    @property
    def alive(self) -> bool:
        """Whether the worker is still running."""


class ProcessTransport:
    """Runs `serve` in a separate process connected by a duplex pipe."""

    def __init__(self, config: WorkerConfig | None = None) -> None:
        self.config = config or WorkerConfig()
        self._conn: Connection | None = None
        self._process: multiprocessing.process.BaseProcess | None = None

    @property
    def alive(self) -> bool:
        return self._process is not None and self._process.is_alive()

    def start(self) -> None:
        context = multiprocessing.get_context(self.config.start_method)
        parent_conn, child_conn = context.Pipe(duplex=True)
        process = context.Process(
            target=serve, args=(child_conn,), name="geodat-decode-worker", daemon=True
        )
        process.start()
        # The child owns its end now; closing ours lets recv() see EOF if it dies.
        child_conn.close()
        self._conn = parent_conn
        self._process = process

    def send(self, message: WorkerRequest) -> None:
        if self._conn is None:
            raise TransportFailure("Worker is not running")
        try:
            self._conn.send(message)
        except (OSError, ValueError) as exc:
            raise TransportFailure(f"Failed to send to worker: {exc}") from exc

    def recv(self) -> WorkerResponse:
        if self._conn is None:
            raise TransportFailure("Worker is not running")
        try:
            return self._conn.recv()
        except (EOFError, OSError) as exc:
            exitcode = self._process.exitcode if self._process is not None else None
            raise TransportFailure(f"Worker exited (exit code {exitcode})") from exc

    def close(self) -> None:
        process, conn = self._process, self._conn
        if process is not None:
            if process.is_alive() and conn is not None:
                with contextlib.suppress(OSError):
                    conn.send(None)
            process.join(self.config.shutdown_timeout_seconds)
            if process.is_alive():
                process.terminate()
                process.join(self.config.shutdown_timeout_seconds)
        if conn is not None:
            conn.close()
        self._process = None
        self._conn = None


class DecodeWorkerClient:
    """Correlates requests and responses with the decode worker by id.

    Responses are matched to their pending request by id, never by arrival
    order. When the transport breaks, every pending request fails with
    `TransportFailure`; the client does not restart the worker.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        config: WorkerConfig | None = None,
    ) -> None:
        self.config = config or WorkerConfig()
        self._transport: Transport = transport or ProcessTransport(self.config)
        self._pending: dict[str, asyncio.Future[WorkerResponse]] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._reader: threading.Thread | None = None
        self._failure: TransportFailure | None = None
        self._closed = False

    @property
    def alive(self) -> bool:
        return (
            self._loop is not None
            and not self._closed
            and self._failure is None
            and self._transport.alive
        )

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def start(self) -> "DecodeWorkerClient":
        self._loop = asyncio.get_running_loop()
        self._transport.start()
        self._reader = threading.Thread(
            target=self._read_loop, name="geodat-worker-reader", daemon=True
        )
        self._reader.start()
        return self

    async def __aenter__(self) -> "DecodeWorkerClient":
        return await self.start()

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.terminate()

    async def decode(
        self, data: bytes, file_type: FileType | str = FileType.AUTO, filename: str = ""
    ) -> DecodedResult:
        request = DecodeRequest(data=data, file_type=FileType(file_type), filename=filename)
        response = await self._post_request(request)
        if not isinstance(response, DecodeResultResponse):
            raise WorkerError(f"Unexpected {response.kind} response to a decode request")
        return response.result

    async def filter(self, search: str) -> tuple[Entry, ...]:
        response = await self._post_request(FilterRequest(search=search))
        if not isinstance(response, FilterResultResponse):
            raise WorkerError(f"Unexpected {response.kind} response to a filter request")
        return response.entries

    def terminate(self) -> None:
        if self._closed:
            return
        self._closed = True
        failure = TransportFailure("Worker client terminated")
        for future in self._pending.values():
            if not future.done():
                future.set_exception(failure)
        self._pending.clear()
        self._transport.close()
        if self._reader is not None:
            self._reader.join(self.config.shutdown_timeout_seconds)

    async def _post_request(self, request: WorkerRequest) -> WorkerResponse:
        if self._loop is None:
            raise TransportFailure("Worker client is not started")
        if self._failure is not None:
            raise self._failure
        if self._closed:
            raise TransportFailure("Worker client terminated")

        future: asyncio.Future[WorkerResponse] = self._loop.create_future()
        self._pending[request.id] = future
        try:
            try:
                self._transport.send(request)
            except TransportFailure as exc:
                self._handle_failure(exc)
            timeout = self.config.request_timeout_seconds
            return await asyncio.wait_for(future, timeout) if timeout else await future
        finally:
            self._pending.pop(request.id, None)

    def _read_loop(self) -> None:
        while not self._closed:
            try:
                response = self._transport.recv()
            except TransportFailure as exc:
                self._dispatch(self._handle_failure, exc)
                return
            self._dispatch(self._handle_response, response)

    def _dispatch(self, callback: Callable[[Any], None], argument: Any) -> None:
        if self._loop is None or self._closed:
            return
        try:
            self._loop.call_soon_threadsafe(callback, argument)
        except RuntimeError:
            # Event loop already closed; nobody is waiting any more.
            return

    def _handle_response(self, response: WorkerResponse) -> None:
        future = self._pending.pop(response.id, None)
        if future is None or future.done():
            log.debug("Discarding response for stale request %s", response.id)
            return
        if isinstance(response, ErrorResponse):
            future.set_exception(error_from_response(response.error_type, response.error))
            return
        future.set_result(response)

    def _handle_failure(self, failure: TransportFailure) -> None:
        if self._closed:
            return
        if self._failure is None:
            log.error("Decode worker transport failed: %s", failure)
        self._failure = failure
        for request_id, future in list(self._pending.items()):
            if not future.done():
                future.set_exception(failure)
            self._pending.pop(request_id, None)
