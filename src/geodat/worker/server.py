"""Worker side of the decode boundary: one engine, one request at a time."""

from __future__ import annotations

from multiprocessing.connection import Connection

from geodat.engine import DecodeEngine
from geodat.worker.messages import (
    REQUEST_TO_ERROR_KIND,
    DecodeRequest,
    DecodeResultResponse,
    ErrorResponse,
    FilterRequest,
    FilterResultResponse,
    WorkerRequest,
    WorkerResponse,
)


def handle_request(engine: DecodeEngine, request: WorkerRequest) -> WorkerResponse:
    """Run one request against `engine` and build its response.

    Failures become `decode:error` / `filter:error` responses carrying the
    exception class name and message; they never escape the worker.
    """

    try:
        match request:
            case DecodeRequest():
                result = engine.decode(request.data, request.file_type, request.filename)
                return DecodeResultResponse(id=request.id, result=result)
            case FilterRequest():
                entries = engine.search(request.search)
                return FilterResultResponse(id=request.id, entries=tuple(entries))
    except Exception as exc:
        return ErrorResponse(
            id=request.id,
            kind=REQUEST_TO_ERROR_KIND[request.kind],
            error=str(exc) or type(exc).__name__,
            error_type=type(exc).__name__,
        )
    raise TypeError(f"Unsupported request: {type(request).__name__}")


def serve(conn: Connection) -> None:
    """Process requests from `conn` in arrival order until EOF or a `None` sentinel."""

    engine = DecodeEngine()
    try:
        while True:
            try:
                request = conn.recv()
            except EOFError:
                break
            if request is None:
                break
            conn.send(handle_request(engine, request))
    finally:
        engine.clear()
        conn.close()
