"""FastAPI entrypoint for decode/filter/metrics endpoints."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, Field

from geodat.config import ServiceConfig
from geodat.errors import MalformedInput, NoActiveDecode, TransportFailure, WorkerError
from geodat.models import DecodedResult, Entry, SummaryData
from geodat.obs.timing import Timer, TimingStore
from geodat.types import DetectedType, FileType
from geodat.utils import format_bytes
from geodat.worker.client import DecodeWorkerClient

log = logging.getLogger(__name__)


def _load_config() -> ServiceConfig:
    config = ServiceConfig()
    max_upload = os.getenv("GEODAT_MAX_UPLOAD_BYTES")
    if max_upload:
        config = config.model_copy(update={"max_upload_bytes": int(max_upload)})
    return config


class FilterRequest(BaseModel):
    search: str = ""


class DecodeResponse(BaseModel):
    result: DecodedResult
    summary: SummaryData


class FilterResponse(BaseModel):
    items: list[Entry] = Field(default_factory=list)
    matched: int = 0
    total: int = 0


def create_app(config: ServiceConfig | None = None) -> FastAPI:
    service_config = config or _load_config()
    timing_store = TimingStore(max_records=service_config.timing_history)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        client = DecodeWorkerClient(config=service_config.worker)
        await client.start()
        app.state.client = client
        try:
            yield
        finally:
            client.terminate()
            app.state.client = None

    app = FastAPI(title="GeoIP/GeoSite Viewer", version="0.1.0", lifespan=lifespan)
    app.state.client = None
    app.state.total = 0
    app.state.decoded = False
    state = app.state

    def _client() -> DecodeWorkerClient:
        client = state.client
        if client is None:
            raise HTTPException(status_code=503, detail="Decode worker is not running")
        return client

    @app.get("/health")
    def health() -> dict[str, Any]:
        client = state.client
        return {
            "status": "ok",
            "worker_alive": client is not None and client.alive,
            "decoded": state.decoded,
        }

    @app.post("/decode", response_model=DecodeResponse)
    async def decode(
        request: Request,
        file_type: FileType = Query(default=FileType.AUTO, alias="type"),
        filename: str = "",
    ) -> DecodeResponse:
        data = await request.body()
        if len(data) > service_config.max_upload_bytes:
            raise HTTPException(status_code=413, detail="File too large")

        with Timer() as timer:
            try:
                result = await _client().decode(data, file_type, filename)
            except MalformedInput as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
            except TransportFailure as exc:
                raise HTTPException(status_code=503, detail=str(exc)) from exc
            except asyncio.TimeoutError as exc:
                raise HTTPException(status_code=504, detail="Decode worker timed out") from exc
            except WorkerError as exc:
                raise HTTPException(status_code=500, detail=f"Decode worker failed: {exc}") from exc

        if result.detected_type is not DetectedType.UNKNOWN:
            state.decoded = True
            state.total = len(result.entries)
        timing_store.record(
            operation="decode",
            latency_ms=timer.elapsed_ms,
            filename=filename,
            detected_type=result.detected_type.value,
            input_bytes=len(data),
            entries_out=len(result.entries),
        )
        log.info(
            "[perf] decode=%.1fms file=%s type=%s lists=%d",
            timer.elapsed_ms,
            filename,
            result.detected_type.value,
            result.totals.lists,
        )
        summary = SummaryData(
            filename=filename,
            size=len(data),
            size_label=format_bytes(len(data)),
            detected_type=result.detected_type,
            totals=result.totals,
        )
        return DecodeResponse(result=result, summary=summary)

    @app.post("/filter", response_model=FilterResponse)
    async def filter_entries(request: FilterRequest) -> FilterResponse:
        with Timer() as timer:
            try:
                entries = await _client().filter(request.search)
            except NoActiveDecode as exc:
                raise HTTPException(status_code=409, detail=str(exc)) from exc
            except TransportFailure as exc:
                raise HTTPException(status_code=503, detail=str(exc)) from exc
            except asyncio.TimeoutError as exc:
                raise HTTPException(status_code=504, detail="Decode worker timed out") from exc
            except WorkerError as exc:
                raise HTTPException(status_code=500, detail=f"Decode worker failed: {exc}") from exc

        timing_store.record(
            operation="filter",
            latency_ms=timer.elapsed_ms,
            entries_in=state.total,
            entries_out=len(entries),
        )
        log.info(
            "[perf:filter] %.1fms (%d/%d entries)",
            timer.elapsed_ms,
            len(entries),
            state.total,
        )
        return FilterResponse(items=list(entries), matched=len(entries), total=state.total)

    @app.get("/timings")
    def timings(limit: int = 20) -> dict[str, Any]:
        return {"items": [asdict(record) for record in timing_store.list_recent(limit=limit)]}

    @app.get("/metrics")
    def metrics() -> dict[str, Any]:
        return timing_store.summary()

    return app


app = create_app()
