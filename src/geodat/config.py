"""Configuration models for the decode engine and its hosts."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class WorkerConfig(BaseModel):
    """Configures the isolated decode worker process and its client."""

    start_method: Literal["spawn", "fork", "forkserver"] = "spawn"
    request_timeout_seconds: float | None = Field(default=None, gt=0.0)
    shutdown_timeout_seconds: float = Field(default=5.0, gt=0.0)


class SearchConfig(BaseModel):
    """Configures caller-side incremental search behavior."""

    debounce_ms: int = Field(default=300, ge=0)
    timeout_seconds: float | None = Field(default=None, gt=0.0)


class ServiceConfig(BaseModel):
    """Configures the HTTP host."""

    worker: WorkerConfig = Field(default_factory=WorkerConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    max_upload_bytes: int = Field(default=256 * 1024 * 1024, ge=1)
    timing_history: int = Field(default=500, ge=1)
