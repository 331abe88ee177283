"""Typed request/response messages exchanged with the decode worker."""

from __future__ import annotations

import uuid
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from geodat.models import DecodedResult, Entry
from geodat.types import FileType

DECODE = "decode"
FILTER = "filter"
DECODE_RESULT = "decode:result"
FILTER_RESULT = "filter:result"
DECODE_ERROR = "decode:error"
FILTER_ERROR = "filter:error"

REQUEST_TO_ERROR_KIND = {
    DECODE: DECODE_ERROR,
    FILTER: FILTER_ERROR,
}


def new_request_id() -> str:
    return str(uuid.uuid4())


class _Message(BaseModel):
    id: str = Field(default_factory=new_request_id)


# --- Requests ---


class DecodeRequest(_Message):
    kind: Literal["decode"] = DECODE
    data: bytes
    file_type: FileType = FileType.AUTO
    filename: str = ""


class FilterRequest(_Message):
    kind: Literal["filter"] = FILTER
    search: str


WorkerRequest = Annotated[Union[DecodeRequest, FilterRequest], Field(discriminator="kind")]


# --- Responses ---


class DecodeResultResponse(_Message):
    kind: Literal["decode:result"] = DECODE_RESULT
    result: DecodedResult


class FilterResultResponse(_Message):
    kind: Literal["filter:result"] = FILTER_RESULT
    entries: tuple[Entry, ...] = ()


class ErrorResponse(_Message):
    kind: Literal["decode:error", "filter:error"]
    error: str
    error_type: str | None = None


WorkerResponse = Annotated[
    Union[DecodeResultResponse, FilterResultResponse, ErrorResponse],
    Field(discriminator="kind"),
]
