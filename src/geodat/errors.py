"""Error kinds raised by the decode engine and its worker boundary."""

from __future__ import annotations


class GeoDatError(Exception):
    """Base class for all decode engine failures."""


class MalformedInput(GeoDatError, ValueError):
    """Bytes do not parse against the resolved list layout."""


class NoActiveDecode(GeoDatError, LookupError):
    """A search was requested before any decode completed."""

    def __init__(self, message: str = "No file has been decoded yet") -> None:
        super().__init__(message)


class TransportFailure(GeoDatError, ConnectionError):
    """The execution boundary between client and worker broke."""


class WorkerError(GeoDatError):
    """The worker reported a failure of a kind the client does not know."""


_ERROR_TYPES: dict[str, type[GeoDatError]] = {
    cls.__name__: cls for cls in (MalformedInput, NoActiveDecode, TransportFailure)
}


def error_from_response(error_type: str | None, message: str) -> GeoDatError:
    """Rebuild the exception a worker error response describes."""

    cls = _ERROR_TYPES.get(error_type or "", WorkerError)
    return cls(message)
