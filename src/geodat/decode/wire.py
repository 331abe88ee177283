"""Protobuf wire framing: varints, tags and field iteration."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Union

from google.protobuf.internal.decoder import _DecodeVarint
from google.protobuf.message import DecodeError

from geodat.errors import MalformedInput

WIRETYPE_VARINT = 0
WIRETYPE_FIXED64 = 1
WIRETYPE_LENGTH_DELIMITED = 2
WIRETYPE_START_GROUP = 3
WIRETYPE_END_GROUP = 4
WIRETYPE_FIXED32 = 5

MAX_GROUP_DEPTH = 100

_FIXED_WIDTHS = {WIRETYPE_FIXED64: 8, WIRETYPE_FIXED32: 4}

Buffer = Union[bytes, bytearray, memoryview]
FieldValue = Union[int, memoryview]


def read_varint(data: memoryview, pos: int) -> tuple[int, int]:
    """Read one base-128 varint starting at `pos`; return (value, new_pos)."""
    try:
        return _DecodeVarint(data, pos)
    except IndexError as exc:
        raise MalformedInput(f"Truncated varint at offset {pos}") from exc
    except DecodeError as exc:
        raise MalformedInput(f"Varint longer than 10 bytes at offset {pos}") from exc


def read_tag(data: memoryview, pos: int) -> tuple[int, int, int]:
    """Read a field key; return (field_number, wire_type, new_pos)."""
    key, new_pos = read_varint(data, pos)
    field_number = key >> 3
    wire_type = key & 0x7
    if field_number == 0:
        raise MalformedInput(f"Invalid field number 0 at offset {pos}")
    if wire_type > WIRETYPE_FIXED32:
        raise MalformedInput(f"Invalid wire type {wire_type} at offset {pos}")
    return field_number, wire_type, new_pos


def _skip_group(data: memoryview, pos: int, field_number: int) -> int:
    open_groups = [field_number]
    while open_groups:
        if pos >= len(data):
            raise MalformedInput(f"Unterminated group for field {open_groups[-1]}")
        tag_pos = pos
        inner_field, wire_type, pos = read_tag(data, pos)
        if wire_type == WIRETYPE_START_GROUP:
            if len(open_groups) >= MAX_GROUP_DEPTH:
                raise MalformedInput(f"Group nesting too deep at offset {tag_pos}")
            open_groups.append(inner_field)
        elif wire_type == WIRETYPE_END_GROUP:
            expected = open_groups.pop()
            if inner_field != expected:
                raise MalformedInput(
                    f"Mismatched end group {inner_field} for field {expected} "
                    f"at offset {tag_pos}"
                )
        else:
            _, pos = _read_value(data, pos, inner_field, wire_type)
    return pos


def _read_value(
    data: memoryview, pos: int, field_number: int, wire_type: int
) -> tuple[FieldValue | None, int]:
    if wire_type == WIRETYPE_VARINT:
        return read_varint(data, pos)

    if wire_type == WIRETYPE_LENGTH_DELIMITED:
        length, start = read_varint(data, pos)
        end = start + length
        if end > len(data):
            raise MalformedInput(
                f"Length {length} of field {field_number} at offset {pos} "
                f"exceeds remaining {len(data) - start} bytes"
            )
        return data[start:end], end

    if wire_type in _FIXED_WIDTHS:
        end = pos + _FIXED_WIDTHS[wire_type]
        if end > len(data):
            raise MalformedInput(f"Truncated fixed-width field {field_number} at offset {pos}")
        return int.from_bytes(data[pos:end], "little"), end

    if wire_type == WIRETYPE_START_GROUP:
        return None, _skip_group(data, pos, field_number)

    raise MalformedInput(f"Unexpected end group for field {field_number} at offset {pos}")


def iter_fields(data: Buffer) -> Iterator[tuple[int, int, FieldValue | None]]:
    """Yield (field_number, wire_type, value) for every field of one message.

    Varint and fixed-width values are ints, length-delimited values are
    zero-copy memoryview slices, and groups are skipped with a `None` value.
    """

    view = data if isinstance(data, memoryview) else memoryview(data)
    pos = 0
    while pos < len(view):
        field_number, wire_type, pos = read_tag(view, pos)
        value, pos = _read_value(view, pos, field_number, wire_type)
        yield field_number, wire_type, value


def expect_wire_type(field_number: int, wire_type: int, expected: int) -> None:
    if wire_type != expected:
        raise MalformedInput(
            f"Field {field_number} has wire type {wire_type}, expected {expected}"
        )
