"""Decoders for the two fixed list layouts (xray.app.router GeoIPList / GeoSiteList)."""

from __future__ import annotations

from geodat.decode.wire import (
    WIRETYPE_LENGTH_DELIMITED,
    WIRETYPE_VARINT,
    Buffer,
    expect_wire_type,
    iter_fields,
)
from geodat.types import (
    CidrRecord,
    DetectedType,
    DomainRecord,
    GeoIPRecord,
    GeoSiteRecord,
    RecordList,
)

# Field numbers shared by both list messages and their entries.
_LIST_ENTRY = 1
_COUNTRY_CODE = 1
_GEOIP_CIDR = 2
_CIDR_IP = 1
_CIDR_PREFIX = 2
_GEOSITE_DOMAIN = 2
_DOMAIN_TYPE = 1
_DOMAIN_VALUE = 2

_UINT32_MASK = 0xFFFFFFFF


def _text(value: memoryview) -> str:
    return bytes(value).decode("utf-8", errors="replace")


def _int32(value: int) -> int:
    value &= _UINT32_MASK
    return value - (1 << 32) if value & 0x80000000 else value


def _decode_cidr(data: memoryview) -> CidrRecord:
    record = CidrRecord()
    for field_number, wire_type, value in iter_fields(data):
        if field_number == _CIDR_IP:
            expect_wire_type(field_number, wire_type, WIRETYPE_LENGTH_DELIMITED)
            record.address = bytes(value)
        elif field_number == _CIDR_PREFIX:
            expect_wire_type(field_number, wire_type, WIRETYPE_VARINT)
            record.prefix_length = value & _UINT32_MASK
    return record


def _decode_geoip(data: memoryview) -> GeoIPRecord:
    record = GeoIPRecord()
    for field_number, wire_type, value in iter_fields(data):
        if field_number == _COUNTRY_CODE:
            expect_wire_type(field_number, wire_type, WIRETYPE_LENGTH_DELIMITED)
            record.country_code = _text(value)
        elif field_number == _GEOIP_CIDR:
            expect_wire_type(field_number, wire_type, WIRETYPE_LENGTH_DELIMITED)
            record.cidrs.append(_decode_cidr(value))
    return record


def _decode_domain(data: memoryview) -> DomainRecord:
    record = DomainRecord()
    for field_number, wire_type, value in iter_fields(data):
        if field_number == _DOMAIN_TYPE:
            expect_wire_type(field_number, wire_type, WIRETYPE_VARINT)
            record.kind = _int32(value)
        elif field_number == _DOMAIN_VALUE:
            expect_wire_type(field_number, wire_type, WIRETYPE_LENGTH_DELIMITED)
            record.value = _text(value)
    return record


def _decode_geosite(data: memoryview) -> GeoSiteRecord:
    record = GeoSiteRecord()
    for field_number, wire_type, value in iter_fields(data):
        if field_number == _COUNTRY_CODE:
            expect_wire_type(field_number, wire_type, WIRETYPE_LENGTH_DELIMITED)
            record.country_code = _text(value)
        elif field_number == _GEOSITE_DOMAIN:
            expect_wire_type(field_number, wire_type, WIRETYPE_LENGTH_DELIMITED)
            record.domains.append(_decode_domain(value))
    return record


def decode_geoip_list(data: Buffer) -> list[GeoIPRecord]:
    """Decode a GeoIPList: repeated GeoIP (field 1, length-delimited)."""
    entries: list[GeoIPRecord] = []
    for field_number, wire_type, value in iter_fields(data):
        if field_number == _LIST_ENTRY:
            expect_wire_type(field_number, wire_type, WIRETYPE_LENGTH_DELIMITED)
            entries.append(_decode_geoip(value))
    return entries


def decode_geosite_list(data: Buffer) -> list[GeoSiteRecord]:
    """Decode a GeoSiteList: repeated GeoSite (field 1, length-delimited)."""
    entries: list[GeoSiteRecord] = []
    for field_number, wire_type, value in iter_fields(data):
        if field_number == _LIST_ENTRY:
            expect_wire_type(field_number, wire_type, WIRETYPE_LENGTH_DELIMITED)
            entries.append(_decode_geosite(value))
    return entries


def decode_records(layout: DetectedType, data: Buffer) -> RecordList:
    """Decode `data` against the GeoIP or GeoSite list layout.

    Raises:
        MalformedInput: the buffer is not a well-formed encoding of the layout.
        ValueError: `layout` is `unknown`; callers resolve the type first.
    """

    if layout is DetectedType.GEOIP:
        return decode_geoip_list(data)
    if layout is DetectedType.GEOSITE:
        return decode_geosite_list(data)
    raise ValueError(f"No list layout for detected type: {layout.value}")
