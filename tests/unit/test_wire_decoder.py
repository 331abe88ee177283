import pytest

from geodat.decode.layouts import decode_geoip_list, decode_geosite_list, decode_records
from geodat.decode.wire import MAX_GROUP_DEPTH, iter_fields, read_varint
from geodat.engine import DecodeEngine
from geodat.errors import MalformedInput
from geodat.types import CidrRecord, DetectedType, DomainRecord


def test_read_varint_multibyte() -> None:
    assert read_varint(memoryview(bytes([0xAC, 0x02])), 0) == (300, 2)


def test_read_varint_truncated() -> None:
    with pytest.raises(MalformedInput, match="Truncated varint"):
        read_varint(memoryview(bytes([0x80, 0x80])), 0)


def test_read_varint_too_long() -> None:
    with pytest.raises(MalformedInput):
        read_varint(memoryview(bytes([0xFF] * 11) + b"\x01"), 0)


def test_decode_geoip_list(wire, geoip_bytes) -> None:
    records = decode_geoip_list(geoip_bytes)

    assert [record.country_code for record in records] == ["cn", "us", "private"]
    assert records[0].cidrs == [
        CidrRecord(address=bytes([1, 0, 1, 0]), prefix_length=24),
        CidrRecord(address=bytes([1, 0, 2, 0]), prefix_length=23),
    ]
    assert records[2].cidrs[0].address == bytes(16)


def test_decode_geosite_list(geosite_bytes) -> None:
    records = decode_geosite_list(geosite_bytes)

    assert [record.country_code for record in records] == ["cn", "google", "category-ads"]
    assert records[1].domains[1] == DomainRecord(kind=1, value=r"^ads\.google\.")
    assert records[2].domains == []


def test_absent_fields_decode_to_zero_values(wire) -> None:
    # entry with only a cidr lacking its prefix, then an entirely empty entry
    cidr_without_prefix = wire.length_delimited(1, bytes([10, 0, 0, 0]))
    entry = wire.length_delimited(2, cidr_without_prefix)
    data = wire.length_delimited(1, entry) + wire.length_delimited(1, b"")

    records = decode_geoip_list(data)

    assert records[0].country_code == ""
    assert records[0].cidrs == [CidrRecord(address=bytes([10, 0, 0, 0]), prefix_length=0)]
    assert records[1].country_code == ""
    assert records[1].cidrs == []


def test_domain_without_value(wire) -> None:
    domain = wire.varint_field(1, 3)
    data = wire.length_delimited(1, wire.length_delimited(1, b"cn") + wire.length_delimited(2, domain))

    (record,) = decode_geosite_list(data)

    assert record.domains == [DomainRecord(kind=3, value="")]


def test_unknown_and_negative_domain_kinds_pass_through(wire) -> None:
    domains = wire.length_delimited(2, wire.domain(7, "odd.example"))
    domains += wire.length_delimited(2, wire.varint_field(1, (1 << 64) - 1))
    data = wire.length_delimited(1, wire.length_delimited(1, b"x") + domains)

    (record,) = decode_geosite_list(data)

    assert [domain.kind for domain in record.domains] == [7, -1]


def test_unknown_fields_are_skipped(wire) -> None:
    attribute = wire.length_delimited(1, b"ads") + wire.varint_field(2, 1)
    domain = wire.domain(2, "example.com") + wire.length_delimited(3, attribute)
    fixed32 = wire.key(9, 5) + b"\x01\x02\x03\x04"
    fixed64 = wire.key(10, 1) + bytes(8)
    group = wire.key(11, 3) + wire.varint_field(1, 5) + wire.key(11, 4)
    entry = (
        wire.length_delimited(1, b"cn")
        + wire.varint_field(3, 1)
        + wire.length_delimited(2, domain)
        + fixed32
        + fixed64
        + group
    )
    data = wire.length_delimited(1, entry) + wire.varint_field(5, 42)

    (record,) = decode_geosite_list(data)

    assert record.country_code == "cn"
    assert record.domains == [DomainRecord(kind=2, value="example.com")]


def test_prefix_keeps_low_32_bits(wire) -> None:
    cidr = wire.length_delimited(1, bytes(4)) + wire.varint_field(2, (1 << 32) + 16)
    data = wire.length_delimited(1, wire.length_delimited(2, cidr))

    (record,) = decode_geoip_list(data)

    assert record.cidrs[0].prefix_length == 16


def test_invalid_utf8_is_replaced(wire) -> None:
    data = wire.length_delimited(1, wire.length_delimited(1, b"c\xffn"))

    (record,) = decode_geoip_list(data)

    assert record.country_code == "c�n"


def test_length_prefix_beyond_buffer(wire) -> None:
    data = wire.key(1, 2) + wire.varint(50) + b"short"

    with pytest.raises(MalformedInput, match="exceeds remaining"):
        decode_geoip_list(data)


def test_truncated_buffer(geoip_bytes) -> None:
    with pytest.raises(MalformedInput):
        decode_geoip_list(geoip_bytes[:-3])


@pytest.mark.parametrize(
    "payload",
    [
        bytes([0x0E, 0x00]),  # wire type 6
        bytes([0x07, 0x00]),  # field 0
        bytes([0x0C]),  # stray end group
        bytes([0x0B, 0x08, 0x01]),  # unterminated group
        bytes([0x0D, 0x01, 0x02]),  # truncated fixed32
    ],
)
def test_invalid_framing(payload: bytes) -> None:
    with pytest.raises(MalformedInput):
        list(iter_fields(payload))


def test_known_field_with_wrong_wire_type(wire) -> None:
    data = wire.varint_field(1, 3)

    with pytest.raises(MalformedInput, match="wire type"):
        decode_geosite_list(data)


def test_decode_records_dispatches_on_layout(geoip_bytes, geosite_bytes) -> None:
    assert len(decode_records(DetectedType.GEOIP, geoip_bytes)) == 3
    assert len(decode_records(DetectedType.GEOSITE, geosite_bytes)) == 3
    with pytest.raises(ValueError):
        decode_records(DetectedType.UNKNOWN, geoip_bytes)


def test_empty_buffer_is_an_empty_list() -> None:
    assert decode_geoip_list(b"") == []
    assert decode_geosite_list(b"") == []


def test_runaway_start_groups_fail_as_malformed_input() -> None:
    with pytest.raises(MalformedInput, match="nesting too deep"):
        DecodeEngine().decode(bytes([0x0B]) * 5000, "geoip", "x.dat")


def test_deeply_nested_closed_groups_fail_as_malformed_input() -> None:
    data = bytes([0x0B]) * 2000 + bytes([0x0C]) * 2000

    with pytest.raises(MalformedInput, match="nesting too deep"):
        decode_geoip_list(data)


def test_nested_groups_within_limit_are_skipped(wire) -> None:
    depth = MAX_GROUP_DEPTH
    group = wire.key(7, 3) * depth + wire.varint_field(1, 5) + wire.key(7, 4) * depth
    data = group + wire.length_delimited(1, wire.length_delimited(1, b"cn"))

    (record,) = decode_geoip_list(data)

    assert record.country_code == "cn"


def test_mismatched_nested_end_group(wire) -> None:
    data = wire.key(7, 3) + wire.key(8, 3) + wire.key(7, 4) + wire.key(8, 4)

    with pytest.raises(MalformedInput, match="Mismatched end group"):
        decode_geoip_list(data)
