from collections.abc import Sequence

import pytest
from google.protobuf.internal.encoder import _EncodeVarint


class WireBuilder:
    """Builds GeoIPList / GeoSiteList payloads field by field."""

    @staticmethod
    def varint(value: int) -> bytes:
        pieces: list[bytes] = []
        _EncodeVarint(pieces.append, value)
        return b"".join(pieces)

    def key(self, field_number: int, wire_type: int) -> bytes:
        return self.varint((field_number << 3) | wire_type)

    def length_delimited(self, field_number: int, payload: bytes) -> bytes:
        return self.key(field_number, 2) + self.varint(len(payload)) + payload

    def varint_field(self, field_number: int, value: int) -> bytes:
        return self.key(field_number, 0) + self.varint(value)

    def cidr(self, ip: bytes, prefix: int) -> bytes:
        return self.length_delimited(1, ip) + self.varint_field(2, prefix)

    def geoip_list(self, entries: Sequence[tuple[str, Sequence[tuple[bytes, int]]]]) -> bytes:
        out = b""
        for code, cidrs in entries:
            body = self.length_delimited(1, code.encode("utf-8"))
            for ip, prefix in cidrs:
                body += self.length_delimited(2, self.cidr(ip, prefix))
            out += self.length_delimited(1, body)
        return out

    def domain(self, kind: int, value: str) -> bytes:
        return self.varint_field(1, kind) + self.length_delimited(2, value.encode("utf-8"))

    def geosite_list(self, entries: Sequence[tuple[str, Sequence[tuple[int, str]]]]) -> bytes:
        out = b""
        for code, domains in entries:
            body = self.length_delimited(1, code.encode("utf-8"))
            for kind, value in domains:
                body += self.length_delimited(2, self.domain(kind, value))
            out += self.length_delimited(1, body)
        return out


@pytest.fixture
def wire() -> WireBuilder:
    return WireBuilder()


@pytest.fixture
def geoip_bytes(wire: WireBuilder) -> bytes:
    return wire.geoip_list(
        [
            ("cn", [(bytes([1, 0, 1, 0]), 24), (bytes([1, 0, 2, 0]), 23)]),
            ("us", [(bytes([8, 8, 8, 0]), 24)]),
            ("private", [(bytes(16), 8)]),
        ]
    )


@pytest.fixture
def geosite_bytes(wire: WireBuilder) -> bytes:
    return wire.geosite_list(
        [
            ("cn", [(2, "example.cn"), (3, "www.baidu.com")]),
            ("google", [(2, "google.com"), (1, r"^ads\.google\."), (0, "gstatic")]),
            ("category-ads", []),
        ]
    )
