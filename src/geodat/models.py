"""Normalized entry model shared by the engine, worker and HTTP boundaries."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from geodat.types import DetectedType

DOMAIN_KIND_LABELS: dict[int, str] = {
    0: "Plain",
    1: "Regex",
    2: "Domain",
    3: "Full",
}


def domain_kind_label(kind: int) -> str:
    """Human label for a domain rule kind; unknown kinds render as their number."""
    return DOMAIN_KIND_LABELS.get(kind, str(kind))


class _FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class DomainEntry(_FrozenModel):
    kind: int
    value: str = ""

    @computed_field  # type: ignore[prop-decorator]
    @property
    def label(self) -> str:
        return domain_kind_label(self.kind)


class GeoIPEntry(_FrozenModel):
    """One GeoIP list: an upper-case tag and its rendered CIDRs in decode order."""

    entry_type: Literal["geoip"] = "geoip"
    tag: str
    cidrs: tuple[str, ...] = ()


class GeoSiteEntry(_FrozenModel):
    """One GeoSite list: an upper-case tag and its domain rules in decode order."""

    entry_type: Literal["geosite"] = "geosite"
    tag: str
    domains: tuple[DomainEntry, ...] = ()


Entry = Annotated[Union[GeoIPEntry, GeoSiteEntry], Field(discriminator="entry_type")]


class Totals(_FrozenModel):
    lists: int = 0
    cidrs: int = 0
    domains: int = 0


class DecodedResult(_FrozenModel):
    """Outcome of one decode. `unknown` always carries no entries and zero totals."""

    detected_type: DetectedType
    entries: tuple[Entry, ...] = ()
    totals: Totals = Field(default_factory=Totals)

    @classmethod
    def empty(cls) -> "DecodedResult":
        return cls(detected_type=DetectedType.UNKNOWN)


class SummaryData(_FrozenModel):
    """File-level summary handed to renderers next to a decode result."""

    filename: str
    size: int
    size_label: str
    detected_type: DetectedType
    totals: Totals
