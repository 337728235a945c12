# src/models/product.py

"""Canonical product record shared by every provider adapter."""

from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any


class Platform(StrEnum):
    """Fixed enumeration of commerce search providers."""

    ALIBABA = "alibaba"
    AMAZON = "amazon"
    EBAY = "ebay"
    WALMART = "walmart"
    GOOGLE_SHOPPING = "google_shopping"


class PriceType(StrEnum):
    """How a listing's price should be read."""

    WHOLESALE = "wholesale"
    RETAIL = "retail"
    VARIABLE = "variable"


@dataclass(frozen=True)
class PlatformProduct:
    """A single provider-agnostic listing.

    ``price_formatted`` is always populated, even when ``price_raw``
    could not be parsed ("N/A" or the provider's own string).
    """

    platform: Platform
    title: str
    price_raw: float | None
    price_formatted: str
    currency: str = "USD"
    price_type: PriceType | None = None
    external_id: str | None = None
    moq: int | None = None
    unit: str | None = None
    rating: float | None = None
    review_count: int | None = None
    seller_name: str | None = None
    is_verified: bool | None = None
    product_url: str | None = None
    image_url: str | None = None
    condition: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-ready dict (enums as plain strings)."""
        data = asdict(self)
        data["platform"] = str(self.platform)
        data["price_type"] = (
            str(self.price_type) if self.price_type else None
        )
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlatformProduct":
        """Rebuild a record from :meth:`to_dict` output."""
        fields = dict(data)
        fields["platform"] = Platform(fields["platform"])
        if fields.get("price_type"):
            fields["price_type"] = PriceType(fields["price_type"])
        return cls(**fields)


# One entry per known platform, in provider rank order
ProviderResultSet = dict[Platform, list[PlatformProduct]]
