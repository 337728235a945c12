# src/providers/alibaba_provider.py

"""Alibaba wholesale listings via the ``alibaba`` search engine."""

from typing import Any

from src.models.product import Platform, PlatformProduct, PriceType
from src.providers.base_provider import BaseProvider


class AlibabaProvider(BaseProvider):
    """Wholesale supplier listings (MOQ, supplier, trade assurance)."""

    platform = Platform.ALIBABA
    label = "Alibaba"

    def build_params(self, query: str) -> dict[str, Any]:
        """Alibaba takes the query as ``q`` and a 1-based page."""
        return {"engine": "alibaba", "q": query, "page": 1}

    def map_item(self, item: dict[str, Any]) -> PlatformProduct:
        """Map one ``organic_results`` entry."""
        value, formatted = self.parse_price(item.get("price"))
        verified = item.get("is_verified")
        if verified is None:
            verified = item.get("trade_assurance")
        return PlatformProduct(
            platform=self.platform,
            external_id=self.optional_str(item.get("position")),
            title=str(item.get("title") or "Untitled"),
            price_raw=value,
            price_formatted=formatted,
            currency="USD",
            price_type=PriceType.WHOLESALE,
            moq=self.parse_count(item.get("moq")),
            unit=self.optional_str(item.get("unit")),
            rating=self.parse_rating(item.get("rating")),
            review_count=self.parse_count(item.get("reviews")),
            seller_name=self.optional_str(
                item.get("supplier_name") or item.get("seller")
            ),
            is_verified=bool(verified) if verified is not None else None,
            product_url=self.optional_str(item.get("link")),
            image_url=self.optional_str(item.get("thumbnail")),
        )
