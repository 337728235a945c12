# src/providers/walmart_provider.py

"""Walmart retail listings via the ``walmart`` search engine."""

from typing import Any

from src.models.product import Platform, PlatformProduct, PriceType
from src.providers.base_provider import BaseProvider


class WalmartProvider(BaseProvider):
    """Walmart.com retail listings."""

    platform = Platform.WALMART
    label = "Walmart"

    def build_params(self, query: str) -> dict[str, Any]:
        """Walmart takes a plain ``query`` field."""
        return {"engine": "walmart", "query": query}

    def map_item(self, item: dict[str, Any]) -> PlatformProduct:
        """Map one ``organic_results`` entry.

        The live price sits under ``primary_offer.offer_price``; the
        flat ``price`` field is only a fallback.
        """
        offer = item.get("primary_offer")
        offer_price = (
            offer.get("offer_price") if isinstance(offer, dict) else None
        )
        value, formatted = self.parse_price(
            offer_price if offer_price is not None else item.get("price")
        )
        return PlatformProduct(
            platform=self.platform,
            external_id=self.optional_str(
                item.get("us_item_id")
                or item.get("product_id")
                or item.get("position")
            ),
            title=str(item.get("title") or "Untitled"),
            price_raw=value,
            price_formatted=formatted,
            currency="USD",
            price_type=PriceType.RETAIL,
            rating=self.parse_rating(item.get("rating")),
            review_count=self.parse_count(item.get("reviews")),
            seller_name=self.optional_str(item.get("seller_name")),
            product_url=self.optional_str(
                item.get("product_page_url") or item.get("link")
            ),
            image_url=self.optional_str(item.get("thumbnail")),
        )
