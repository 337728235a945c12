# src/providers/google_shopping_provider.py

"""Google Shopping listings via the ``google_shopping`` search engine."""

from typing import Any

from src.models.product import Platform, PlatformProduct, PriceType
from src.providers.base_provider import BaseProvider


class GoogleShoppingProvider(BaseProvider):
    """Aggregated retail offers from Google Shopping."""

    platform = Platform.GOOGLE_SHOPPING
    label = "Google Shopping"

    RESULTS_KEYS = ("shopping_results", "organic_results")

    def build_params(self, query: str) -> dict[str, Any]:
        """Pin the US storefront in English."""
        return {
            "engine": "google_shopping",
            "q": query,
            "gl": "us",
            "hl": "en",
        }

    def map_item(self, item: dict[str, Any]) -> PlatformProduct:
        """Map one shopping result; ``extracted_price`` wins over ``price``."""
        extracted = item.get("extracted_price")
        value, formatted = self.parse_price(
            extracted if extracted is not None else item.get("price")
        )
        if extracted is not None and item.get("price"):
            formatted = str(item["price"])
        return PlatformProduct(
            platform=self.platform,
            external_id=self.optional_str(
                item.get("product_id") or item.get("position")
            ),
            title=str(item.get("title") or "Untitled"),
            price_raw=value,
            price_formatted=formatted,
            currency="USD",
            price_type=PriceType.RETAIL,
            rating=self.parse_rating(item.get("rating")),
            review_count=self.parse_count(item.get("reviews")),
            seller_name=self.optional_str(item.get("source")),
            product_url=self.optional_str(
                item.get("link") or item.get("product_link")
            ),
            image_url=self.optional_str(item.get("thumbnail")),
        )
