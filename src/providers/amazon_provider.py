# src/providers/amazon_provider.py

"""Amazon retail listings via the ``amazon`` search engine."""

from typing import Any

from src.models.product import Platform, PlatformProduct, PriceType
from src.providers.base_provider import BaseProvider


class AmazonProvider(BaseProvider):
    """Amazon.com retail listings.

    Amazon results carry the price either as a nested object
    (``{"raw": "$24.99", "value": 24.99, "currency": "USD"}``) or as a
    flat string with a separate ``extracted_price``.
    """

    platform = Platform.AMAZON
    label = "Amazon"

    def build_params(self, query: str) -> dict[str, Any]:
        """Amazon expects ``search_term`` and an explicit domain."""
        return {
            "engine": "amazon",
            "search_term": query,
            "amazon_domain": "amazon.com",
        }

    def map_item(self, item: dict[str, Any]) -> PlatformProduct:
        """Map one ``organic_results`` entry."""
        price_obj = item.get("price")
        currency = "USD"
        if isinstance(price_obj, dict):
            value, formatted = self.parse_price(price_obj)
            currency = str(price_obj.get("currency") or "USD")
        else:
            value, formatted = self.parse_price(
                price_obj
                if price_obj is not None
                else item.get("extracted_price", item.get("price_raw"))
            )

        seller = item.get("seller")
        seller_name = (
            seller.get("name") if isinstance(seller, dict) else seller
        )
        prime = item.get("is_prime", item.get("prime"))
        return PlatformProduct(
            platform=self.platform,
            external_id=self.optional_str(
                item.get("asin") or item.get("position")
            ),
            title=str(item.get("title") or "Untitled"),
            price_raw=value,
            price_formatted=formatted,
            currency=currency,
            price_type=PriceType.RETAIL,
            rating=self.parse_rating(item.get("rating")),
            review_count=self.parse_count(item.get("reviews")),
            seller_name=self.optional_str(seller_name),
            is_verified=bool(prime) if prime is not None else None,
            product_url=self.optional_str(item.get("link")),
            image_url=self.optional_str(item.get("thumbnail")),
        )
