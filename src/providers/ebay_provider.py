# src/providers/ebay_provider.py

"""eBay listings via the ``ebay`` search engine."""

from typing import Any

from src.models.product import Platform, PlatformProduct, PriceType
from src.providers.base_provider import BaseProvider


class EbayProvider(BaseProvider):
    """eBay auctions and buy-it-now listings (new, used, lots)."""

    platform = Platform.EBAY
    label = "eBay"

    def build_params(self, query: str) -> dict[str, Any]:
        """eBay's keyword field is ``_nkw``."""
        return {
            "engine": "ebay",
            "_nkw": query,
            "ebay_domain": "ebay.com",
        }

    def map_item(self, item: dict[str, Any]) -> PlatformProduct:
        """Map one ``organic_results`` entry."""
        price_obj = item.get("price")
        currency = "USD"
        if isinstance(price_obj, dict):
            currency = str(price_obj.get("currency") or "USD")
        value, formatted = self.parse_price(price_obj)

        seller_info = item.get("seller_info")
        seller_name = (
            seller_info.get("name")
            if isinstance(seller_info, dict)
            else None
        )
        return PlatformProduct(
            platform=self.platform,
            external_id=self.optional_str(
                item.get("epid") or item.get("position")
            ),
            title=str(item.get("title") or "Untitled"),
            price_raw=value,
            price_formatted=formatted,
            currency=currency,
            price_type=PriceType.VARIABLE,
            seller_name=self.optional_str(seller_name),
            product_url=self.optional_str(item.get("link")),
            image_url=self.optional_str(item.get("thumbnail")),
            condition=self.optional_str(item.get("condition")),
        )
