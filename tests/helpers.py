# tests/helpers.py

"""Shared builders for analysis and pipeline tests."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

from src.models.product import Platform, PlatformProduct, PriceType
from src.models.reports import (
    ImpositiveReport,
    LandedCost,
    MarketReport,
    PriceAnalysis,
    ProductMetadata,
    RegulationReport,
    TrendReport,
)


def make_product(
    platform: Platform,
    title: str,
    price: float | None,
    price_type: PriceType,
    **extra: Any,
) -> PlatformProduct:
    return PlatformProduct(
        platform=platform,
        title=title,
        price_raw=price,
        price_formatted=f"${price:.2f}" if price is not None else "N/A",
        price_type=price_type,
        **extra,
    )


def sample_results() -> dict[Platform, list[PlatformProduct]]:
    """Alibaba wholesale at 3.20 and Amazon retail at 24.99."""
    results: dict[Platform, list[PlatformProduct]] = {
        p: [] for p in Platform
    }
    results[Platform.ALIBABA] = [
        make_product(
            Platform.ALIBABA, "TWS Earbuds OEM", 3.2, PriceType.WHOLESALE,
            moq=500, unit="pieces", seller_name="Shenzhen Audio",
            is_verified=True,
        ),
    ]
    results[Platform.AMAZON] = [
        make_product(
            Platform.AMAZON, "Premium Earbuds", 24.99, PriceType.RETAIL,
            rating=4.4, review_count=12345,
        ),
    ]
    return results


def empty_results() -> dict[Platform, list[PlatformProduct]]:
    return {p: [] for p in Platform}


def sample_metadata() -> ProductMetadata:
    return ProductMetadata(
        product_name="Wireless Earbuds",
        product_category="Consumer Electronics",
        hs_code="851830",
        regulatory_flags=["FCC"],
        import_regulations=["FCC Part 15"],
        impositive_regulations=["Section 301 tariffs"],
        market_search_terms=["bluetooth earbuds"],
        trend_keywords=["wireless earbuds"],
        normalized_query="wireless earbuds",
        extraction_confidence=0.9,
    )


def sample_price() -> PriceAnalysis:
    return PriceAnalysis(
        wholesale_floor=3.2,
        retail_ceiling=24.99,
        gross_margin_pct_min=87.2,
        gross_margin_pct_max=87.2,
        best_source_platform=Platform.ALIBABA,
        arbitrage_signal=None,
        summary="Alibaba wholesale is far below Amazon retail.",
    )


def sample_trend() -> TrendReport:
    return TrendReport(
        keyword="wireless earbuds",
        geo="US",
        trend_score=72,
        trend_direction="up",
        peak_month="November",
        is_seasonal=True,
    )


def sample_regulation() -> RegulationReport:
    return RegulationReport(
        country_code="US",
        hs_code="851830",
        duty_rate_percent=None,
        required_certifications=["FCC ID"],
        prohibited_variants=[],
        labeling_requirements=["Country of origin"],
        quota_info=None,
        licensing_info=None,
        summary="FCC certification required.",
    )


def sample_impositive() -> ImpositiveReport:
    return ImpositiveReport(
        import_duty_pct=0.0,
        vat_rate_pct=None,
        total_tax_burden_pct=25.0,
        landed_cost=LandedCost(total_landed_cost_usd=4.1, net_margin_pct=78.5),
        tax_summary="Section 301 tariff applies.",
    )


def sample_market() -> MarketReport:
    return MarketReport(
        country_code="US",
        competition_level="high",
        top_competitors=["Apple", "Samsung"],
        top_channels=["Amazon"],
        positioning_tip="Compete on battery life.",
        summary="Crowded market.",
    )


def fake_completion(*outcomes: Any) -> MagicMock:
    """A CompletionClient stand-in whose structured_complete yields *outcomes*."""
    client = MagicMock()
    client.structured_complete = AsyncMock(side_effect=list(outcomes))
    return client
