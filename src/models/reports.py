# src/models/reports.py

"""Validated report models exchanged between pipeline stages.

Nullable fields come in two flavours:

* ``x: float | None`` with no default: the key is required but may be
  ``null`` ("known to be unknown").  Completion output missing such a
  key fails validation.
* ``x: str | None = None``: the key may be absent altogether.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.product import Platform, PlatformProduct, ProviderResultSet

UNKNOWN_HS_CODE = "000000"


class SearchQuery(BaseModel):
    """Free-text product description plus optional origin country."""

    model_config = ConfigDict(frozen=True)

    raw_query: str = Field(..., min_length=1, max_length=500)
    country_code: str | None = Field(None, min_length=2, max_length=2)

    @field_validator("raw_query")
    @classmethod
    def _strip_query(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("raw_query must not be blank")
        return stripped

    @field_validator("country_code")
    @classmethod
    def _upper_country(cls, value: str | None) -> str | None:
        return value.upper() if value else value


class ProductMetadata(BaseModel):
    """Structured facts extracted from a raw query."""

    model_config = ConfigDict(frozen=True)

    product_name: str
    product_category: str
    hs_code: str = Field(..., description="6-digit HS code or '000000'")
    regulatory_flags: list[str]
    import_regulations: list[str]
    impositive_regulations: list[str]
    market_search_terms: list[str]
    trend_keywords: list[str] = Field(..., min_length=1, max_length=5)
    normalized_query: str
    extraction_confidence: float | None = Field(None, ge=0.0, le=1.0)


class PriceAnalysis(BaseModel):
    """Cross-provider price synthesis."""

    wholesale_floor: float | None
    retail_ceiling: float | None
    local_retail_median: float | None = None
    currency: str = "USD"
    gross_margin_pct_min: float | None
    gross_margin_pct_max: float | None
    best_source_platform: Platform | None
    arbitrage_signal: str | None
    summary: str = Field(..., min_length=1)


# ── Reports produced outside the core ───────────────────


class TrendDirection(StrEnum):
    UP = "up"
    UP_RIGHT = "up_right"
    FLAT = "flat"
    DOWN_RIGHT = "down_right"
    DOWN = "down"


class TrendPoint(BaseModel):
    week_start: str
    interest_value: float


class TrendRegion(BaseModel):
    region_name: str
    region_code: str | None = None
    interest_value: float


class TrendQuery(BaseModel):
    query_text: str
    type: str = Field(..., pattern="^(rising|top)$")
    value: str


class TrendReport(BaseModel):
    """Search-interest report for the product's trend keywords."""

    keyword: str
    geo: str
    date_range: str = "today 12-m"
    trend_score: float = Field(..., ge=0, le=100)
    trend_direction: TrendDirection
    peak_month: str | None
    is_seasonal: bool
    timeseries: list[TrendPoint] = Field(default_factory=list)
    regions: list[TrendRegion] = Field(default_factory=list)
    rising_queries: list[TrendQuery] = Field(default_factory=list)


class SourceLink(BaseModel):
    title: str
    url: str
    domain: str
    snippet: str
    relevance_score: float | None = None


class RegulationReport(BaseModel):
    """Import-compliance findings for the destination country."""

    country_code: str
    hs_code: str
    duty_rate_percent: float | None
    required_certifications: list[str]
    prohibited_variants: list[str]
    labeling_requirements: list[str]
    quota_info: str | None
    licensing_info: str | None
    summary: str
    sources: list[SourceLink] = Field(default_factory=list)


class LandedCost(BaseModel):
    total_landed_cost_usd: float | None = None
    net_margin_pct: float | None = None


class ImpositiveReport(BaseModel):
    """Taxes, duties and landed cost for the destination country."""

    import_duty_pct: float | None
    vat_rate_pct: float | None
    total_tax_burden_pct: float | None
    landed_cost: LandedCost = Field(default_factory=LandedCost)
    tax_summary: str


class CompetitionLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


class MarketReport(BaseModel):
    """Competitive landscape in the destination market."""

    country_code: str
    competition_level: CompetitionLevel
    top_competitors: list[str]
    top_channels: list[str]
    positioning_tip: str
    summary: str
    sources: list[SourceLink] = Field(default_factory=list)


# ── Terminal artifacts ───────────────────────────────────


class OpportunityReport(BaseModel):
    """Final import-opportunity assessment."""

    opportunity_score: float = Field(..., ge=0, le=100)
    estimated_margin_pct: float | None
    best_source_platform: Platform | None
    best_launch_month: str | None
    keyword_gaps: list[str]
    variant_suggestions: list[str]
    risk_flags: list[str]
    overall_verdict: str = Field(..., min_length=1)


class SourcingResult(BaseModel):
    """Per-provider listings together with their price synthesis."""

    platforms: dict[Platform, list[dict[str, Any]]]
    price_analysis: PriceAnalysis

    @classmethod
    def build(
        cls,
        results: ProviderResultSet,
        price_analysis: PriceAnalysis,
    ) -> "SourcingResult":
        """Wrap an in-memory result set for storage or output."""
        return cls(
            platforms={
                platform: [p.to_dict() for p in products]
                for platform, products in results.items()
            },
            price_analysis=price_analysis,
        )

    def result_set(self) -> ProviderResultSet:
        """Rebuild the canonical records from the stored dicts."""
        return {
            platform: [PlatformProduct.from_dict(d) for d in items]
            for platform, items in self.platforms.items()
        }
