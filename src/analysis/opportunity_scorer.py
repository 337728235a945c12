# src/analysis/opportunity_scorer.py

"""Scores the import opportunity from the five upstream reports.

This is the terminal, user-facing stage, so it never fails: any error
(completion, validation, or a malformed upstream report) produces a
neutral score-50 report flagged for manual review instead.
"""

import logging

from src.models.reports import (
    ImpositiveReport,
    MarketReport,
    OpportunityReport,
    PriceAnalysis,
    RegulationReport,
    TrendReport,
)
from src.services.completion_client import CompletionClient

logger = logging.getLogger("import_scout.opportunity")

OPPORTUNITY_MAX_TOKENS = 3072

DEGRADED_SCORE = 50.0

DEGRADED_RISK_FLAG = (
    "Opportunity analysis could not be fully synthesized — "
    "review sub-reports manually"
)

DEGRADED_VERDICT = (
    "The opportunity scoring engine encountered an error. Please review "
    "the individual price, trend, regulation, and market reports to form "
    "your own assessment."
)

SYSTEM_PROMPT = """You are a wholesale import opportunity analyst. You will receive five research reports about a product:

1. Price Analysis: wholesale floor, retail ceiling, margins, best source platform
2. Trend Report: search interest direction, score, seasonality, rising queries, regional hotspots
3. Regulation Report: import compliance, duty rates, certifications, prohibited variants, labeling
4. Impositive Report: taxes, duties, landed cost breakdown, net margin after taxes
5. Market Report: competition level, top competitors, channels, positioning advice

Synthesize ALL reports into a single opportunity assessment.

Scoring rubric (opportunity_score 0-100):
- 80-100: Strong opportunity. High margins, growing trend, manageable regulations, low-medium competition.
- 60-79: Good opportunity with caveats. Decent margins but some risk factors.
- 40-59: Marginal opportunity. Thin margins, flat/declining trend, or significant regulatory barriers.
- 20-39: Weak opportunity. Multiple red flags.
- 0-19: Avoid. Negative margins, severe regulatory blockers, or crashing demand.

You MUST respond with a single JSON object (no markdown, no explanation):
{
  "opportunity_score": <number 0-100>,
  "estimated_margin_pct": <number or null: net margin after landed cost; use the impositive report's net margin if available>,
  "best_source_platform": <"alibaba"|"amazon"|"ebay"|"walmart"|"google_shopping"|null>,
  "best_launch_month": <string or null: when to launch given seasonality>,
  "keyword_gaps": [<3-5 rising, under-served search terms or variants>],
  "variant_suggestions": [<2-4 specific variants, bundles or configurations>],
  "risk_flags": [<every identified risk>],
  "overall_verdict": "<3-5 sentence executive summary: should they import this product, why, and with what strategy>"
}

Be direct and honest. Don't inflate scores."""


def _or(value: object, placeholder: str) -> str:
    return placeholder if value is None else str(value)


def _joined(items: list[str], placeholder: str = "none identified") -> str:
    return ", ".join(items) or placeholder


def _price_section(price: PriceAnalysis) -> str:
    return "\n".join([
        "## 1. PRICE ANALYSIS",
        f"- Wholesale floor: ${_or(price.wholesale_floor, 'N/A')}",
        f"- Retail ceiling: ${_or(price.retail_ceiling, 'N/A')}",
        f"- Local retail median: ${_or(price.local_retail_median, 'N/A')}",
        f"- Gross margin range: {_or(price.gross_margin_pct_min, '?')}% "
        f"– {_or(price.gross_margin_pct_max, '?')}%",
        f"- Best source platform: "
        f"{_or(price.best_source_platform, 'unknown')}",
        f"- Arbitrage signal: {_or(price.arbitrage_signal, 'none')}",
        f"- Summary: {price.summary}",
    ])


def _trend_section(trend: TrendReport) -> str:
    seasonal = (
        f"Yes — peak in {_or(trend.peak_month, 'unknown')}"
        if trend.is_seasonal
        else "No"
    )
    rising = _joined(
        [f'"{q.query_text}" ({q.value})' for q in trend.rising_queries[:5]],
        "none",
    )
    regions = _joined(
        [f"{r.region_name} ({r.interest_value})" for r in trend.regions[:5]],
        "none",
    )
    return "\n".join([
        "## 2. TREND REPORT",
        f'- Keyword: "{trend.keyword}"',
        f"- Trend direction: {trend.trend_direction}",
        f"- Trend score: {trend.trend_score}/100",
        f"- Seasonal: {seasonal}",
        f"- Rising queries: {rising}",
        f"- Top regions: {regions}",
    ])


def _regulation_section(regulation: RegulationReport) -> str:
    duty = (
        f"{regulation.duty_rate_percent}%"
        if regulation.duty_rate_percent is not None
        else "unknown"
    )
    return "\n".join([
        "## 3. REGULATION REPORT",
        f"- Duty rate: {duty}",
        f"- Required certifications: "
        f"{_joined(regulation.required_certifications)}",
        f"- Prohibited variants: "
        f"{_joined(regulation.prohibited_variants)}",
        f"- Labeling requirements: "
        f"{len(regulation.labeling_requirements)} items",
        f"- Licensing: {_or(regulation.licensing_info, 'none required')}",
        f"- Summary: {regulation.summary}",
    ])


def _impositive_section(impositive: ImpositiveReport | None) -> str:
    header = "## 4. IMPOSITIVE REPORT (Taxes & Landed Cost)"
    if impositive is None:
        return (
            f"{header}\n"
            "Not yet available — pricing data was insufficient."
        )
    landed = impositive.landed_cost
    return "\n".join([
        header,
        f"- Import duty: {_or(impositive.import_duty_pct, '?')}%",
        f"- VAT: {_or(impositive.vat_rate_pct, '?')}%",
        f"- Total tax burden: {_or(impositive.total_tax_burden_pct, '?')}%",
        f"- Landed cost per unit: "
        f"${_or(landed.total_landed_cost_usd, 'N/A')}",
        f"- Net margin after taxes: {_or(landed.net_margin_pct, '?')}%",
        f"- Tax summary: {impositive.tax_summary}",
    ])


def _market_section(market: MarketReport) -> str:
    return "\n".join([
        "## 5. MARKET REPORT",
        f"- Competition level: {market.competition_level}",
        f"- Top competitors: {_joined(market.top_competitors)}",
        f"- Best channels: {_joined(market.top_channels)}",
        f"- Positioning: {market.positioning_tip}",
        f"- Summary: {market.summary}",
    ])


def render_opportunity_prompt(
    price: PriceAnalysis,
    trend: TrendReport,
    regulation: RegulationReport,
    impositive: ImpositiveReport | None,
    market: MarketReport,
) -> str:
    """Compose the five report summaries into one user prompt."""
    sections = [
        _price_section(price),
        _trend_section(trend),
        _regulation_section(regulation),
        _impositive_section(impositive),
        _market_section(market),
    ]
    return (
        "Synthesize these research reports into an opportunity "
        "assessment:\n\n"
        + "\n\n".join(sections)
        + "\n\nProduce a comprehensive opportunity assessment with "
        "score, risks, and actionable recommendations."
    )


def degraded_report(
    price: PriceAnalysis | None,
    trend: TrendReport | None,
) -> OpportunityReport:
    """Neutral report returned when synthesis fails."""
    return OpportunityReport(
        opportunity_score=DEGRADED_SCORE,
        estimated_margin_pct=(
            price.gross_margin_pct_min if price else None
        ),
        best_source_platform=(
            price.best_source_platform if price else None
        ),
        best_launch_month=trend.peak_month if trend else None,
        keyword_gaps=[],
        variant_suggestions=[],
        risk_flags=[DEGRADED_RISK_FLAG],
        overall_verdict=DEGRADED_VERDICT,
    )


async def score_opportunity(
    client: CompletionClient,
    price: PriceAnalysis,
    trend: TrendReport,
    regulation: RegulationReport,
    impositive: ImpositiveReport | None,
    market: MarketReport,
) -> OpportunityReport:
    """Score the opportunity; never raises for ordinary errors."""
    try:
        report = await client.structured_complete(
            SYSTEM_PROMPT,
            render_opportunity_prompt(
                price, trend, regulation, impositive, market
            ),
            OpportunityReport,
            max_tokens=OPPORTUNITY_MAX_TOKENS,
        )
    except Exception as exc:
        logger.error(
            "Opportunity scoring failed, returning degraded report: %s",
            exc,
            exc_info=True,
        )
        return degraded_report(price, trend)

    logger.info(
        "Opportunity score %.0f (%d risk flags)",
        report.opportunity_score,
        len(report.risk_flags),
    )
    return report
