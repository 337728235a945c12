# src/analysis/price_synthesizer.py

"""Cross-provider price synthesis."""

import logging

from src.models.product import PlatformProduct, ProviderResultSet
from src.models.reports import PriceAnalysis
from src.services.completion_client import CompletionClient

logger = logging.getLogger("import_scout.prices")

PRICE_MAX_TOKENS = 1024

NO_RESULTS_SUMMARY = "No product results found on any platform for this query."

NO_RESULTS_ANALYSIS = PriceAnalysis(
    wholesale_floor=None,
    retail_ceiling=None,
    currency="USD",
    gross_margin_pct_min=None,
    gross_margin_pct_max=None,
    best_source_platform=None,
    arbitrage_signal=None,
    summary=NO_RESULTS_SUMMARY,
)

SYSTEM_PROMPT = """You are a wholesale sourcing analyst. You will receive product listings from up to 5 different platforms (Alibaba, Amazon, eBay, Walmart, Google Shopping). Your job is to synthesize these into a cross-platform price analysis.

You MUST respond with a single JSON object (no markdown, no explanation) matching this exact schema:
{
  "wholesale_floor": <number or null: lowest wholesale/bulk unit price>,
  "retail_ceiling": <number or null: highest retail price>,
  "currency": "USD",
  "gross_margin_pct_min": <number or null: minimum estimated margin % between wholesale and retail>,
  "gross_margin_pct_max": <number or null: maximum estimated margin % between wholesale and retail>,
  "best_source_platform": <"alibaba"|"amazon"|"ebay"|"walmart"|"google_shopping"|null>,
  "arbitrage_signal": <string or null: brief note on any arbitrage opportunity>,
  "summary": "<2-4 sentence synthesis of the pricing landscape across all platforms>"
}

Guidelines:
- wholesale_floor: the lowest price tagged wholesale. If no wholesale listings exist, use the lowest price from any platform.
- retail_ceiling: the highest price tagged retail. If no retail listings exist, use the highest price from any platform.
- gross_margin_pct: ((retail - wholesale) / retail) * 100. Give a min/max range when several wholesale/retail pairs exist; min and max are equal for a single pair.
- best_source_platform: the platform offering the best value for bulk sourcing, weighing price, MOQ and seller reliability.
- arbitrage_signal: note meaningful price gaps between platforms (e.g. eBay lots well below retail), otherwise null.
- If a platform returned no results, mention that in the summary.
- Interpret all prices as USD unless stated otherwise."""


def _format_product(index: int, product: PlatformProduct) -> str:
    """Render one numbered listing with only the fields present."""
    raw = product.price_raw if product.price_raw is not None else "N/A"
    price_type = f" [{product.price_type}]" if product.price_type else ""
    lines = [
        f'{index}. "{product.title}"',
        f"   Price: {product.price_formatted} (raw: {raw}){price_type}",
    ]
    if product.moq:
        lines.append(f"   MOQ: {product.moq} {product.unit or 'units'}")
    if product.rating is not None:
        lines.append(
            f"   Rating: {product.rating}/5 "
            f"({product.review_count or 0} reviews)"
        )
    if product.seller_name:
        verified = " ✓ verified" if product.is_verified else ""
        lines.append(f"   Seller: {product.seller_name}{verified}")
    if product.condition:
        lines.append(f"   Condition: {product.condition}")
    return "\n".join(lines)


def render_platform_sections(results: ProviderResultSet) -> str:
    """Render the per-provider listing block sent to the analyst."""
    sections: list[str] = []
    for platform, products in results.items():
        header = str(platform).upper()
        if not products:
            sections.append(f"## {header}\nNo results found.")
            continue
        listing = "\n\n".join(
            _format_product(i, p) for i, p in enumerate(products, 1)
        )
        sections.append(
            f"## {header} ({len(products)} results)\n{listing}"
        )
    return "\n\n---\n\n".join(sections)


def has_results(results: ProviderResultSet) -> bool:
    """True when at least one provider returned a listing."""
    return any(results.values())


async def synthesize_prices(
    client: CompletionClient,
    results: ProviderResultSet,
) -> PriceAnalysis:
    """Synthesize a :class:`PriceAnalysis` from all providers' listings.

    Short-circuits to the canned no-results record (without calling
    the completion provider) when every provider came back empty.
    Completion and validation errors propagate.
    """
    if not has_results(results):
        logger.info("No listings from any provider; skipping synthesis")
        return NO_RESULTS_ANALYSIS.model_copy()

    user_prompt = (
        "Analyze these product listings across platforms:\n\n"
        f"{render_platform_sections(results)}"
    )
    analysis = await client.structured_complete(
        SYSTEM_PROMPT,
        user_prompt,
        PriceAnalysis,
        max_tokens=PRICE_MAX_TOKENS,
    )
    logger.info(
        "Price synthesis: floor=%s ceiling=%s margin=%s-%s best=%s",
        analysis.wholesale_floor,
        analysis.retail_ceiling,
        analysis.gross_margin_pct_min,
        analysis.gross_margin_pct_max,
        analysis.best_source_platform,
    )
    return analysis
