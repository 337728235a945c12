# src/analysis/keyword_extractor.py

"""Extracts structured product metadata from a raw search query."""

import logging

from src.models.reports import ProductMetadata
from src.services.completion_client import CompletionClient

logger = logging.getLogger("import_scout.keywords")

SYSTEM_PROMPT = """You are a wholesale product research assistant. Given a raw search query and optionally a destination country, extract structured product metadata for downstream sourcing, trends, regulation, and market research.

You MUST respond with a single JSON object (no markdown, no explanation) matching this exact schema:
{
  "product_name": "human-readable product name",
  "product_category": "broad product category",
  "hs_code": "best-guess 6-digit HS tariff code",
  "regulatory_flags": ["relevant certifications/standards like FCC, CE, RoHS, FDA"],
  "import_regulations": ["customs requirements, permits, licenses, restrictions, prohibited items, origin rules"],
  "impositive_regulations": ["tariff rates, duty classifications, VAT/GST applicability, excise duties, preferential trade agreements"],
  "market_search_terms": ["terms for market/competitor research"],
  "trend_keywords": ["1-5 search-trend keywords, most specific first"],
  "normalized_query": "clean, optimized search string for product sourcing APIs",
  "extraction_confidence": 0.0-1.0
}

Guidelines:
- hs_code is the most likely 6-digit HS code. Use "000000" if truly unknown.
- trend_keywords holds 1-5 terms ordered from most specific to broadest.
- normalized_query is a clean, lowercase search string with no special characters and no country references.
- extraction_confidence is 0.5 for vague queries and 0.9+ for specific products."""


def build_user_prompt(raw_query: str, country_code: str | None = None) -> str:
    """Quote the query and add the destination-country line if known."""
    country_context = (
        f"The user is located in {country_code}. Consider local "
        "regulations and market context for this country."
        if country_code
        else ""
    )
    return (
        f'Raw search query: "{raw_query}"\n'
        f"{country_context}\n\n"
        "Extract the structured product metadata as JSON."
    )


async def extract_keywords(
    client: CompletionClient,
    raw_query: str,
    country_code: str | None = None,
) -> ProductMetadata:
    """Turn a raw query into validated :class:`ProductMetadata`.

    There is no fallback: completion and validation errors propagate,
    since sourcing cannot start without a normalized query.
    """
    metadata = await client.structured_complete(
        SYSTEM_PROMPT,
        build_user_prompt(raw_query, country_code),
        ProductMetadata,
    )
    logger.info(
        "Extracted metadata for '%s': %s (hs=%s, confidence=%s)",
        raw_query,
        metadata.normalized_query,
        metadata.hs_code,
        metadata.extraction_confidence,
    )
    return metadata
