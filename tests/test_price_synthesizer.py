# tests/test_price_synthesizer.py

"""Tests for cross-provider price synthesis."""

import unittest

from helpers import (
    empty_results,
    fake_completion,
    make_product,
    sample_price,
    sample_results,
)

from src.analysis.price_synthesizer import (
    NO_RESULTS_SUMMARY,
    PRICE_MAX_TOKENS,
    has_results,
    render_platform_sections,
    synthesize_prices,
)
from src.models.product import Platform, PriceType
from src.models.reports import PriceAnalysis
from src.services.errors import CompletionTransientError


class TestRenderPlatformSections(unittest.TestCase):
    """Verify the listing block sent for synthesis."""

    def test_sections_per_platform(self) -> None:
        """Every platform gets a header, empty ones say so."""
        text = render_platform_sections(sample_results())
        self.assertIn("## ALIBABA (1 results)", text)
        self.assertIn("## AMAZON (1 results)", text)
        self.assertIn("## EBAY\nNo results found.", text)
        self.assertIn("## GOOGLE_SHOPPING\nNo results found.", text)
        self.assertEqual(text.count("\n\n---\n\n"), len(Platform) - 1)

    def test_listing_details(self) -> None:
        """Price, type, MOQ, rating and seller appear when present."""
        text = render_platform_sections(sample_results())
        self.assertIn('1. "TWS Earbuds OEM"', text)
        self.assertIn("Price: $3.20 (raw: 3.2) [wholesale]", text)
        self.assertIn("MOQ: 500 pieces", text)
        self.assertIn("Seller: Shenzhen Audio ✓ verified", text)
        self.assertIn("Rating: 4.4/5 (12345 reviews)", text)

    def test_unparsed_price(self) -> None:
        """A listing without a numeric price shows raw N/A."""
        results = empty_results()
        results[Platform.EBAY] = [
            make_product(
                Platform.EBAY, "Lot", None, PriceType.VARIABLE,
                condition="Used",
            ),
        ]
        text = render_platform_sections(results)
        self.assertIn("Price: N/A (raw: N/A) [variable]", text)
        self.assertIn("Condition: Used", text)

    def test_has_results(self) -> None:
        """has_results is False only when every list is empty."""
        self.assertTrue(has_results(sample_results()))
        self.assertFalse(has_results(empty_results()))


class TestSynthesizePrices(unittest.IsolatedAsyncioTestCase):
    """Verify the no-results short-circuit and the normal path."""

    async def test_no_results_skips_completion(self) -> None:
        """All-empty fan-out returns the canned analysis, zero calls."""
        client = fake_completion()
        analysis = await synthesize_prices(client, empty_results())

        client.structured_complete.assert_not_awaited()
        self.assertIsNone(analysis.wholesale_floor)
        self.assertIsNone(analysis.retail_ceiling)
        self.assertIsNone(analysis.gross_margin_pct_min)
        self.assertIsNone(analysis.gross_margin_pct_max)
        self.assertIsNone(analysis.best_source_platform)
        self.assertIsNone(analysis.arbitrage_signal)
        self.assertEqual(analysis.currency, "USD")
        self.assertEqual(analysis.summary, NO_RESULTS_SUMMARY)

    async def test_synthesis_with_listings(self) -> None:
        """Listings are sent once and the validated analysis returned."""
        expected = sample_price()
        client = fake_completion(expected)
        analysis = await synthesize_prices(client, sample_results())

        self.assertIs(analysis, expected)
        self.assertAlmostEqual(
            analysis.gross_margin_pct_min,
            (24.99 - 3.2) / 24.99 * 100,
            places=1,
        )
        client.structured_complete.assert_awaited_once()
        args, kwargs = client.structured_complete.call_args
        self.assertIn("## ALIBABA (1 results)", args[1])
        self.assertIs(args[2], PriceAnalysis)
        self.assertEqual(kwargs["max_tokens"], PRICE_MAX_TOKENS)

    async def test_completion_errors_propagate(self) -> None:
        """Synthesis failures surface to the caller."""
        client = fake_completion(CompletionTransientError("overloaded"))
        with self.assertRaises(CompletionTransientError):
            await synthesize_prices(client, sample_results())


if __name__ == "__main__":
    unittest.main()
