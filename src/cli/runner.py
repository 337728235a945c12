# src/cli/runner.py

"""Headless CLI runner: metadata extraction + sourcing for one query."""

import json
import logging
import sys
from typing import Any

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from src.models.product import PlatformProduct, ProviderResultSet
from src.models.reports import PriceAnalysis, SourcingResult
from src.services.completion_client import CompletionClient
from src.services.errors import CompletionError
from src.services.research_pipeline import ResearchPipeline
from src.services.search_orchestrator import SearchOrchestrator
from src.storage.session_store import SessionStore

logger = logging.getLogger("import_scout.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def _sort_key(product: PlatformProduct) -> float:
    return (
        product.price_raw
        if product.price_raw is not None
        else float("inf")
    )


def _print_listing_table(results: ProviderResultSet) -> None:
    """Render every provider's listings as one Rich table."""
    table = Table(
        title="Provider Listings",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Platform", style="magenta")
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", max_width=60)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Type", justify="center")
    table.add_column("MOQ", justify="right")
    table.add_column("Seller", style="dim")

    for platform, products in results.items():
        if not products:
            table.add_row(str(platform), "—", "[dim]no results[/dim]",
                          "", "", "", "")
            continue
        for idx, p in enumerate(sorted(products, key=_sort_key), 1):
            table.add_row(
                str(platform),
                str(idx),
                p.title[:60],
                p.price_formatted,
                str(p.price_type or "—"),
                str(p.moq) if p.moq else "—",
                p.seller_name or "—",
            )

    Console().print(table)


def _print_price_analysis(analysis: PriceAnalysis) -> None:
    """Render the price synthesis as a two-column Rich table."""
    table = Table(title="Price Analysis", title_style="bold cyan")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    def fmt(value: Any, suffix: str = "") -> str:
        return "—" if value is None else f"{value}{suffix}"

    table.add_row("Wholesale floor", fmt(analysis.wholesale_floor))
    table.add_row("Retail ceiling", fmt(analysis.retail_ceiling))
    table.add_row(
        "Gross margin",
        f"{fmt(analysis.gross_margin_pct_min, '%')} – "
        f"{fmt(analysis.gross_margin_pct_max, '%')}",
    )
    table.add_row("Best source", fmt(analysis.best_source_platform))
    table.add_row("Arbitrage", fmt(analysis.arbitrage_signal))
    table.add_row("Summary", analysis.summary)
    Console().print(table)


def _dump_json(payload: Any) -> None:
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


async def cli_search(
    query: str,
    country_code: str | None,
    output_format: str,
    store: SessionStore | None = None,
) -> int:
    """Run extraction + sourcing and print results (0=ok, 1=fail)."""
    pipeline = ResearchPipeline(
        CompletionClient(), SearchOrchestrator(), store
    )

    _err.print(
        f"[bold]Researching:[/bold] {query}  "
        f"[dim]country={country_code or '—'}[/dim]"
    )
    try:
        session_id, metadata = await pipeline.extract(query, country_code)
        _err.print(
            f"[dim]session={session_id} "
            f"normalized='{metadata.normalized_query}' "
            f"hs={metadata.hs_code}[/dim]"
        )
        sourcing: SourcingResult = await pipeline.source(
            metadata, session_id
        )
    except (CompletionError, ValidationError) as exc:
        logger.error("Research failed: %s", exc, exc_info=True)
        _err.print(f"[red]Research failed: {exc}[/red]")
        return 1

    results = sourcing.result_set()
    total = sum(len(v) for v in results.values())
    if not total:
        _err.print("[yellow]No products found on any platform.[/yellow]")
    else:
        _err.print(
            f"[green]✓ {total} listings from "
            f"{sum(1 for v in results.values() if v)} platforms[/green]"
        )

    if output_format == "table":
        _print_listing_table(results)
        _print_price_analysis(sourcing.price_analysis)
    else:
        _dump_json({
            "session_id": session_id,
            "product_metadata": metadata.model_dump(mode="json"),
            **sourcing.model_dump(mode="json"),
        })
    return 0 if total else 1


def show_session(session_id: str, store: SessionStore) -> int:
    """Print every stored artifact for a session as JSON."""
    data = store.get_all(session_id)
    assessment = store.get_assessment(session_id)
    if not data and assessment is None:
        _err.print(f"[yellow]No data stored for session {session_id}[/yellow]")
        return 1
    payload: dict[str, Any] = {"session_id": session_id, **data}
    if assessment is not None:
        payload["assessment"] = {
            "context": assessment.context,
            "report": assessment.report,
            "created_at": assessment.created_at,
        }
    _dump_json(payload)
    return 0
