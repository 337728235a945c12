# src/services/search_orchestrator.py

"""Fans one query out to every commerce provider concurrently."""

import asyncio
import importlib
import logging
from typing import Any

from src.config.settings import Settings
from src.models.product import Platform, PlatformProduct, ProviderResultSet
from src.providers.base_provider import BaseProvider

logger = logging.getLogger("import_scout.orchestrator")


def _load_provider_class(dotted_path: str) -> type[Any]:
    """Dynamically import a provider class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


def build_providers(
    sources: list[dict[str, str]] | None = None,
) -> dict[Platform, BaseProvider]:
    """Instantiate one provider per registry entry, in registry order."""
    providers: dict[Platform, BaseProvider] = {}
    for src in sources or Settings.AVAILABLE_SOURCES:
        provider_cls = _load_provider_class(src["provider"])
        providers[Platform(src["id"])] = provider_cls()
    return providers


def provider_summary(results: ProviderResultSet) -> dict[str, int]:
    """Per-provider result counts, for logs and CLI status lines."""
    return {
        str(platform): len(products)
        for platform, products in results.items()
    }


class SearchOrchestrator:
    """Coordinates the concurrent provider fan-out for one query.

    Providers are built once and reused across requests; they hold no
    per-request state.
    """

    def __init__(
        self,
        providers: dict[Platform, BaseProvider] | None = None,
    ) -> None:
        self.settings = Settings()
        self.providers = (
            providers if providers is not None else build_providers()
        )

    async def _run_one(
        self, provider: BaseProvider, query: str,
    ) -> list[PlatformProduct]:
        """Run a blocking provider search in a worker thread."""
        products: list[PlatformProduct] = await asyncio.to_thread(
            provider.search, query
        )
        return products

    async def search_all_providers(
        self, query: str,
    ) -> ProviderResultSet:
        """Search every provider and wait for all of them to settle.

        The returned mapping always has exactly one entry per known
        provider; a provider that failed contributes ``[]``.
        Cancelling the caller cancels the whole fan-out and nothing
        partial is returned.
        """
        platforms = list(self.providers)
        batches = await asyncio.gather(
            *(
                self._run_one(self.providers[p], query)
                for p in platforms
            ),
            return_exceptions=True,
        )

        results: ProviderResultSet = {}
        for platform, batch in zip(platforms, batches):
            if isinstance(batch, list):
                results[platform] = batch
                continue
            if isinstance(batch, asyncio.CancelledError):
                raise batch
            logger.error(
                "Provider %s escaped its failure boundary for '%s': %s",
                platform,
                query,
                batch,
                exc_info=batch,
            )
            results[platform] = []

        logger.info(
            "Fan-out for '%s' settled: %s",
            query,
            provider_summary(results),
        )
        return results
