# src/services/research_pipeline.py

"""Sequences one research request: extract → fan-out → price → score."""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from src.analysis.keyword_extractor import extract_keywords
from src.analysis.opportunity_scorer import degraded_report, score_opportunity
from src.analysis.price_synthesizer import synthesize_prices
from src.models.reports import (
    ImpositiveReport,
    MarketReport,
    OpportunityReport,
    PriceAnalysis,
    ProductMetadata,
    RegulationReport,
    SearchQuery,
    SourcingResult,
    TrendReport,
)
from src.services.completion_client import CompletionClient
from src.services.errors import SessionDataMissingError
from src.services.search_orchestrator import SearchOrchestrator, provider_summary
from src.storage.session_store import SessionDataType, SessionStore

logger = logging.getLogger("import_scout.pipeline")

ModelT = TypeVar("ModelT", bound=BaseModel)


class ReportSource(Protocol):
    """Produces the reports the core consumes but does not build."""

    async def trend_report(
        self, metadata: ProductMetadata, country_code: str | None,
    ) -> TrendReport: ...

    async def regulation_report(
        self, metadata: ProductMetadata, country_code: str | None,
    ) -> RegulationReport: ...

    async def impositive_report(
        self,
        metadata: ProductMetadata,
        price: PriceAnalysis,
        country_code: str | None,
    ) -> ImpositiveReport | None: ...

    async def market_report(
        self, metadata: ProductMetadata, country_code: str | None,
    ) -> MarketReport: ...


@dataclass
class ResearchOutcome:
    """Every artifact produced for one end-to-end request."""

    session_id: str
    query: SearchQuery
    metadata: ProductMetadata
    sourcing: SourcingResult
    opportunity: OpportunityReport


class ResearchPipeline:
    """Runs the stages for one request at a time.

    The completion client, orchestrator and optional store are built
    once at process start and passed in; the pipeline keeps no state
    between requests.
    """

    def __init__(
        self,
        completion: CompletionClient,
        orchestrator: SearchOrchestrator,
        store: SessionStore | None = None,
    ) -> None:
        self.completion = completion
        self.orchestrator = orchestrator
        self.store = store

    async def _save(
        self,
        session_id: str,
        data_type: SessionDataType,
        value: Any,
    ) -> None:
        if self.store is not None:
            await asyncio.to_thread(
                self.store.put, session_id, data_type, value
            )

    # ── Individual steps ─────────────────────────────────

    async def extract(
        self,
        raw_query: str,
        country_code: str | None = None,
        session_id: str | None = None,
    ) -> tuple[str, ProductMetadata]:
        """Validate the query and extract metadata (may fail the request)."""
        query = SearchQuery(raw_query=raw_query, country_code=country_code)
        sid = session_id or str(uuid.uuid4())
        metadata = await extract_keywords(
            self.completion, query.raw_query, query.country_code
        )
        await self._save(sid, SessionDataType.PRODUCT_METADATA, metadata)
        return sid, metadata

    async def source(
        self,
        metadata: ProductMetadata,
        session_id: str | None = None,
    ) -> SourcingResult:
        """Fan out on the normalized query, then synthesize prices."""
        results = await self.orchestrator.search_all_providers(
            metadata.normalized_query
        )
        logger.info(
            "Sourcing '%s': %s",
            metadata.normalized_query,
            provider_summary(results),
        )
        price_analysis = await synthesize_prices(self.completion, results)
        sourcing = SourcingResult.build(results, price_analysis)
        if session_id:
            await self._save(session_id, SessionDataType.SOURCING, sourcing)
        return sourcing

    async def assess(
        self,
        session_id: str,
        price: PriceAnalysis,
        trend: TrendReport,
        regulation: RegulationReport,
        impositive: ImpositiveReport | None,
        market: MarketReport,
        context: Any = None,
    ) -> OpportunityReport:
        """Score the opportunity (never fails) and persist the result."""
        report = await score_opportunity(
            self.completion, price, trend, regulation, impositive, market
        )
        await self._save_assessment(session_id, context, report)
        return report

    async def _save_assessment(
        self,
        session_id: str,
        context: Any,
        report: OpportunityReport,
    ) -> None:
        if self.store is not None:
            await asyncio.to_thread(
                self.store.save_assessment,
                session_id,
                context if context is not None else {},
                report,
            )

    # ── End-to-end ───────────────────────────────────────

    async def research(
        self,
        raw_query: str,
        country_code: str | None,
        reports: ReportSource,
    ) -> ResearchOutcome:
        """Run the full pipeline for one query.

        Only metadata extraction (and price synthesis when there are
        listings) can fail the request; the opportunity report is
        always returned, degraded if anything past sourcing breaks.
        """
        query = SearchQuery(raw_query=raw_query, country_code=country_code)
        session_id, metadata = await self.extract(
            query.raw_query, query.country_code
        )
        sourcing = await self.source(metadata, session_id)
        price = sourcing.price_analysis
        context = {
            "query": query.model_dump(mode="json"),
            "metadata": metadata.model_dump(mode="json"),
        }

        # A failing report cancels the others before the request returns
        try:
            async with asyncio.TaskGroup() as group:
                trend_task = group.create_task(
                    reports.trend_report(metadata, query.country_code)
                )
                regulation_task = group.create_task(
                    reports.regulation_report(metadata, query.country_code)
                )
                impositive_task = group.create_task(
                    reports.impositive_report(
                        metadata, price, query.country_code
                    )
                )
                market_task = group.create_task(
                    reports.market_report(metadata, query.country_code)
                )
        except ExceptionGroup as failures:
            for exc in failures.exceptions:
                logger.error(
                    "Upstream report failed for session %s: %s",
                    session_id,
                    exc,
                    exc_info=exc,
                )
            opportunity = degraded_report(price, None)
            await self._save_assessment(session_id, context, opportunity)
        else:
            trend = trend_task.result()
            regulation = regulation_task.result()
            impositive = impositive_task.result()
            market = market_task.result()
            await self._save(session_id, SessionDataType.TRENDS, trend)
            await self._save(
                session_id, SessionDataType.REGULATION, regulation
            )
            if impositive is not None:
                await self._save(
                    session_id, SessionDataType.IMPOSITIVE, impositive
                )
            await self._save(session_id, SessionDataType.MARKET, market)
            opportunity = await self.assess(
                session_id,
                price,
                trend,
                regulation,
                impositive,
                market,
                context,
            )

        return ResearchOutcome(
            session_id=session_id,
            query=query,
            metadata=metadata,
            sourcing=sourcing,
            opportunity=opportunity,
        )

    # ── Stored-session scoring ───────────────────────────

    def _require_store(self) -> SessionStore:
        if self.store is None:
            raise RuntimeError("ResearchPipeline has no session store")
        return self.store

    async def _load(
        self,
        session_id: str,
        data_type: SessionDataType,
        model: type[ModelT],
        malformed: list[str],
        required: bool = True,
    ) -> ModelT | None:
        """Load one stored report.

        A malformed report is logged, recorded in *malformed* and
        returned as ``None`` so the other reports still load.

        Raises:
            SessionDataMissingError: *required* and nothing is stored.
        """
        store = self._require_store()
        raw = await asyncio.to_thread(store.get, session_id, data_type)
        if raw is None:
            if required:
                raise SessionDataMissingError(session_id, str(data_type))
            return None
        try:
            return model.model_validate(raw)
        except ValidationError as exc:
            logger.error(
                "Stored %s for session %s is malformed: %s",
                data_type,
                session_id,
                exc,
            )
            malformed.append(str(data_type))
            return None

    async def assess_session(self, session_id: str) -> OpportunityReport:
        """Score a session whose reports were stored by collaborators.

        If any stored report is malformed the degraded report is
        returned, built from whichever price and trend data did load.

        Raises:
            SessionDataMissingError: Sourcing, trend, regulation or
                market data has not been stored yet.
        """
        store = self._require_store()
        context = await asyncio.to_thread(store.get_all, session_id)
        malformed: list[str] = []
        sourcing = await self._load(
            session_id, SessionDataType.SOURCING, SourcingResult, malformed
        )
        trend = await self._load(
            session_id, SessionDataType.TRENDS, TrendReport, malformed
        )
        regulation = await self._load(
            session_id, SessionDataType.REGULATION, RegulationReport,
            malformed,
        )
        impositive = await self._load(
            session_id, SessionDataType.IMPOSITIVE, ImpositiveReport,
            malformed, required=False,
        )
        market = await self._load(
            session_id, SessionDataType.MARKET, MarketReport, malformed
        )

        if (
            malformed
            or sourcing is None
            or trend is None
            or regulation is None
            or market is None
        ):
            report = degraded_report(
                sourcing.price_analysis if sourcing else None, trend
            )
            await self._save_assessment(session_id, context, report)
            return report

        return await self.assess(
            session_id,
            sourcing.price_analysis,
            trend,
            regulation,
            impositive,
            market,
            context,
        )
