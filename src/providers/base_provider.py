# src/providers/base_provider.py

"""Abstract base class for all commerce search providers."""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.models.product import Platform, PlatformProduct
from src.services.errors import ProviderError

# Digits with optional thousands separators and one decimal part
_NUMERIC_RUN_RE = re.compile(r"\d[\d,]*(?:\.\d+)?|\.\d+")
_NON_DIGIT_RE = re.compile(r"\D")


class BaseProvider(ABC):
    """One search engine behind the provider API.

    Subclasses describe how to phrase a query for their engine and how
    to map its raw payload onto :class:`PlatformProduct`.  The base
    class owns the HTTP call and the failure boundary: :meth:`search`
    never raises.
    """

    platform: Platform
    label: str = ""

    # Keys that may hold the raw product array, first non-empty wins
    RESULTS_KEYS: tuple[str, ...] = ("organic_results",)

    def __init__(self) -> None:
        self.logger = logging.getLogger(
            f"import_scout.{self.platform}"
        )
        self.settings = Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    # ── Subclass contract ────────────────────────────────

    @abstractmethod
    def build_params(self, query: str) -> dict[str, Any]:
        """Return the engine-specific query parameters."""
        ...

    @abstractmethod
    def map_item(self, item: dict[str, Any]) -> PlatformProduct:
        """Map one raw result item to a canonical record."""
        ...

    # ── Payload handling ─────────────────────────────────

    def _result_items(
        self, data: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Locate the raw product array and apply the per-provider cap."""
        items = next(
            (data[key] for key in self.RESULTS_KEYS if data.get(key)),
            [],
        )
        if not isinstance(items, list):
            return []
        return items[: self.settings.RESULTS_PER_PROVIDER]

    def map_results(
        self, data: dict[str, Any],
    ) -> list[PlatformProduct]:
        """Map a provider payload, skipping items that fail to map."""
        products: list[PlatformProduct] = []
        for item in self._result_items(data):
            if not isinstance(item, dict):
                continue
            try:
                products.append(self.map_item(item))
            except (TypeError, ValueError, AttributeError) as exc:
                self.logger.debug(
                    "[%s] Skipped unmappable item: %s",
                    self.platform,
                    exc,
                )
        return products

    def _call_search(
        self, params: dict[str, Any],
    ) -> dict[str, Any]:
        """Single GET against the search endpoint.

        Raises:
            ProviderError: On any non-200 status.
        """
        query_params: dict[str, Any] = {
            "api_key": self.settings.SERPAPI_API_KEY,
            "output": self.settings.SERPAPI_OUTPUT,
        }
        query_params.update(
            {k: v for k, v in params.items() if v is not None}
        )
        resp = self.session.get(
            self.settings.SERPAPI_BASE_URL,
            params=query_params,
            headers=self.settings.DEFAULT_HEADERS,
            timeout=self._request_timeout,
        )
        if resp.status_code != 200:
            body = resp.text or ""
            raise ProviderError(
                self.label or str(self.platform),
                resp.status_code,
                body[: self.settings.ERROR_BODY_LIMIT],
            )
        data: dict[str, Any] = resp.json()
        return data

    def search(self, query: str) -> list[PlatformProduct]:
        """Search this provider; any failure yields an empty list."""
        try:
            data = self._call_search(self.build_params(query))
            products = self.map_results(data)
            self.logger.info(
                "[%s] %d results for '%s'",
                self.platform,
                len(products),
                query,
            )
            return products
        except Exception as e:
            self.logger.error(
                "[%s] Search failed: %s",
                self.platform,
                e,
                exc_info=True,
            )
            return []

    # ── Field parsing helpers ────────────────────────────

    @staticmethod
    def parse_price(raw: Any) -> tuple[float | None, str]:
        """Parse a raw price into ``(value, formatted)``.

        Accepts numbers, strings like ``"US$1,299.00 - 1,499.00"`` (the
        first numeric run wins) and dicts carrying ``raw`` /
        ``extracted`` / ``value`` sub-fields.
        """
        if isinstance(raw, dict):
            raw = next(
                (
                    raw[key]
                    for key in ("raw", "extracted", "value")
                    if raw.get(key) is not None
                ),
                None,
            )
        if raw is None:
            return None, "N/A"
        if isinstance(raw, bool):
            return None, str(raw)
        if isinstance(raw, (int, float)):
            return float(raw), f"${raw:.2f}"

        text = str(raw)
        match = _NUMERIC_RUN_RE.search(text)
        if not match:
            return None, text or "N/A"
        try:
            value: float | None = float(match.group(0).replace(",", ""))
        except ValueError:
            value = None
        return value, text

    @staticmethod
    def parse_count(raw: Any) -> int | None:
        """Keep only the digits of ``"1,234 reviews"``-style values."""
        if raw is None or raw == "":
            return None
        digits = _NON_DIGIT_RE.sub("", str(raw))
        return int(digits) if digits else None

    @staticmethod
    def parse_rating(raw: Any) -> float | None:
        """Parse a rating such as ``4.5`` or ``"4.5 out of 5"``."""
        if raw is None or raw == "":
            return None
        match = _NUMERIC_RUN_RE.search(str(raw))
        if not match:
            return None
        try:
            return float(match.group(0).replace(",", ""))
        except ValueError:
            return None

    @staticmethod
    def optional_str(raw: Any) -> str | None:
        """Stringify a present, non-empty value; otherwise ``None``."""
        if raw is None or raw == "":
            return None
        return str(raw)
