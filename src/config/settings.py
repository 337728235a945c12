# src/config/settings.py

"""Central configuration for the import_scout engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the import_scout engine."""

    # --- Search providers ---
    SERPAPI_API_KEY: str = os.getenv("SERPAPI_API_KEY", "")
    SERPAPI_BASE_URL: str = os.getenv(
        "SERPAPI_BASE_URL", "https://serpapi.com/search"
    )
    SERPAPI_OUTPUT: str = "json"
    REQUEST_TIMEOUT: int = 15           # Hard per-provider timeout (secs)
    RESULTS_PER_PROVIDER: int = int(
        os.getenv("SERPAPI_RESULTS_PER_PAGE", "10")
    )
    ERROR_BODY_LIMIT: int = 300         # Chars of body kept in errors

    # --- Completion provider ---
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    ANTHROPIC_MODEL: str = os.getenv(
        "ANTHROPIC_MODEL", "claude-sonnet-4-5-20250929"
    )
    COMPLETION_MAX_TOKENS: int = 2048   # Default per-call token budget
    COMPLETION_MAX_ATTEMPTS: int = 3    # Total attempts incl. the first
    COMPLETION_INITIAL_DELAY: float = 1.0  # Backoff base (secs)

    # --- HTTP client ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    LOGS_DIR: Path = BASE_DIR / "logs"
    SESSION_DB_PATH: Path = DATA_DIR / "sessions.db"

    # --- Providers (registry; order fixes result-set key order) ---
    AVAILABLE_SOURCES: list[dict[str, str]] = [
        {
            "id": "alibaba",
            "label": "Alibaba",
            "provider": "src.providers.alibaba_provider.AlibabaProvider",
        },
        {
            "id": "amazon",
            "label": "Amazon",
            "provider": "src.providers.amazon_provider.AmazonProvider",
        },
        {
            "id": "ebay",
            "label": "eBay",
            "provider": "src.providers.ebay_provider.EbayProvider",
        },
        {
            "id": "walmart",
            "label": "Walmart",
            "provider": "src.providers.walmart_provider.WalmartProvider",
        },
        {
            "id": "google_shopping",
            "label": "Google Shopping",
            "provider": (
                "src.providers.google_shopping_provider."
                "GoogleShoppingProvider"
            ),
        },
    ]
