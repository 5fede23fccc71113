# ebay_research/config/settings.py

"""Central configuration for the ebay_research tool."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the ebay_research tool."""

    # --- Credentials / identifiers ---
    EBAY_APP_ID: str = os.getenv("EBAY_APP_ID", "")
    EBAY_ENVIRONMENT: str = os.getenv("EBAY_ENVIRONMENT", "production")
    GOOGLE_SPREADSHEET_ID: str = os.getenv("GOOGLE_SPREADSHEET_ID", "")
    GOOGLE_SHEET_NAME: str = os.getenv(
        "GOOGLE_SHEET_NAME", "all_sheets_combined"
    )
    GOOGLE_CREDENTIALS_PATH: str = os.getenv(
        "GOOGLE_CREDENTIALS_PATH", "config/google_credentials.json"
    )
    EXCHANGE_RATE_API_KEY: str = os.getenv("EXCHANGE_RATE_API_KEY", "")

    # --- Marketplace requests ---
    REQUEST_DELAY: float = 1.0          # Seconds between API calls
    REQUEST_TIMEOUT: int = 30           # Seconds before a request times out
    MAX_RETRIES: int = 3                # Retry count on transient failures
    FX_REQUEST_TIMEOUT: int = 10
    SOLD_ITEMS_DAYS: int = 90           # Finding API completed-items window
    PRICE_SAMPLE_LIMIT: int = 100       # Sold items pulled per price query
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
    }

    # --- Batch processing ---
    BATCH_SIZE: int = 500               # Rows per fetch-batch
    SHEET_FLUSH_EVERY: int = 50         # Rows buffered before a sheet write

    # --- Analysis defaults ---
    TREND_DAYS: int = 30
    RISING_LIMIT: int = 20
    PRICE_CHANGE_DAYS: int = 7
    PRICE_CHANGE_THRESHOLD: float = 0.1  # Fraction, 0.1 == 10%

    # --- Caching ---
    FX_CACHE_TTL: float = 24 * 60 * 60  # Exchange rate cache (secs)

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    LOGS_DIR: Path = BASE_DIR / "logs"
    DB_PATH: Path = DATA_DIR / "ebay_research.db"
    FX_CACHE_PATH: Path = DATA_DIR / "exchange_rate_cache.json"
    CHARTS_DIR: Path = DATA_DIR / "charts"
