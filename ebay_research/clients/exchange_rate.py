# ebay_research/clients/exchange_rate.py

"""USD/JPY exchange rate lookup with a small on-disk cache."""

import json
import logging
import math
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from curl_cffi import requests as curl_requests

from ebay_research.config.settings import Settings

logger = logging.getLogger("ebay_research.fx")

FREE_API_URL = "https://open.er-api.com/v6/latest/USD"
KEYED_API_URL = "https://v6.exchangerate-api.com/v6/{key}/latest/USD"


@dataclass(frozen=True)
class RateInfo:
    rate: float | None
    fetched_at: datetime
    source: str  # "cache" or "api"


class ExchangeRateClient:
    """Fetches the USD->JPY rate and caches it as JSON for ``FX_CACHE_TTL``.

    The cache file holds ``{"rate": float, "fetched_at": epoch_seconds}``.
    A missing, unreadable or stale cache simply triggers a fresh fetch.
    """

    def __init__(
        self,
        api_key: str | None = None,
        cache_path: Path | None = None,
        session: curl_requests.Session | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.api_key = api_key if api_key is not None else Settings.EXCHANGE_RATE_API_KEY
        self.cache_path = cache_path or Settings.FX_CACHE_PATH
        self.session = session or curl_requests.Session()
        self._ttl: float = Settings.FX_CACHE_TTL
        self._clock = clock

    @property
    def api_url(self) -> str:
        if self.api_key:
            return KEYED_API_URL.format(key=self.api_key)
        return FREE_API_URL

    # ── Public API ───────────────────────────────────────

    def usd_to_jpy(self, use_cache: bool = True) -> float | None:
        """Current USD/JPY rate, or ``None`` when it cannot be fetched."""
        if use_cache:
            cached = self._load_cache()
            if cached is not None and self._cache_valid(cached):
                return float(cached["rate"])

        rate = self._fetch_rate("JPY")
        if rate is not None:
            self._save_cache(rate)
        return rate

    def convert_usd_to_jpy(self, amount: float | None) -> int | None:
        """Convert a USD amount to whole yen, rounding down."""
        if amount is None:
            return None
        rate = self.usd_to_jpy()
        if rate is None:
            return None
        return math.floor(amount * rate)

    def convert_all(
        self, amounts: Iterable[float | None],
    ) -> list[int | None]:
        rate = self.usd_to_jpy()
        if rate is None:
            return []
        return [
            math.floor(a * rate) if a is not None else None
            for a in amounts
        ]

    def current_rate_info(self) -> RateInfo:
        cached = self._load_cache()
        if cached is not None and self._cache_valid(cached):
            return RateInfo(
                rate=float(cached["rate"]),
                fetched_at=datetime.fromtimestamp(cached["fetched_at"]),
                source="cache",
            )
        return RateInfo(
            rate=self._fetch_rate("JPY"),
            fetched_at=datetime.fromtimestamp(self._clock()),
            source="api",
        )

    def clear_cache(self) -> None:
        self.cache_path.unlink(missing_ok=True)
        logger.info("Exchange rate cache cleared")

    # ── Internals ────────────────────────────────────────

    def _fetch_rate(self, currency: str) -> float | None:
        logger.info("Fetching USD/%s exchange rate", currency)
        try:
            resp = self.session.get(
                self.api_url, timeout=Settings.FX_REQUEST_TIMEOUT,
            )
            if resp.status_code != 200:
                logger.error(
                    "Failed to fetch exchange rate: HTTP %d",
                    resp.status_code,
                )
                return None

            data = json.loads(resp.text)
            if data.get("result") != "success":
                logger.error("Exchange rate API error: %s", data.get("error-type"))
                return None

            # Free endpoint uses "rates", keyed endpoint "conversion_rates"
            rates = data.get("rates") or data.get("conversion_rates") or {}
            rate = rates.get(currency)
            if rate is None:
                logger.error("No %s rate in response", currency)
                return None
            logger.info("Fetched USD/%s rate: %s", currency, rate)
            return float(rate)
        except Exception as exc:
            logger.error(
                "Exchange rate fetch error: %s", exc, exc_info=True,
            )
            return None

    def _load_cache(self) -> dict | None:
        if not self.cache_path.exists():
            return None
        try:
            data = json.loads(self.cache_path.read_text(encoding="utf-8"))
            return {
                "rate": float(data["rate"]),
                "fetched_at": float(data["fetched_at"]),
            }
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Failed to load exchange rate cache: %s", exc)
            return None

    def _save_cache(self, rate: float) -> None:
        payload = {"rate": rate, "fetched_at": int(self._clock())}
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_text(json.dumps(payload), encoding="utf-8")
            logger.debug("Exchange rate cached: %s", rate)
        except OSError as exc:
            logger.warning("Failed to save exchange rate cache: %s", exc)

    def _cache_valid(self, cached: dict) -> bool:
        return self._clock() - cached["fetched_at"] < self._ttl
