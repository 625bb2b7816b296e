"""
Exchange rates into JPY from exchangerate-api.com, cached with a TTL.

The table maps currency code -> multiplier into JPY ({"JPY": 1, "USD": 150, ...}).
The API is queried with base JPY, so each returned rate is inverted.

Falls back to a static table when the API key is not configured or the
request fails; fallback results are not cached, so the next call retries.
"""
import logging
import threading
import time
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Callable

import requests

from subtracker.config import get_settings
from subtracker.domain.money import convert_to_reference

logger = logging.getLogger(__name__)

API_URL = "https://v6.exchangerate-api.com/v6/{api_key}/latest/JPY"
PLACEHOLDER_API_KEYS = frozenset({"", "your_api_key_here"})

FALLBACK_RATES: dict[str, Decimal] = {
    "JPY": Decimal("1"),
    "USD": Decimal("150"),
    "EUR": Decimal("160"),
    "GBP": Decimal("190"),
    "CAD": Decimal("110"),
    "AUD": Decimal("100"),
    "CHF": Decimal("170"),
    "CNY": Decimal("21"),
    "KRW": Decimal("0.11"),
    "SGD": Decimal("110"),
}


class ExchangeRateError(RuntimeError):
    pass


class ExchangeRateService:
    def __init__(
        self,
        api_key: str | None,
        ttl_seconds: float = 60 * 30,
        timeout: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key or ""
        self.ttl_seconds = ttl_seconds
        self.timeout = timeout
        self._clock = clock
        self._session = session or requests.Session()
        self._cached: dict[str, Decimal] | None = None
        self._cached_at: float = 0.0
        # one instance serves the whole request threadpool
        self._lock = threading.Lock()

    def get_rates(self) -> dict[str, Decimal]:
        """Rate table, served from cache while younger than the TTL."""
        with self._lock:
            return dict(self._current_rates())

    def invalidate(self) -> None:
        with self._lock:
            self._cached = None
            self._cached_at = 0.0

    def _current_rates(self) -> dict[str, Decimal]:
        now = self._clock()
        if self._cached is not None and now - self._cached_at < self.ttl_seconds:
            return self._cached

        if self.api_key in PLACEHOLDER_API_KEYS:
            return FALLBACK_RATES

        try:
            rates = self._fetch_latest_rates()
        except (requests.RequestException, ExchangeRateError) as e:
            logger.warning("Failed to fetch exchange rates, using fallback rates: %s", e)
            return FALLBACK_RATES

        self._cached = rates
        self._cached_at = now
        return rates

    def convert_to_jpy(self, amount, currency: str) -> Decimal:
        return convert_to_reference(amount, currency, self.get_rates())

    def _fetch_latest_rates(self) -> dict[str, Decimal]:
        resp = self._session.get(API_URL.format(api_key=self.api_key), timeout=self.timeout)
        if resp.status_code != 200:
            raise ExchangeRateError(f"HTTP error, status: {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise ExchangeRateError(f"invalid JSON: {e}") from e

        if data.get("result") == "error":
            raise ExchangeRateError(f"API error: {data.get('error-type')}")

        conversion_rates = data.get("conversion_rates")
        if not isinstance(conversion_rates, dict):
            raise ExchangeRateError("conversion_rates missing from response")

        rates: dict[str, Decimal] = {"JPY": Decimal(1)}
        for currency, rate in conversion_rates.items():
            try:
                value = Decimal(str(rate))
            except InvalidOperation:
                logger.warning("Skipping non-numeric rate for %s: %r", currency, rate)
                continue
            if value <= 0:
                logger.warning("Skipping non-positive rate for %s: %r", currency, rate)
                continue
            if currency == "JPY":
                continue
            rates[currency] = Decimal(1) / value
        return rates


@lru_cache
def get_exchange_rate_service() -> ExchangeRateService:
    """Process-wide service configured from settings (FastAPI dependency)."""
    settings = get_settings()
    return ExchangeRateService(
        api_key=settings.EXCHANGE_RATE_API_KEY,
        ttl_seconds=settings.EXCHANGE_RATE_CACHE_TTL_SECONDS,
        timeout=settings.EXCHANGE_RATE_TIMEOUT_SECONDS,
    )
