"""
Price cache and quote proxy.

The cache takes the current time as an argument instead of reading a global
clock, so expiry can be tested without sleeping.
"""

from typing import Any, Callable, Dict, Optional, Tuple
import httpx
import logging
import time

from core.config import settings
from core.exceptions import NotFoundError, UpstreamError

logger = logging.getLogger(__name__)


class PriceCache:
    """
    Process-local TTL cache keyed by ticker.

    Unbounded in key count; an entry is only replaced by a newer ``set``.
    An entry is fresh while ``now - stored_at < ttl_seconds``.
    """

    def __init__(self, ttl_seconds: float):
        self.ttl_seconds = ttl_seconds
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str, now: float) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if now - stored_at >= self.ttl_seconds:
            return None
        return value

    def set(self, key: str, value: Any, now: float) -> None:
        self._entries[key] = (value, now)

    def __len__(self) -> int:
        return len(self._entries)


class PriceService:
    """
    Latest price for a ticker, served from cache when fresh.

    Quotes come from the Yahoo chart endpoint (``PRICE_QUOTE_URL``).
    """

    def __init__(
        self,
        cache: Optional[PriceCache] = None,
        client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient,
        clock: Callable[[], float] = time.time,
        quote_url: Optional[str] = None,
        timeout: float = 10.0
    ):
        self.cache = cache or PriceCache(settings.PRICE_CACHE_TTL_SECONDS)
        self.client_factory = client_factory
        self.clock = clock
        self.quote_url = quote_url or settings.PRICE_QUOTE_URL
        self.timeout = timeout

    async def fetch_quote(self, ticker: str) -> Dict[str, Any]:
        """
        Fetch chart metadata for a ticker.

        Raises:
            UpstreamError: Network failure, non-2xx response or unparseable body
        """
        url = f"{self.quote_url}/{ticker}"
        try:
            async with self.client_factory(timeout=self.timeout) as client:
                response = await client.get(url, params={"interval": "1d", "range": "1d"})
                if response.status_code == 404:
                    return {}
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            raise UpstreamError(
                f"Quote request for {ticker} failed: {e}",
                context={"ticker": ticker, "url": url},
                original_exception=e
            )
        except ValueError as e:
            raise UpstreamError(
                f"Quote for {ticker} is not valid JSON",
                context={"ticker": ticker, "url": url},
                original_exception=e
            )

        if not isinstance(payload, dict):
            raise UpstreamError(f"Unexpected quote payload for {ticker}", context={"ticker": ticker, "url": url})

        results = (payload.get("chart") or {}).get("result") or []
        return results[0].get("meta", {}) if results else {}

    async def get_price(self, ticker: str) -> Dict[str, Any]:
        """
        Returns:
            {ticker, price, currency, market_state, cached}

        Raises:
            NotFoundError: Quote has no price
            UpstreamError: Quote source unreachable
        """
        ticker = ticker.strip().upper()
        now = self.clock()

        cached = self.cache.get(ticker, now)
        if cached is not None:
            return {**cached, "cached": True}

        meta = await self.fetch_quote(ticker)
        price = meta.get("regularMarketPrice")
        if price is None:
            raise NotFoundError("Price not available", context={"ticker": ticker})

        quote = {
            "ticker": ticker,
            "price": price,
            "currency": meta.get("currency"),
            "market_state": meta.get("marketState"),
        }
        self.cache.set(ticker, quote, now)
        logger.debug(f"Cached {ticker} at {price}")
        return {**quote, "cached": False}
