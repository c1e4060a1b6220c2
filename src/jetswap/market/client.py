"""Resilient quote and news client.

Fallback chain, each tier tried at most once per call:

    fresh cache -> primary provider -> secondary provider
                -> last known good result -> static seed

Every remote tier is bounded by a timeout, and the client never raises:
callers get whatever the best available tier produced.
"""

import asyncio
import logging
import time
from decimal import Decimal
from typing import Callable, Optional

from jetswap.market.base import MarketDataProvider, NewsItem, QuoteSnapshot
from jetswap.market.seed import SEED_NEWS, SEED_PRICES
from jetswap.utils.cache import TTLCache

logger = logging.getLogger(__name__)

FEED_KEY = "feed"


class MarketDataClient:
    """Price quotes and news with bounded, layered fallbacks."""

    def __init__(
        self,
        providers: Optional[list[MarketDataProvider]] = None,
        tier_timeout: float = 20.0,
        cache_ttl: float = 60.0,
        stale_ttl: float = 900.0,
        seed_prices: Optional[dict[str, Decimal]] = None,
        seed_news: Optional[list[NewsItem]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the client.

        Args:
            providers: Remote providers in priority order (primary first)
            tier_timeout: Upper bound in seconds for one remote tier
            cache_ttl: Fresh results are served without a remote call this long
            stale_ttl: The last good result stays usable as a fallback this long
            seed_prices: Static prices for the last tier
            seed_news: Static news for the last tier
            clock: Monotonic time source for the caches
        """
        self.providers: list[MarketDataProvider] = providers or []
        self.tier_timeout = tier_timeout
        self.seed_prices = SEED_PRICES if seed_prices is None else seed_prices
        self.seed_news = SEED_NEWS if seed_news is None else seed_news
        self._fresh_quotes: TTLCache[dict[str, QuoteSnapshot]] = TTLCache(cache_ttl, clock)
        self._last_quotes: TTLCache[dict[str, QuoteSnapshot]] = TTLCache(stale_ttl, clock)
        self._fresh_feed: TTLCache[list[NewsItem]] = TTLCache(cache_ttl, clock)
        self._last_feed: TTLCache[list[NewsItem]] = TTLCache(stale_ttl, clock)

    @staticmethod
    def _key(symbols: list[str]) -> tuple[str, ...]:
        return tuple(sorted(set(symbols)))

    async def get_quotes(self, symbols: list[str]) -> dict[str, QuoteSnapshot]:
        """Get USD quotes for ``symbols``.

        Returns:
            Symbol -> quote for every symbol some tier could answer; may be empty
        """
        symbols = [s.strip().upper() for s in symbols if s and s.strip()]
        if not symbols:
            return {}
        key = self._key(symbols)

        cached = self._fresh_quotes.get(key)
        if cached is not None:
            return cached

        for provider in self.providers:
            try:
                quotes = await asyncio.wait_for(provider.get_quotes(list(key)), self.tier_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"{provider.name} quotes timed out after {self.tier_timeout}s")
                continue
            except Exception as e:
                logger.warning(f"{provider.name} quotes failed: {type(e).__name__}: {e}")
                continue
            if quotes:
                logger.debug(f"Got {len(quotes)} quote(s) from {provider.name}")
                self._fresh_quotes.set(key, quotes)
                self._last_quotes.set(key, quotes)
                return quotes
            logger.debug(f"{provider.name} returned no quotes for {','.join(key)}")

        last = self._last_quotes.get(key)
        if last is not None:
            logger.info("Serving last known quotes")
            return {
                s: QuoteSnapshot(s, q.price, q.percent_change_24h, "cache", q.timestamp)
                for s, q in last.items()
            }

        seeded = {
            s: QuoteSnapshot(s, self.seed_prices[s], Decimal("0"), "seed")
            for s in key
            if s in self.seed_prices
        }
        if seeded:
            logger.info("All live quote sources failed, serving seed prices")
        else:
            logger.error(f"No quote source could answer for {','.join(key)}")
        return seeded

    async def get_feed(self, limit: int = 10) -> list[NewsItem]:
        """Get the latest news, falling back to cached then seed items."""
        cached = self._fresh_feed.get(FEED_KEY)
        if cached is not None:
            return cached[:limit]

        for provider in self.providers:
            try:
                items = await asyncio.wait_for(provider.get_feed(limit), self.tier_timeout)
            except asyncio.TimeoutError:
                logger.warning(f"{provider.name} news timed out after {self.tier_timeout}s")
                continue
            except Exception as e:
                logger.warning(f"{provider.name} news failed: {type(e).__name__}: {e}")
                continue
            if items:
                self._fresh_feed.set(FEED_KEY, items)
                self._last_feed.set(FEED_KEY, items)
                return items[:limit]

        last = self._last_feed.get(FEED_KEY)
        if last is not None:
            logger.info("Serving last known news feed")
            return last[:limit]

        logger.warning("All live news channels restricted, serving internal feed")
        return list(self.seed_news[:limit])

    def clear_cache(self) -> None:
        for cache in (self._fresh_quotes, self._last_quotes, self._fresh_feed, self._last_feed):
            cache.clear()
