"""Market data: live quotes and news with layered fallbacks.

Providers:
- CoinMarketCap direct (primary)
- CoinMarketCap through a CORS relay (secondary)
"""

from jetswap.market.base import MarketDataProvider, MarketDataUnavailable, NewsItem, QuoteSnapshot
from jetswap.market.client import MarketDataClient
from jetswap.market.coinmarketcap import CoinMarketCapProvider

__all__ = [
    "CoinMarketCapProvider",
    "MarketDataClient",
    "MarketDataProvider",
    "MarketDataUnavailable",
    "NewsItem",
    "QuoteSnapshot",
]
