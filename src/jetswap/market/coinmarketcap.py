"""CoinMarketCap market data provider.

The same API is reachable directly (primary tier) or through a CORS relay
that wraps the body in ``{"contents": "..."}`` (secondary tier).
API docs: https://coinmarketcap.com/api/documentation/v1/
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from urllib.parse import quote, urlencode

import httpx

from jetswap.market.base import MarketDataProvider, MarketDataUnavailable, NewsItem, QuoteSnapshot
from jetswap.market.seed import DEFAULT_NEWS_IMAGE
from jetswap.utils.governor import RequestGovernor, ThrottledRetryExhausted, raise_for_throttle

logger = logging.getLogger(__name__)

CMC_API_URL = "https://pro-api.coinmarketcap.com"
QUOTES_PATH = "/v1/cryptocurrency/quotes/latest"
NEWS_PATH = "/v1/content/latest"


class CoinMarketCapProvider(MarketDataProvider):
    """CoinMarketCap quotes and news, optionally through a relay."""

    def __init__(
        self,
        api_key: str,
        governor: RequestGovernor,
        base_url: str = CMC_API_URL,
        relay_url: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the provider.

        Args:
            api_key: CoinMarketCap API key
            governor: Governor for the market data endpoint class
            base_url: API base URL
            relay_url: Relay prefix; the encoded target URL is appended to it
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.api_key = api_key
        self.governor = governor
        self.base_url = base_url.rstrip("/")
        self.relay_url = relay_url
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "coinmarketcap-relay" if self.relay_url else "coinmarketcap"

    def _build_request(self, path: str, params: dict) -> tuple[str, dict, dict]:
        headers = {"Accept": "application/json"}
        if not self.relay_url:
            headers["X-CMC_PRO_API_KEY"] = self.api_key
            return f"{self.base_url}{path}", params, headers

        # Relays drop custom headers, so the key travels in the query string.
        target = f"{self.base_url}{path}?{urlencode({**params, 'CMC_PRO_API_KEY': self.api_key})}"
        return f"{self.relay_url}{quote(target, safe='')}", {}, headers

    async def _fetch(self, path: str, params: dict) -> dict:
        url, query, headers = self._build_request(path, params)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(url, params=query or None, headers=headers)
            raise_for_throttle(response)
            response.raise_for_status()
            data = response.json()

        if isinstance(data, dict) and "contents" in data:
            contents = data["contents"]
            data = json.loads(contents) if isinstance(contents, str) else contents

        if not isinstance(data, dict):
            raise MarketDataUnavailable(f"{self.name}: unexpected body type {type(data).__name__}")
        status = data.get("status") or {}
        if status.get("error_code", 0) != 0:
            raise MarketDataUnavailable(
                f"{self.name}: API error {status.get('error_code')}: {status.get('error_message')}"
            )
        return data

    async def _get(self, path: str, params: dict, label: str) -> dict:
        try:
            return await self.governor.schedule(lambda: self._fetch(path, params), label=label)
        except ThrottledRetryExhausted as e:
            raise MarketDataUnavailable(f"{self.name}: throttled: {e}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise MarketDataUnavailable(f"{self.name}: {type(e).__name__}: {e}") from e

    async def get_quotes(self, symbols: list[str]) -> dict[str, QuoteSnapshot]:
        data = await self._get(QUOTES_PATH, {"symbol": ",".join(symbols)}, label="quotes")
        payload = data.get("data") or {}

        quotes = {}
        for symbol in symbols:
            usd = _usd_quote(payload.get(symbol))
            if usd is None:
                continue
            try:
                quotes[symbol] = QuoteSnapshot(
                    symbol=symbol,
                    price=Decimal(str(usd["price"])),
                    percent_change_24h=Decimal(str(usd.get("percent_change_24h") or 0)),
                    source=self.name,
                )
            except (KeyError, InvalidOperation, TypeError):
                logger.debug(f"{self.name}: skipping malformed quote for {symbol}")
        return quotes

    async def get_feed(self, limit: int = 10) -> list[NewsItem]:
        data = await self._get(NEWS_PATH, {"category": "news", "language": "en"}, label="news")
        items = data.get("data")
        if not isinstance(items, list):
            raise MarketDataUnavailable(f"{self.name}: news payload is not a list")
        return [_news_item(raw, i) for i, raw in enumerate(items[:limit]) if isinstance(raw, dict)]


def _usd_quote(entry: Any) -> Optional[dict]:
    # quotes/latest returns either one object or a list per symbol
    if isinstance(entry, list):
        entry = entry[0] if entry else None
    if not isinstance(entry, dict):
        return None
    usd = (entry.get("quote") or {}).get("USD")
    return usd if isinstance(usd, dict) and usd.get("price") is not None else None


def _news_item(raw: dict, position: int) -> NewsItem:
    content = raw.get("content") or ""
    subtitle = raw.get("subtitle")
    return NewsItem(
        id=str(raw.get("id") or f"cmc-{position}"),
        title=raw.get("title") or "Untitled",
        summary=subtitle or (content[:150] + "..." if content else ""),
        full_text=content or subtitle or "",
        category="Market News",
        published=(raw.get("released_at") or "Recently")[:10],
        image=raw.get("cover") or DEFAULT_NEWS_IMAGE,
        source="Global Market Wire",
        url=raw.get("url"),
    )
