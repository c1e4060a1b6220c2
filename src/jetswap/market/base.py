"""Abstract market data interface."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class QuoteSnapshot:
    """USD price of one asset."""

    symbol: str
    price: Decimal
    percent_change_24h: Decimal
    source: str  # provider name, "cache" or "seed"
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class NewsItem:
    """One entry of the market news feed."""

    id: str
    title: str
    summary: str
    full_text: str
    category: str = "Market News"
    published: str = "Recently"
    image: Optional[str] = None
    source: str = "Global Market Wire"
    url: Optional[str] = None
    trending: bool = False
    important: bool = False


class MarketDataUnavailable(Exception):
    """Raised by a provider when it cannot answer."""

    pass


class MarketDataProvider(ABC):
    """Abstract base class for remote market data providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        pass

    @abstractmethod
    async def get_quotes(self, symbols: list[str]) -> dict[str, QuoteSnapshot]:
        """
        Get latest USD quotes.

        Args:
            symbols: Upper-case ticker symbols

        Returns:
            Quotes for the symbols the provider knows (may be partial)

        Raises:
            MarketDataUnavailable: the provider could not answer
        """
        pass

    @abstractmethod
    async def get_feed(self, limit: int = 10) -> list[NewsItem]:
        """
        Get the latest news items.

        Raises:
            MarketDataUnavailable: the provider could not answer
        """
        pass
