"""Response contracts for the HTTP API."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class QuoteOut(BaseModel):
    """One USD quote."""

    symbol: str
    price: Decimal
    percent_change_24h: Decimal
    source: str = Field(..., description="Provider name, 'cache' or 'seed'")


class QuotesResponse(BaseModel):
    success: bool
    quotes: dict[str, QuoteOut] = Field(default_factory=dict)
    missing: list[str] = Field(default_factory=list)


class NewsOut(BaseModel):
    id: str
    title: str
    summary: str
    full_text: str
    category: str
    published: str
    image: Optional[str] = None
    source: str
    url: Optional[str] = None


class FeedResponse(BaseModel):
    items: list[NewsOut] = Field(default_factory=list)


class SessionStatus(BaseModel):
    """Observable session state. The fingerprint is never exposed."""

    active: bool
    state: str
    expires_at: Optional[float] = Field(None, description="Epoch seconds")
    remaining_seconds: Optional[float] = None
