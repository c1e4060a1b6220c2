"""Market data endpoints."""

from fastapi import APIRouter, Depends, Query

from jetswap.api.contracts import FeedResponse, NewsOut, QuoteOut, QuotesResponse
from jetswap.api.deps import get_services
from jetswap.bridge import BridgeService

router = APIRouter(prefix="/market")


@router.get("/quotes", response_model=QuotesResponse)
async def get_quotes(
    symbols: str = Query(..., description="Comma-separated ticker symbols"),
    services: BridgeService = Depends(get_services),
) -> QuotesResponse:
    """Get USD quotes.

    Always answers; symbols no source could price are listed in ``missing``.
    """
    requested = [s.strip().upper() for s in symbols.split(",") if s.strip()]
    quotes = await services.market.get_quotes(requested)
    return QuotesResponse(
        success=bool(quotes),
        quotes={
            s: QuoteOut(
                symbol=q.symbol,
                price=q.price,
                percent_change_24h=q.percent_change_24h,
                source=q.source,
            )
            for s, q in quotes.items()
        },
        missing=[s for s in dict.fromkeys(requested) if s not in quotes],
    )


@router.get("/feed", response_model=FeedResponse)
async def get_feed(
    limit: int = Query(10, ge=1, le=50),
    services: BridgeService = Depends(get_services),
) -> FeedResponse:
    """Get the latest market news."""
    items = await services.market.get_feed(limit)
    return FeedResponse(
        items=[
            NewsOut(
                id=i.id,
                title=i.title,
                summary=i.summary,
                full_text=i.full_text,
                category=i.category,
                published=i.published,
                image=i.image,
                source=i.source,
                url=i.url,
            )
            for i in items
        ]
    )
