"""Static seed data, the last tier of the market data fallback chain.

Approximate values for display only; never used for pricing a transfer.
"""

from decimal import Decimal

from jetswap.market.base import NewsItem

SEED_PRICES: dict[str, Decimal] = {
    "ETH": Decimal("3900.00"),
    "BNB": Decimal("710.00"),
    "SOL": Decimal("225.00"),
    "TRX": Decimal("0.27"),
    "AVAX": Decimal("52.00"),
    "TON": Decimal("6.80"),
    "CRO": Decimal("0.18"),
    "ARB": Decimal("1.05"),
    "MATIC": Decimal("0.62"),
    "GNO": Decimal("330.00"),
    "OP": Decimal("2.40"),
    "USDC": Decimal("1.00"),
    "USDT": Decimal("1.00"),
    "BTC": Decimal("100000.00"),
}

DEFAULT_NEWS_IMAGE = (
    "https://images.unsplash.com/photo-1639762681485-074b7f938ba0"
    "?auto=format&fit=crop&q=80&w=600"
)

SEED_NEWS: list[NewsItem] = [
    NewsItem(
        id="seed-news-1",
        title="Jet Swap V2.5 Synchronization Complete",
        summary="The cross-chain network has achieved sub-second latency across 12 major protocols.",
        full_text="Jet Swap v2.5 introduces assisted routing and liquidity audits for all active routes.",
        category="Platform Updates",
        published="Jan 2026",
        image=DEFAULT_NEWS_IMAGE,
        source="Jet Internal",
        trending=True,
        important=True,
    ),
    NewsItem(
        id="seed-news-2",
        title="Arbitrum Network Liquidity Surge",
        summary="Institutional adoption on Arbitrum reaches record highs as bridging costs decrease.",
        full_text="Market data indicates a 15% increase in total value locked (TVL) on L2 scaling solutions.",
        category="Market News",
        published="Jan 2026",
        image="https://images.unsplash.com/photo-1621761191319-c6fb62004009?auto=format&fit=crop&q=80&w=600",
        source="Jet Internal",
    ),
]
