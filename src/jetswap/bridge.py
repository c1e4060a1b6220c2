"""Bridge gate and service wiring.

Every money-movement action goes through ``BridgeService.confirm``, which is
open only while the session authority reports an active session.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import httpx

from jetswap.assistant import SupportAssistant
from jetswap.config import Settings, get_settings
from jetswap.llm import GenerativeClient
from jetswap.market.client import MarketDataClient
from jetswap.market.coinmarketcap import CoinMarketCapProvider
from jetswap.phrase.audit import LinguisticAuditClient
from jetswap.phrase.pipeline import DebouncedValidator, PhrasePipeline
from jetswap.phrase.results import ValidationResult
from jetswap.session import (
    FileSessionStore,
    MemorySessionStore,
    Session,
    SessionAuthority,
    SessionStore,
)
from jetswap.utils.governor import RequestGovernor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferRequest:
    """A cross-chain transfer the user wants to confirm."""

    amount: Decimal
    source_token: str
    dest_token: str
    source_chain: str
    dest_chain: str

    @property
    def route(self) -> str:
        return f"{self.source_chain} → {self.dest_chain}"


class GateDecision(str, Enum):
    ALLOWED = "allowed"
    AUTHORIZATION_REQUIRED = "authorization_required"


@dataclass
class BridgeService:
    """Orchestrates phrase validation, the session and the confirm gate."""

    pipeline: PhrasePipeline
    sessions: SessionAuthority
    market: MarketDataClient
    assistant: SupportAssistant
    debounce_seconds: float = 0.5
    pending: Optional[TransferRequest] = field(default=None, init=False)

    def validator(
        self, on_result: Optional[Callable[[ValidationResult], None]] = None
    ) -> DebouncedValidator:
        """Create a debounced validator for one phrase input."""
        return DebouncedValidator(self.pipeline, delay=self.debounce_seconds, on_result=on_result)

    async def authorize_phrase(self, text: str) -> ValidationResult:
        """Validate ``text`` once and open a session if it passes.

        Returns:
            The validation result; a session exists iff ``result.valid``
        """
        result = await self.pipeline.validate(text)
        if result.valid:
            self.sessions.authorize(result, text)
        else:
            logger.info(f"Authorization refused: {result.error_kind.value if result.error_kind else 'empty'}")
        return result

    def connect_wallet(self, wallet_name: str) -> Session:
        return self.sessions.connect_wallet(wallet_name)

    def confirm(self, transfer: TransferRequest) -> GateDecision:
        """Gate a transfer on the bridge session."""
        if self.sessions.is_active():
            self.pending = None
            logger.info(f"Transfer confirmed: {transfer.amount} {transfer.source_token} via {transfer.route}")
            return GateDecision.ALLOWED
        self.pending = transfer
        logger.info("Transfer held until the bridge session is authorized")
        return GateDecision.AUTHORIZATION_REQUIRED

    def release_pending(self) -> Optional[TransferRequest]:
        """Return and clear the held transfer once a session is active."""
        if self.pending is None or not self.sessions.is_active():
            return None
        transfer, self.pending = self.pending, None
        return transfer

    def complete_settlement(self) -> None:
        self.sessions.revoke("settlement complete")

    def logout(self) -> None:
        self.pending = None
        self.sessions.revoke("logout")


def build_services(
    settings: Optional[Settings] = None,
    store: Optional[SessionStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BridgeService:
    """Construct every service once, with separate governors per endpoint class."""
    settings = settings or get_settings()

    generator = None
    if settings.has_audit_credential:
        audit_governor = RequestGovernor(
            "audit",
            min_spacing=settings.audit_min_spacing,
            backoff_base=settings.audit_backoff_base,
            max_attempts=settings.audit_max_attempts,
        )
        generator = GenerativeClient(
            api_key=settings.audit_api_key,
            governor=audit_governor,
            model=settings.audit_model,
            base_url=settings.audit_base_url,
            timeout=settings.audit_timeout,
            transport=transport,
        )
    else:
        logger.warning("AUDIT_API_KEY not set - phrase audit runs in offline mode")

    providers = []
    if settings.has_market_credential:
        # One governor per tier: a timed-out direct call keeps its own slot
        # until it finishes and must not hold up the relay tier.
        for tier, relay in (("direct", None), ("relay", settings.cmc_relay_url or None)):
            if tier == "relay" and relay is None:
                continue
            governor = RequestGovernor(
                f"market-{tier}",
                min_spacing=settings.market_min_spacing,
                backoff_base=settings.market_backoff_base,
                max_attempts=settings.market_max_attempts,
            )
            providers.append(
                CoinMarketCapProvider(
                    api_key=settings.cmc_api_key,
                    governor=governor,
                    base_url=settings.cmc_base_url,
                    relay_url=relay,
                    timeout=settings.market_tier_timeout,
                    transport=transport,
                )
            )
    else:
        logger.warning("CMC_API_KEY not set - market data served from seed values")

    if store is None:
        if settings.session_store_path:
            store = FileSessionStore(Path(settings.session_store_path))
        else:
            store = MemorySessionStore()

    pipeline = PhrasePipeline(
        auditor=LinguisticAuditClient(generator),
        verdict_ttl=settings.audit_cache_ttl,
    )
    sessions = SessionAuthority(
        store=store,
        ttl=settings.session_ttl_seconds,
        tick_interval=settings.session_tick_seconds,
    )
    market = MarketDataClient(
        providers=providers,
        tier_timeout=settings.market_tier_timeout,
        cache_ttl=settings.market_cache_ttl,
        stale_ttl=settings.market_stale_ttl,
    )
    return BridgeService(
        pipeline=pipeline,
        sessions=sessions,
        market=market,
        assistant=SupportAssistant(generator),
        debounce_seconds=settings.debounce_seconds,
    )
