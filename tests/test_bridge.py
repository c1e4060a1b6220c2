"""Tests for the bridge gate, service wiring, settings and the HTTP API."""

import json
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio

from jetswap.api.app import create_app
from jetswap.bridge import BridgeService, GateDecision, TransferRequest, build_services
from jetswap.config import Settings, get_settings
from jetswap.phrase.results import ErrorKind, ValidationSource
from jetswap.session import MemorySessionStore, SessionState

VALID_PHRASE = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)

TRANSFER = TransferRequest(
    amount=Decimal("1.5"),
    source_token="ETH",
    dest_token="BNB",
    source_chain="Ethereum",
    dest_chain="BNB Chain",
)


def offline_settings(**overrides) -> Settings:
    return Settings(**{"_env_file": None, "audit_api_key": None, "cmc_api_key": "", **overrides})


@pytest.fixture
def services() -> BridgeService:
    return build_services(offline_settings(), store=MemorySessionStore())


class TestSettings:
    """Configuration defaults and credential checks."""

    def test_defaults(self):
        settings = offline_settings()

        assert settings.session_ttl_seconds == 1500
        assert settings.audit_min_spacing == 5.0
        assert settings.has_audit_credential is False
        assert settings.has_market_credential is False

    def test_placeholder_key_is_not_a_credential(self):
        assert offline_settings(audit_api_key="YOUR_GEMINI_API_KEY_HERE").has_audit_credential is False
        assert offline_settings(audit_api_key="short").has_audit_credential is False
        assert offline_settings(audit_api_key="a-real-looking-key").has_audit_credential is True

    def test_safe_dict_redacts_secrets(self):
        safe = offline_settings(audit_api_key="a-real-looking-key", cmc_api_key="cmc").get_safe_dict()

        assert safe["audit"]["api_key"] == "***"
        assert safe["market"]["api_key"] == "***"
        assert "a-real-looking-key" not in json.dumps(safe)

    def test_environment_is_read(self, monkeypatch):
        monkeypatch.setenv("SESSION_TTL_SECONDS", "60")
        assert get_settings().session_ttl_seconds == 60


class TestBridgeGate:
    """Confirm is gated on the session."""

    @pytest.mark.asyncio
    async def test_valid_phrase_opens_session(self, services):
        result = await services.authorize_phrase(VALID_PHRASE)

        assert result.valid is True
        assert result.source is ValidationSource.OFFLINE
        assert services.sessions.is_active() is True
        assert services.confirm(TRANSFER) is GateDecision.ALLOWED
        services.logout()

    @pytest.mark.asyncio
    async def test_invalid_phrase_keeps_gate_closed(self, services):
        result = await services.authorize_phrase("abandon " * 11 + "abandon")

        assert result.valid is False
        assert result.error_kind is ErrorKind.CHECKSUM_ERROR
        assert services.sessions.state is SessionState.UNAUTHORIZED
        assert services.confirm(TRANSFER) is GateDecision.AUTHORIZATION_REQUIRED

    @pytest.mark.asyncio
    async def test_held_transfer_released_after_authorization(self, services):
        assert services.confirm(TRANSFER) is GateDecision.AUTHORIZATION_REQUIRED
        assert services.pending == TRANSFER
        assert services.release_pending() is None

        await services.authorize_phrase(VALID_PHRASE)

        assert services.release_pending() == TRANSFER
        assert services.pending is None
        services.logout()

    @pytest.mark.asyncio
    async def test_settlement_revokes_session(self, services):
        await services.authorize_phrase(VALID_PHRASE)
        services.confirm(TRANSFER)

        services.complete_settlement()

        assert services.sessions.state is SessionState.REVOKED
        assert services.confirm(TRANSFER) is GateDecision.AUTHORIZATION_REQUIRED

    def test_wallet_connect_opens_gate(self, services):
        services.connect_wallet("MetaMask")
        assert services.confirm(TRANSFER) is GateDecision.ALLOWED

    def test_logout_drops_pending(self, services):
        services.confirm(TRANSFER)
        services.logout()
        assert services.pending is None

    def test_route_label(self):
        assert TRANSFER.route == "Ethereum → BNB Chain"


class TestRemoteWiring:
    """Services built with credentials talk to the configured endpoints."""

    def test_market_tiers_have_separate_governors(self):
        services = build_services(offline_settings(cmc_api_key="cmc-key"), store=MemorySessionStore())
        direct, relay = services.market.providers

        assert (direct.name, relay.name) == ("coinmarketcap", "coinmarketcap-relay")
        assert direct.governor is not relay.governor

    def test_relay_tier_skipped_without_relay_url(self):
        settings = offline_settings(cmc_api_key="cmc-key", cmc_relay_url="")
        services = build_services(settings, store=MemorySessionStore())

        assert [p.name for p in services.market.providers] == ["coinmarketcap"]

    @pytest.mark.asyncio
    async def test_remote_audit_and_market(self):
        hosts = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(request.url.host)
            if request.url.host == "generativelanguage.googleapis.com":
                text = json.dumps({"valid": True, "valid_count": 12, "invalid_words": []})
                return httpx.Response(
                    200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]}
                )
            return httpx.Response(
                200,
                json={
                    "status": {"error_code": 0},
                    "data": {"ETH": {"quote": {"USD": {"price": 3000, "percent_change_24h": 1}}}},
                },
            )

        settings = offline_settings(audit_api_key="a-real-looking-key", cmc_api_key="cmc-key")
        services = build_services(settings, store=MemorySessionStore(), transport=httpx.MockTransport(handler))

        result = await services.authorize_phrase(VALID_PHRASE)
        quotes = await services.market.get_quotes(["ETH"])

        assert result.source is ValidationSource.REMOTE
        assert quotes["ETH"].source == "coinmarketcap"
        assert hosts == ["generativelanguage.googleapis.com", "pro-api.coinmarketcap.com"]
        services.logout()


@pytest_asyncio.fixture
async def api_client(services):
    app = create_app(services)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestAPI:
    """HTTP surface."""

    @pytest.mark.asyncio
    async def test_health(self, api_client):
        response = await api_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_detailed_health_hides_secrets(self, api_client):
        response = await api_client.get("/health/detailed")

        assert response.status_code == 200
        assert response.json()["config"]["audit"]["mode"] == "offline"

    @pytest.mark.asyncio
    async def test_detailed_health_reports_components(self, api_client, services):
        services.connect_wallet("MetaMask")
        response = await api_client.get("/health/detailed")

        components = response.json()["components"]
        assert components["audit"] == "offline"
        assert components["market"] == "seed-only"
        assert components["session"]["state"] == "authorized"
        services.logout()

    @pytest.mark.asyncio
    async def test_quotes_fall_back_to_seed(self, api_client):
        response = await api_client.get("/api/v1/market/quotes", params={"symbols": "eth,FOO"})

        data = response.json()
        assert response.status_code == 200
        assert data["success"] is True
        assert data["quotes"]["ETH"]["source"] == "seed"
        assert data["missing"] == ["FOO"]

    @pytest.mark.asyncio
    async def test_quotes_all_unknown(self, api_client):
        response = await api_client.get("/api/v1/market/quotes", params={"symbols": "FOO"})

        data = response.json()
        assert data["success"] is False
        assert data["quotes"] == {}

    @pytest.mark.asyncio
    async def test_feed(self, api_client):
        response = await api_client.get("/api/v1/market/feed", params={"limit": 1})

        assert response.status_code == 200
        assert len(response.json()["items"]) == 1

    @pytest.mark.asyncio
    async def test_session_status_and_logout(self, api_client, services):
        response = await api_client.get("/api/v1/session")
        assert response.json()["active"] is False

        services.connect_wallet("MetaMask")
        response = await api_client.get("/api/v1/session")
        data = response.json()
        assert data["active"] is True
        assert data["state"] == "authorized"
        assert 0 < data["remaining_seconds"] <= 1500
        assert "fingerprint" not in data

        response = await api_client.delete("/api/v1/session")
        data = response.json()
        assert data["active"] is False
        assert data["state"] == "revoked"

    @pytest.mark.asyncio
    async def test_no_endpoint_accepts_a_phrase(self, api_client):
        response = await api_client.post("/api/v1/session", json={"phrase": VALID_PHRASE})
        assert response.status_code == 405
