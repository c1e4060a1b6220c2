"""Tests for the linguistic audit client and its response parsing."""

import json

import httpx
import pytest

from jetswap.assistant import FAILURE_REPLY, OFFLINE_REPLY, SupportAssistant
from jetswap.llm import GenerativeClient
from jetswap.phrase.audit import LinguisticAuditClient, Parsed, Unparsable, extract_json
from jetswap.phrase.results import ErrorKind, ValidationSource
from jetswap.utils.governor import RequestGovernor

PHRASE = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)


def gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def make_client(handler, clock, max_attempts=3) -> LinguisticAuditClient:
    governor = RequestGovernor(
        "audit", min_spacing=5.0, backoff_base=4.0, max_attempts=max_attempts,
        clock=clock, sleep=clock.sleep,
    )
    generator = GenerativeClient(
        api_key="test-key-123456",
        governor=governor,
        transport=httpx.MockTransport(handler),
    )
    return LinguisticAuditClient(generator)


class TestExtractJson:
    """Defensive JSON extraction."""

    def test_plain_json(self):
        assert extract_json('{"valid": true}') == Parsed({"valid": True})

    def test_json_wrapped_in_commentary(self):
        text = 'Here is the audit:\n```json\n{"valid": false, "valid_count": 3}\n```\nDone.'
        assert extract_json(text) == Parsed({"valid": False, "valid_count": 3})

    def test_no_object(self):
        assert isinstance(extract_json("I cannot help with that."), Unparsable)

    def test_broken_object(self):
        result = extract_json('{"valid": true,')
        assert isinstance(result, Unparsable)

    def test_array_is_not_an_object(self):
        assert isinstance(extract_json("[1, 2, 3]"), Unparsable)


class TestOfflineMode:
    """No credential configured."""

    @pytest.mark.asyncio
    async def test_offline_approves_twelve_words(self):
        verdict = await LinguisticAuditClient().audit(PHRASE)

        assert verdict.valid is True
        assert verdict.word_count == 12
        assert verdict.source is ValidationSource.OFFLINE
        assert LinguisticAuditClient().enabled is False

    @pytest.mark.asyncio
    async def test_offline_rejects_short_phrase(self):
        verdict = await LinguisticAuditClient().audit("abandon about")
        assert verdict.valid is False

    @pytest.mark.asyncio
    async def test_empty_phrase(self):
        verdict = await LinguisticAuditClient().audit("")
        assert verdict.valid is False
        assert verdict.word_count == 0


class TestRemoteAudit:
    """Remote verdicts through a mocked transport."""

    @pytest.mark.asyncio
    async def test_valid_verdict(self, clock):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            payload = {"valid": True, "valid_count": 12, "invalid_words": []}
            return httpx.Response(200, json=gemini_body(json.dumps(payload)))

        verdict = await make_client(handler, clock).audit(PHRASE)

        assert verdict.valid is True
        assert verdict.source is ValidationSource.REMOTE
        assert verdict.error_kind is None

        sent = json.loads(requests[0].content)
        assert requests[0].url.path.endswith("/models/gemini-1.5-flash:generateContent")
        assert requests[0].headers["x-goog-api-key"] == "test-key-123456"
        assert sent["generationConfig"]["responseMimeType"] == "application/json"
        assert sent["generationConfig"]["temperature"] == 0
        assert "valid_count" in sent["generationConfig"]["responseSchema"]["properties"]

    @pytest.mark.asyncio
    async def test_verdict_inside_commentary(self, clock):
        def handler(request):
            text = 'Audit complete. {"valid": true, "valid_count": 12, "invalid_words": []} Stay safe!'
            return httpx.Response(200, json=gemini_body(text))

        verdict = await make_client(handler, clock).audit(PHRASE)
        assert verdict.valid is True

    @pytest.mark.asyncio
    async def test_low_count_is_rejected(self, clock):
        def handler(request):
            payload = {"valid": True, "valid_count": 11, "invalid_words": ["ABOUT"]}
            return httpx.Response(200, json=gemini_body(json.dumps(payload)))

        verdict = await make_client(handler, clock).audit(PHRASE)

        assert verdict.valid is False
        assert verdict.error_kind is ErrorKind.AUDIT_REJECTED
        assert verdict.invalid_words == ("about",)
        assert verdict.is_failure is False

    @pytest.mark.asyncio
    async def test_unparsable_text_is_malformed(self, clock):
        def handler(request):
            return httpx.Response(200, json=gemini_body("The phrase looks fine to me."))

        verdict = await make_client(handler, clock).audit(PHRASE)

        assert verdict.valid is False
        assert verdict.error_kind is ErrorKind.MALFORMED_REMOTE_RESPONSE

    @pytest.mark.asyncio
    async def test_wrong_shape_is_malformed(self, clock):
        def handler(request):
            payload = {"valid": "yes", "valid_count": 12}
            return httpx.Response(200, json=gemini_body(json.dumps(payload)))

        verdict = await make_client(handler, clock).audit(PHRASE)
        assert verdict.error_kind is ErrorKind.MALFORMED_REMOTE_RESPONSE

    @pytest.mark.asyncio
    async def test_empty_envelope_is_malformed(self, clock):
        def handler(request):
            return httpx.Response(200, json={"candidates": []})

        verdict = await make_client(handler, clock).audit(PHRASE)
        assert verdict.error_kind is ErrorKind.MALFORMED_REMOTE_RESPONSE

    @pytest.mark.asyncio
    async def test_throttled_then_success(self, clock):
        calls = 0

        def handler(request):
            nonlocal calls
            calls += 1
            if calls < 3:
                return httpx.Response(429, json={"error": {"status": "RESOURCE_EXHAUSTED"}})
            payload = {"valid": True, "valid_count": 12, "invalid_words": []}
            return httpx.Response(200, json=gemini_body(json.dumps(payload)))

        verdict = await make_client(handler, clock).audit(PHRASE)

        assert verdict.valid is True
        assert calls == 3
        assert 4.0 in clock.sleeps and 8.0 in clock.sleeps

    @pytest.mark.asyncio
    async def test_throttled_out(self, clock):
        def handler(request):
            return httpx.Response(429)

        verdict = await make_client(handler, clock).audit(PHRASE)

        assert verdict.valid is False
        assert verdict.error_kind is ErrorKind.THROTTLED_RETRY_EXHAUSTED
        assert verdict.is_failure is True

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self, clock):
        def handler(request):
            return httpx.Response(503, text="unavailable")

        verdict = await make_client(handler, clock).audit(PHRASE)
        assert verdict.error_kind is ErrorKind.AUDIT_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_network_error_is_unavailable(self, clock):
        def handler(request):
            raise httpx.ConnectError("no route", request=request)

        verdict = await make_client(handler, clock).audit(PHRASE)
        assert verdict.error_kind is ErrorKind.AUDIT_UNAVAILABLE


class TestSupportAssistant:
    """Support chat sharing the audit governor."""

    async def _collect(self, assistant, message="hi"):
        return [chunk async for chunk in assistant.stream(message)]

    @pytest.mark.asyncio
    async def test_offline_reply(self):
        assert await self._collect(SupportAssistant()) == [OFFLINE_REPLY]

    @pytest.mark.asyncio
    async def test_answer_is_chunked_and_unstarred(self, clock):
        def handler(request):
            return httpx.Response(200, json=gemini_body("**Bridging** takes minutes.\n\nFees are low."))

        client = make_client(handler, clock)
        chunks = await self._collect(SupportAssistant(client.generator))

        assert chunks == ["Bridging takes minutes.", "Fees are low."]

    @pytest.mark.asyncio
    async def test_failure_reply(self, clock):
        def handler(request):
            return httpx.Response(500)

        client = make_client(handler, clock)
        assert await self._collect(SupportAssistant(client.generator)) == [FAILURE_REPLY]
