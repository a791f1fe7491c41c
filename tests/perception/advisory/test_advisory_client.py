"""Unit tests for AdvisoryClient — reasoning-service requests and fallback.

The xAI endpoint is never contacted: every test routes the client's
httpx.AsyncClient through an httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from loguru import logger

from perception.advisory.client import (
    FALLBACK_ADVISORY,
    OFFLINE_MESSAGE,
    AdvisoryClient,
    AdvisoryUnavailable,
    build_prompt,
    extract_content,
    prompt_from_context,
)
from perception.advisory.speaker import NullSpeaker
from perception.comms.event_log import EventLog, LogLevel
from perception.simulation.context import SimulationContext
from perception.simulation.entity import Entity, EntityType

pytestmark = pytest.mark.unit

_API_KEY = "xai-test-secret"


def _ok(content: str = "Brake for the boulder ahead.") -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _make_client(handler, api_key: str | None = _API_KEY, **kwargs):
    log = EventLog()
    speaker = NullSpeaker()
    client = AdvisoryClient(
        event_log=log,
        speaker=speaker,
        api_key=api_key,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )
    return client, log, speaker


def _levels(log: EventLog) -> list[LogLevel]:
    return [e.level for e in log.entries()]


class TestPrompt:

    def test_build_prompt(self):
        assert build_prompt(56.9, ["BOULDER", "CLIFF_EDGE"]) == (
            "Telemetry: speed 56 km/h, hazards BOULDER, CLIFF_EDGE. "
            "One-sentence tactical advice."
        )

    def test_no_hazards(self):
        assert build_prompt(0, []) == (
            "Telemetry: speed 0 km/h, hazards . One-sentence tactical advice."
        )

    def test_prompt_from_context_uses_threshold(self):
        ctx = SimulationContext(ego_speed=72.4)
        ctx.entities.add(Entity(id=1, type=EntityType.BOULDER, x=0, z=50, hazard_score=0.95))
        ctx.entities.add(Entity(id=2, type=EntityType.LOG, x=0, z=50, hazard_score=0.7))
        ctx.entities.add(Entity(id=3, type=EntityType.WATERFALL, x=0, z=50, hazard_score=0.9))
        prompt = prompt_from_context(ctx)
        assert "speed 72 km/h" in prompt
        assert "hazards BOULDER, WATERFALL." in prompt
        assert "LOG" not in prompt


class TestExtractContent:

    def test_happy_path(self):
        assert extract_content(_ok("  Hold lane.  ")) == "Hold lane."

    @pytest.mark.parametrize("body", [
        {},
        {"choices": []},
        {"choices": [{}]},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": ""}}]},
        {"choices": [{"message": {"content": 42}}]},
        [],
        None,
    ])
    def test_malformed(self, body):
        with pytest.raises(AdvisoryUnavailable):
            extract_content(body)


class TestSuccess:

    def test_returns_logs_and_speaks(self):
        client, log, speaker = _make_client(lambda req: httpx.Response(200, json=_ok()))
        text = asyncio.run(client.request("prompt"))
        assert text == "Brake for the boulder ahead."
        assert speaker.spoken == [text]
        assert _levels(log) == [LogLevel.INFO]
        assert log.entries()[0].message == text

    def test_request_shape(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_ok())

        client, _, _ = _make_client(handler, model="grok-4", max_tokens=100)
        asyncio.run(client.request("Telemetry: test"))
        req = seen[0]
        assert req.method == "POST"
        assert str(req.url) == "https://api.x.ai/v1/chat/completions"
        assert req.headers["authorization"] == f"Bearer {_API_KEY}"
        body = json.loads(req.content)
        assert body == {
            "model": "grok-4",
            "messages": [{"role": "user", "content": "Telemetry: test"}],
            "max_tokens": 100,
        }

    def test_works_without_speaker(self):
        log = EventLog()
        client = AdvisoryClient(
            log, api_key=_API_KEY,
            transport=httpx.MockTransport(lambda req: httpx.Response(200, json=_ok("Go."))),
        )
        assert asyncio.run(client.request("p")) == "Go."


class TestFailure:

    def _assert_fallback(self, client, log, speaker):
        assert asyncio.run(client.request("prompt")) == FALLBACK_ADVISORY
        assert _levels(log) == [LogLevel.WARN]
        assert log.entries()[0].message == OFFLINE_MESSAGE
        assert speaker.spoken == []

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        self._assert_fallback(*_make_client(handler))

    def test_server_error(self):
        self._assert_fallback(*_make_client(lambda req: httpx.Response(500, text="boom")))

    def test_unauthorized(self):
        self._assert_fallback(*_make_client(lambda req: httpx.Response(401, json={"error": "nope"})))

    def test_not_json(self):
        self._assert_fallback(*_make_client(lambda req: httpx.Response(200, text="<html>")))

    def test_missing_choices(self):
        self._assert_fallback(*_make_client(lambda req: httpx.Response(200, json={"id": "x"})))

    def test_missing_api_key_skips_request(self):
        calls: list[httpx.Request] = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=_ok())

        self._assert_fallback(*_make_client(handler, api_key=None))
        assert calls == []

    def test_non_ascii_api_key(self):
        calls: list[httpx.Request] = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=_ok())

        messages: list[str] = []
        sink_id = logger.add(lambda m: messages.append(str(m)), level="DEBUG")
        try:
            self._assert_fallback(*_make_client(handler, api_key="clé-secrète"))
        finally:
            logger.remove(sink_id)
        assert calls == []
        assert not any("clé-secrète" in m for m in messages)

    def test_timeout(self):
        async def slow(request):
            await asyncio.sleep(1.0)
            return httpx.Response(200, json=_ok())

        self._assert_fallback(*_make_client(slow, timeout=0.05))

    def test_no_retry(self):
        calls: list[httpx.Request] = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        client, log, _ = _make_client(handler)
        asyncio.run(client.request("p"))
        assert len(calls) == 1

    def test_api_key_never_logged(self):
        messages: list[str] = []
        sink_id = logger.add(lambda m: messages.append(str(m)), level="DEBUG")
        try:
            client, _, _ = _make_client(lambda req: httpx.Response(403, text=_API_KEY))
            asyncio.run(client.request("p"))
        finally:
            logger.remove(sink_id)
        assert messages
        assert not any(_API_KEY in m for m in messages)


class TestAnalyze:

    def test_returns_awaitable_task(self):
        client, log, _ = _make_client(lambda req: httpx.Response(200, json=_ok("Steady.")))
        ctx = SimulationContext(event_log=log)

        async def _drive():
            task = client.analyze(ctx)
            assert isinstance(task, asyncio.Task)
            assert client.pending == 1
            result = await task
            await asyncio.sleep(0)
            return result

        assert asyncio.run(_drive()) == "Steady."
        assert client.pending == 0

    def test_cancel_leaves_no_log(self):
        async def slow(request):
            await asyncio.sleep(1.0)
            return httpx.Response(200, json=_ok())

        client, log, speaker = _make_client(slow, timeout=None)

        async def _drive():
            task = client.analyze(SimulationContext())
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(_drive())
        assert len(log) == 0
        assert speaker.spoken == []

    def test_requires_running_loop(self):
        client, _, _ = _make_client(lambda req: httpx.Response(200, json=_ok()))
        with pytest.raises(RuntimeError):
            client.analyze(SimulationContext())
