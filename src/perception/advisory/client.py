"""AdvisoryClient — one-sentence tactical advice from the xAI chat API.

Requests are on demand, never per frame.  ``analyze()`` snapshots the
simulation context, builds a telemetry prompt and schedules the request
as an ``asyncio.Task`` on the running loop, so the caller gets an
explicit handle it can await or cancel while the clock keeps ticking.

Every failure mode (transport error, timeout, non-2xx status, bad JSON,
missing ``choices[0].message.content``, no credential) collapses into
:class:`AdvisoryUnavailable` inside the client and is converted at the
``request()`` boundary into the local fallback advisory plus a single
WARN event.  Nothing is retried.

The bearer credential comes from configuration and is never logged.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

import httpx
from loguru import logger

from perception.comms.event_log import EventLog, LogLevel

if TYPE_CHECKING:
    from perception.simulation.context import SimulationContext

XAI_API_URL = "https://api.x.ai/v1/chat/completions"
DEFAULT_MODEL = "grok-4"

FALLBACK_ADVISORY = "Reduce speed."
OFFLINE_MESSAGE = "xAI offline - local safety: SLOW DOWN"


class AdvisoryUnavailable(Exception):
    """The reasoning service could not produce an advisory."""


class SpeechSink(Protocol):
    def speak(self, text: str) -> None: ...


def build_prompt(speed: float, hazard_types: list[str]) -> str:
    return (
        f"Telemetry: speed {int(speed)} km/h, hazards {', '.join(hazard_types)}. "
        "One-sentence tactical advice."
    )


def prompt_from_context(ctx: SimulationContext, threshold: float = 0.7) -> str:
    """Build the telemetry prompt from the entities currently above *threshold*."""
    hazards = [e.type.value for e in ctx.entities if e.hazard_score > threshold]
    return build_prompt(ctx.ego_speed, hazards)


def extract_content(payload: object) -> str:
    """Pull ``choices[0].message.content`` out of a chat-completions body."""
    try:
        content = payload["choices"][0]["message"]["content"]  # type: ignore[index]
    except (KeyError, IndexError, TypeError) as e:
        raise AdvisoryUnavailable(f"malformed response: missing {e}") from e
    if not isinstance(content, str) or not content.strip():
        raise AdvisoryUnavailable("malformed response: empty content")
    return content.strip()


class AdvisoryClient:
    """Queries the reasoning service and records the outcome."""

    def __init__(
        self,
        event_log: EventLog,
        speaker: SpeechSink | None = None,
        api_key: str | None = None,
        api_url: str = XAI_API_URL,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 100,
        timeout: float | None = 10.0,
        hazard_threshold: float = 0.7,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._event_log = event_log
        self._speaker = speaker
        self._api_key = api_key
        self.api_url = api_url
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.hazard_threshold = hazard_threshold
        self._transport = transport
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
        }

    async def _call_service(self, prompt: str) -> str:
        """POST *prompt* and return the advisory text or raise AdvisoryUnavailable."""
        if not self._api_key:
            raise AdvisoryUnavailable("no API key configured")

        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            try:
                resp = await client.post(
                    self.api_url,
                    json=self.payload(prompt),
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise AdvisoryUnavailable(f"HTTP {e.response.status_code}") from e
            except httpx.HTTPError as e:
                raise AdvisoryUnavailable(f"{type(e).__name__}: {e}") from e
            except (httpx.InvalidURL, UnicodeError, ValueError) as e:
                # Request could not be built; the message may echo header bytes
                raise AdvisoryUnavailable(f"invalid request: {type(e).__name__}") from e

        try:
            body = resp.json()
        except ValueError as e:
            raise AdvisoryUnavailable("response is not JSON") from e
        return extract_content(body)

    async def request(self, prompt: str) -> str:
        """Return an advisory for *prompt*; falls back locally on any failure."""
        try:
            if self.timeout is None:
                text = await self._call_service(prompt)
            else:
                text = await asyncio.wait_for(self._call_service(prompt), self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Advisory request timed out after {self.timeout}s")
            return self._fallback()
        except AdvisoryUnavailable as e:
            logger.warning(f"Advisory service unavailable: {e}")
            return self._fallback()

        if self._speaker is not None:
            self._speaker.speak(text)
        self._event_log.append(text, LogLevel.INFO)
        return text

    def _fallback(self) -> str:
        self._event_log.append(OFFLINE_MESSAGE, LogLevel.WARN)
        return FALLBACK_ADVISORY

    def analyze(self, ctx: SimulationContext) -> asyncio.Task[str]:
        """Schedule an advisory for the current scene; must run inside an event loop."""
        prompt = prompt_from_context(ctx, self.hazard_threshold)
        task = asyncio.get_running_loop().create_task(self.request(prompt))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task
