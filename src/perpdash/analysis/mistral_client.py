"""Mistral chat-completions client over httpx, with SSE streaming.

The streaming endpoint answers with server-sent events:
    data: {"choices": [{"delta": {"content": "..."}}], ...}
    data: [DONE]
"""

import json
from collections.abc import AsyncIterator

import httpx

from perpdash.config import AnalysisSettings
from perpdash.exceptions import AnalysisUnavailableError
from perpdash.logging import get_logger

logger = get_logger(__name__)

_DONE = "[DONE]"


def parse_sse_line(line: str) -> str | None:
    """Extract the content delta from one SSE line, or None.

    Blank lines, comments, the [DONE] marker and events without content
    all yield None.
    """
    if not line.startswith("data:"):
        return None
    payload = line[len("data:"):].strip()
    if not payload or payload == _DONE:
        return None
    try:
        event = json.loads(payload)
    except ValueError:
        logger.debug("sse_unparseable_event", payload=payload[:200])
        return None
    choices = event.get("choices") or []
    if not choices:
        return None
    content = (choices[0].get("delta") or {}).get("content")
    return content or None


class MistralClient:
    """Async client for the Mistral chat-completions API.

    Args:
        settings: API key, base URL and timeout.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        settings: AnalysisSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.api_key.get_secret_value())

    def _get_client(self) -> httpx.AsyncClient:
        if not self.is_configured:
            raise AnalysisUnavailableError(
                "MISTRAL_API_KEY is not set; analysis is unavailable"
            )
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._settings.base_url,
                headers={
                    "Authorization": f"Bearer {self._settings.api_key.get_secret_value()}",
                    "Accept": "application/json",
                },
                timeout=self._settings.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def stream_chat(
        self, messages: list[dict[str, str]], model: str
    ) -> AsyncIterator[str]:
        """Yield content deltas as the model produces them.

        Raises:
            AnalysisUnavailableError: No API key, transport failure or a
                non-2xx response.
        """
        client = self._get_client()
        body = {"model": model, "messages": messages, "stream": True}
        try:
            async with client.stream("POST", "/chat/completions", json=body) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise AnalysisUnavailableError(
                        f"Mistral returned {response.status_code}: {response.text[:200]}"
                    )
                async for line in response.aiter_lines():
                    delta = parse_sse_line(line)
                    if delta is not None:
                        yield delta
        except httpx.HTTPError as e:
            raise AnalysisUnavailableError(f"Mistral request failed: {e}") from e
