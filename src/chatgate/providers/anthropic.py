"""
Anthropic Provider Implementation

Messages API with server-sent events. System turns are lifted into the
top-level ``system`` field; ``text_delta`` events become delta events.
"""

from typing import Any, AsyncIterator, Dict, Sequence, Tuple

import httpx

from chatgate.models import ChatMessage, MessageRole
from .base import BaseProvider, UpstreamError
from .streaming import DONE_EVENT, format_delta, parse_event, sse_data

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(BaseProvider):
    """Anthropic Claude models"""
    name = "anthropic"
    cost = "paid"
    api_key_env = "ANTHROPIC_API_KEY"
    default_model = "claude-3-5-haiku-latest"
    default_base_url = "https://api.anthropic.com/v1"

    def build_request(self, messages: Sequence[ChatMessage]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        headers = {
            "x-api-key": self.api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }
        system_prompt = "\n\n".join(m.content for m in messages if m.role == MessageRole.SYSTEM)
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_wire() for m in messages if m.role != MessageRole.SYSTEM],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": True,
        }
        if system_prompt:
            payload["system"] = system_prompt
        return f"{self.base_url}/messages", headers, payload

    async def transform(self, response: httpx.Response) -> AsyncIterator[bytes]:
        async for line in response.aiter_lines():
            data = sse_data(line)
            if not data:
                continue
            event = parse_event(data, self.name)
            if event is None:
                continue

            event_type = event.get("type")
            if event_type == "content_block_delta":
                text = (event.get("delta") or {}).get("text")
                if text:
                    yield format_delta(text)
            elif event_type == "error":
                error = event.get("error") or {}
                message = error.get("message") or "stream error"
                raise UpstreamError(
                    f"{self.name} stream error: {error.get('type', 'error')} - {message}",
                    self.name,
                    body=data,
                )
            elif event_type == "message_stop":
                yield DONE_EVENT
                return
