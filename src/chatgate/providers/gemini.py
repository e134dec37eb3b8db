"""
Gemini Provider Implementation

Calls ``streamGenerateContent`` in SSE mode and translates candidate parts
into delta events.
"""

from typing import Any, AsyncIterator, Dict, Sequence, Tuple

import httpx

from chatgate.models import ChatMessage, MessageRole
from .base import BaseProvider
from .streaming import DONE_EVENT, format_delta, parse_event, sse_data

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class GeminiProvider(BaseProvider):
    """Google Gemini"""
    name = "gemini"
    cost = "free (with limits)"
    api_key_env = "GEMINI_API_KEY"
    default_model = "gemini-1.5-flash"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"

    def build_request(self, messages: Sequence[ChatMessage]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        url = f"{self.base_url}/models/{self.model}:streamGenerateContent?alt=sse"
        headers = {
            "x-goog-api-key": self.api_key or "",
            "Content-Type": "application/json",
        }
        payload = {
            "contents": [
                {
                    # Gemini only knows user and model turns
                    "role": "model" if message.role == MessageRole.ASSISTANT else "user",
                    "parts": [{"text": message.content}],
                }
                for message in messages
            ],
            "generationConfig": {
                "temperature": self.temperature,
                "topP": 0.8,
                "topK": 40,
                "maxOutputTokens": self.max_tokens,
            },
            "safetySettings": [
                {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
                for category in SAFETY_CATEGORIES
            ],
        }
        return url, headers, payload

    async def transform(self, response: httpx.Response) -> AsyncIterator[bytes]:
        async for line in response.aiter_lines():
            data = sse_data(line)
            if not data:
                continue
            event = parse_event(data, self.name)
            if event is None:
                continue

            candidates = event.get("candidates") or [{}]
            candidate = candidates[0]
            parts = (candidate.get("content") or {}).get("parts") or []
            text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
            if text:
                yield format_delta(text)

            if candidate.get("finishReason"):
                yield DONE_EVENT
                return
