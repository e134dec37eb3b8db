"""
Cohere Provider Implementation

Uses the v1 chat endpoint. The last conversational turn is sent as
``message`` and earlier turns as ``chat_history``; streamed
``text-generation`` events are translated into delta events.
"""

from typing import Any, AsyncIterator, Dict, List, Sequence, Tuple

import httpx

from chatgate.models import ChatMessage, MessageRole
from .base import BaseProvider
from .streaming import DATA_PREFIX, DONE_EVENT, format_delta, parse_event

COHERE_ROLES = {
    MessageRole.USER: "USER",
    MessageRole.ASSISTANT: "CHATBOT",
}


class CohereProvider(BaseProvider):
    """Cohere Command models"""
    name = "cohere"
    cost = "free (with limits)"
    api_key_env = "COHERE_API_KEY"
    default_model = "command-r"
    default_base_url = "https://api.cohere.ai/v1"

    def build_request(self, messages: Sequence[ChatMessage]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        history: List[Dict[str, str]] = [
            {"role": COHERE_ROLES[message.role], "message": message.content}
            for message in messages
            if message.role in COHERE_ROLES
        ]
        preamble = "\n\n".join(m.content for m in messages if m.role == MessageRole.SYSTEM)
        last = history.pop() if history else {"message": ""}

        payload: Dict[str, Any] = {
            "model": self.model,
            "message": last["message"],
            "chat_history": history,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": True,
        }
        if preamble:
            payload["preamble"] = preamble
        return f"{self.base_url}/chat", self.bearer_headers(), payload

    async def transform(self, response: httpx.Response) -> AsyncIterator[bytes]:
        async for line in response.aiter_lines():
            # Newline-delimited JSON, optionally wrapped as SSE
            data = line.strip()
            if data.startswith(DATA_PREFIX):
                data = data[len(DATA_PREFIX):].strip()
            if not data:
                continue
            event = parse_event(data, self.name)
            if event is None:
                continue

            event_type = event.get("event_type")
            if event_type == "text-generation" and event.get("text"):
                yield format_delta(event["text"])
            elif event_type == "stream-end":
                yield DONE_EVENT
                return
