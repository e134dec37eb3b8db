"""
OpenAI-compatible Provider Implementations

Backends that accept ``/chat/completions`` with ``stream: true`` and answer
with OpenAI-style delta events. Their bodies are relayed unchanged.
"""

from typing import Any, Dict, Sequence, Tuple

from chatgate.models import ChatMessage
from .base import BaseProvider


class OpenAICompatibleProvider(BaseProvider):
    """Shared request shape for OpenAI-compatible chat endpoints"""

    completions_path = "/chat/completions"

    def build_request(self, messages: Sequence[ChatMessage]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        payload = {
            "model": self.model,
            "messages": [message.to_wire() for message in messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": True,
        }
        return f"{self.base_url}{self.completions_path}", self.bearer_headers(), payload


class GroqProvider(OpenAICompatibleProvider):
    """Groq hosted open models"""
    name = "groq"
    cost = "free"
    api_key_env = "GROQ_API_KEY"
    default_model = "llama-3.1-8b-instant"
    default_base_url = "https://api.groq.com/openai/v1"


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI GPT models"""
    name = "openai"
    cost = "paid"
    api_key_env = "OPENAI_API_KEY"
    default_model = "gpt-4o-mini"
    default_base_url = "https://api.openai.com/v1"


class PerplexityProvider(OpenAICompatibleProvider):
    """Perplexity research models with web access"""
    name = "perplexity"
    cost = "paid (research-focused)"
    api_key_env = "PERPLEXITY_API_KEY"
    default_model = "llama-3.1-sonar-small-128k-online"
    default_base_url = "https://api.perplexity.ai"
