"""
Shared test configuration and fixtures for the Chatgate test suite
"""
from typing import Any, Dict, List, Sequence

import pytest
import structlog

from chatgate.config import get_settings
from chatgate.models import ChatMessage, MessageRole, OrchestratorConfig
from chatgate.providers import BaseProvider, ProviderOrchestrator, reset_orchestrator

PROVIDER_KEY_VARS = [
    "GROQ_API_KEY",
    "GEMINI_API_KEY",
    "COHERE_API_KEY",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "PERPLEXITY_API_KEY",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep credentials and process-wide state from leaking between tests"""
    for var in PROVIDER_KEY_VARS:
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    reset_orchestrator()
    yield
    get_settings.cache_clear()
    reset_orchestrator()
    structlog.reset_defaults()


@pytest.fixture
def valid_key() -> str:
    return "test-key-0123456789"


@pytest.fixture
def messages() -> List[ChatMessage]:
    return [
        ChatMessage(role=MessageRole.SYSTEM, content="You are terse."),
        ChatMessage(role=MessageRole.USER, content="Hello"),
    ]


@pytest.fixture
def make_orchestrator():
    """Build an orchestrator over fake providers"""
    def factory(providers: Sequence[BaseProvider], **config: Any) -> ProviderOrchestrator:
        defaults: Dict[str, Any] = {
            "enabled_providers": [p.name for p in providers],
            "preferred_providers": [],
            "fallback_to_free": True,
        }
        defaults.update(config)
        return ProviderOrchestrator(providers, OrchestratorConfig(**defaults))
    return factory
