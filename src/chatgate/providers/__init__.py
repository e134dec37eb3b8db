"""
Chatgate Provider System

Interchangeable chat backends behind one adapter contract, plus the
orchestrator that picks, falls back between and reports on them.
"""

from .base import (
    BaseProvider,
    ChatgateError,
    EmptyResponseError,
    ProviderError,
    ProviderNotFoundError,
    ProviderUnavailableError,
    StreamResult,
    UpstreamError,
)
from .anthropic import AnthropicProvider
from .cohere import CohereProvider
from .gemini import GeminiProvider
from .openai_compatible import GroqProvider, OpenAICompatibleProvider, OpenAIProvider, PerplexityProvider
from .orchestrator import (
    BUILTIN_PROVIDERS,
    AllProvidersFailedError,
    NoProviderAvailableError,
    OrchestrationError,
    ProviderFailure,
    ProviderOrchestrator,
    UnknownProviderError,
    create_default_orchestrator,
    get_orchestrator,
    reset_orchestrator,
)

__all__ = [
    "BaseProvider",
    "StreamResult",
    "OpenAICompatibleProvider",
    "GroqProvider",
    "OpenAIProvider",
    "PerplexityProvider",
    "GeminiProvider",
    "CohereProvider",
    "AnthropicProvider",
    "BUILTIN_PROVIDERS",
    "ProviderOrchestrator",
    "ProviderFailure",
    "create_default_orchestrator",
    "get_orchestrator",
    "reset_orchestrator",
    "ChatgateError",
    "ProviderError",
    "ProviderUnavailableError",
    "ProviderNotFoundError",
    "UpstreamError",
    "EmptyResponseError",
    "OrchestrationError",
    "NoProviderAvailableError",
    "AllProvidersFailedError",
    "UnknownProviderError",
]
