"""Data models for Chatgate"""

from .chat import (
    ChatMessage,
    ChatRequest,
    MessageRole,
    OrchestratorConfig,
    OrchestratorConfigUpdate,
    ProviderDescriptor,
)

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "MessageRole",
    "OrchestratorConfig",
    "OrchestratorConfigUpdate",
    "ProviderDescriptor",
]
