"""Chat and orchestrator models

Messages and the orchestrator configuration are immutable. A configuration
change produces a new OrchestratorConfig snapshot rather than editing one in
place, so readers never observe a half-applied update.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MessageRole(str, Enum):
    """Message roles for chat completion"""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """A single conversation turn"""

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: str

    def to_wire(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class ProviderDescriptor(BaseModel):
    """Live status of one registered provider"""
    name: str
    cost: str
    available: bool


def _dedupe(names: Iterable[str]) -> Tuple[str, ...]:
    seen = set()
    ordered = []
    for name in names:
        if name not in seen:
            seen.add(name)
            ordered.append(name)
    return tuple(ordered)


class OrchestratorConfig(BaseModel):
    """Snapshot of the orchestrator configuration

    Names absent from the provider registry are accepted and stay inert.
    preferred_providers is not required to be a subset of enabled_providers;
    filtering happens when a candidate order is computed.
    """

    model_config = ConfigDict(frozen=True)

    enabled_providers: Tuple[str, ...] = ()
    preferred_providers: Tuple[str, ...] = ()
    fallback_to_free: bool = True

    @field_validator("enabled_providers", mode="before")
    @classmethod
    def _ordered_set(cls, value: Any) -> Tuple[str, ...]:
        # enabled_providers is an ordered set
        return _dedupe(value or ())

    @field_validator("preferred_providers", mode="before")
    @classmethod
    def _as_tuple(cls, value: Any) -> Tuple[str, ...]:
        return tuple(value or ())

    def merged(self, update: "OrchestratorConfigUpdate") -> "OrchestratorConfig":
        """Return a new snapshot with the provided fields replaced"""
        changes = update.model_dump(exclude_none=True)
        if not changes:
            return self
        return OrchestratorConfig(**{**self.model_dump(), **changes})


class OrchestratorConfigUpdate(BaseModel):
    """Partial configuration; unspecified fields are left untouched"""
    enabled_providers: Optional[List[str]] = None
    preferred_providers: Optional[List[str]] = None
    fallback_to_free: Optional[bool] = None

    def provider_names(self) -> List[str]:
        return list(self.enabled_providers or []) + list(self.preferred_providers or [])


class ChatRequest(BaseModel):
    """Inbound chat request"""
    messages: List[ChatMessage] = Field(..., min_length=1, description="Conversation, oldest first")
    provider: Optional[str] = Field(None, description="Target exactly one provider, bypassing fallback")
    stream: bool = Field(True, description="Stream the reply as server-sent events")
