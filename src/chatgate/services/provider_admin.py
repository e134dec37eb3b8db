"""Provider status and configuration service

Read/write facade over the orchestrator for admin-facing callers.
Authorization is the caller's responsibility.
"""

from typing import Any, Dict, List, Optional, Sequence

import structlog

from chatgate.models import ChatMessage, MessageRole, OrchestratorConfig, OrchestratorConfigUpdate
from chatgate.providers import (
    EmptyResponseError,
    ProviderOrchestrator,
    get_orchestrator,
)

logger = structlog.get_logger()

TEST_PROMPT = "Hello! Please respond with 'Test successful'"


class ProviderAdminService:
    """Admin view of the provider orchestrator"""

    def __init__(self, orchestrator: ProviderOrchestrator):
        self.orchestrator = orchestrator

    def get_config(self) -> OrchestratorConfig:
        return self.orchestrator.get_config()

    def get_status(self) -> Dict[str, Any]:
        """Configuration snapshot plus live provider status"""
        config = self.orchestrator.get_config()
        return {
            "providers": [p.model_dump() for p in self.orchestrator.get_provider_status()],
            "enabled_providers": list(config.enabled_providers),
            "preferred_providers": list(config.preferred_providers),
            "fallback_to_free": config.fallback_to_free,
        }

    def update_config(self, update: OrchestratorConfigUpdate, validate: bool = False) -> OrchestratorConfig:
        return self.orchestrator.configure(update, validate=validate)

    def toggle_provider(self, name: str, enabled: bool) -> OrchestratorConfig:
        """Enable (append) or disable (remove) one provider"""
        current = list(self.orchestrator.get_config().enabled_providers)
        if enabled:
            if name not in current:
                current.append(name)
        else:
            current = [p for p in current if p != name]
        logger.info("Toggling provider", provider=name, enabled=enabled)
        return self.orchestrator.configure(enabled_providers=current)

    def reorder(self, preferred_order: Sequence[str]) -> OrchestratorConfig:
        logger.info("Reordering providers", preferred=list(preferred_order))
        return self.orchestrator.configure(preferred_providers=list(preferred_order))

    async def test_provider(self, name: str, messages: Optional[List[ChatMessage]] = None) -> Dict[str, Any]:
        """Directed one-shot request that reads only the first chunk

        Provider errors propagate so the caller can report the exact failure.
        """
        messages = messages or [ChatMessage(role=MessageRole.USER, content=TEST_PROMPT)]
        stream = await self.orchestrator.dispatch_to(name, messages)
        async with stream:
            first = None
            async for chunk in stream:
                first = chunk
                break
        if not first:
            raise EmptyResponseError(f"No response from {name}", name)

        logger.info("Provider test successful", provider=name)
        return {
            "success": True,
            "message": "Provider test successful",
            "provider": stream.provider,
            "cost": stream.cost,
        }


def get_admin_service(orchestrator: Optional[ProviderOrchestrator] = None) -> ProviderAdminService:
    """Admin service bound to the given or process-wide orchestrator"""
    return ProviderAdminService(orchestrator or get_orchestrator())
