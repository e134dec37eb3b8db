"""
Provider Orchestrator

Holds the registered adapters and the live OrchestratorConfig, computes the
candidate order for each chat request and falls back from one provider to
the next when a backend fails.
"""

import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type, Union

import structlog

from chatgate.config import Settings, get_settings
from chatgate.models import (
    ChatMessage,
    OrchestratorConfig,
    OrchestratorConfigUpdate,
    ProviderDescriptor,
)
from .anthropic import AnthropicProvider
from .base import (
    BaseProvider,
    ChatgateError,
    EmptyResponseError,
    ProviderNotFoundError,
    ProviderUnavailableError,
    StreamResult,
    UpstreamError,
)
from .cohere import CohereProvider
from .gemini import GeminiProvider
from .openai_compatible import GroqProvider, OpenAIProvider, PerplexityProvider

logger = structlog.get_logger()

# Registry insertion order doubles as the tie-break order between candidates
BUILTIN_PROVIDERS: Dict[str, Type[BaseProvider]] = {
    "groq": GroqProvider,
    "gemini": GeminiProvider,
    "cohere": CohereProvider,
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "perplexity": PerplexityProvider,
}

MessagesInput = Sequence[Union[ChatMessage, Mapping[str, Any]]]


@dataclass(frozen=True)
class ProviderFailure:
    """Why one candidate did not produce a stream"""
    provider: str
    reason: str
    error: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"provider": self.provider, "reason": self.reason}
        status_code = getattr(self.error, "status_code", None)
        if status_code is not None:
            data["status_code"] = status_code
        return data


class ProviderOrchestrator:
    """Routes chat requests across the registered providers"""

    def __init__(
        self,
        providers: Optional[Iterable[BaseProvider]] = None,
        config: Optional[OrchestratorConfig] = None,
    ):
        self._providers: Dict[str, BaseProvider] = {}
        self._lock = threading.Lock()
        for provider in providers or ():
            self.register(provider)
        self._config = config or OrchestratorConfig(
            enabled_providers=list(self._providers),
            fallback_to_free=True,
        )

    def register(self, provider: BaseProvider) -> None:
        """Register an adapter; re-registering a name keeps its position"""
        with self._lock:
            self._providers[provider.name] = provider
        logger.info("Registered provider", provider=provider.name, cost=provider.get_cost())

    @property
    def providers(self) -> Dict[str, BaseProvider]:
        return dict(self._providers)

    def get_provider(self, name: str) -> Optional[BaseProvider]:
        return self._providers.get(name)

    def get_config(self) -> OrchestratorConfig:
        """Current configuration snapshot"""
        return self._config

    def configure(
        self,
        update: Optional[OrchestratorConfigUpdate] = None,
        *,
        validate: bool = False,
        **fields: Any,
    ) -> OrchestratorConfig:
        """Merge the provided fields into the live configuration

        Unknown provider names are accepted and stay inert unless
        ``validate`` is set, in which case nothing is applied and
        UnknownProviderError is raised.
        """
        if update is None:
            update = OrchestratorConfigUpdate(**fields)
        elif fields:
            update = update.model_copy(update=fields)

        if validate:
            unknown = sorted({n for n in update.provider_names() if n not in self._providers})
            if unknown:
                raise UnknownProviderError(f"Unknown providers: {', '.join(unknown)}", unknown)

        # Copy-on-write: readers keep whichever snapshot they already hold
        with self._lock:
            self._config = self._config.merged(update)
            config = self._config

        logger.info("Orchestrator configured",
                    enabled=list(config.enabled_providers),
                    preferred=list(config.preferred_providers),
                    fallback_to_free=config.fallback_to_free)
        return config

    def get_provider_status(self) -> List[ProviderDescriptor]:
        """Live availability and cost of every registered provider"""
        return [
            ProviderDescriptor(name=name, cost=provider.get_cost(), available=provider.is_available())
            for name, provider in list(self._providers.items())
        ]

    def candidate_order(self, config: Optional[OrchestratorConfig] = None) -> List[str]:
        """Preferred providers first, then the remaining enabled ones in registry order"""
        config = config or self._config
        registered = list(self._providers)
        enabled = set(config.enabled_providers)

        order: List[str] = []
        for name in config.preferred_providers:
            if name in enabled and name in self._providers and name not in order:
                order.append(name)
        for name in registered:
            if name in enabled and name not in order:
                order.append(name)
        return order

    async def dispatch(self, messages: MessagesInput) -> StreamResult:
        """Stream a reply from the first candidate that succeeds"""
        messages = coerce_messages(messages)
        config = self._config
        candidates = self.candidate_order(config)

        if not candidates:
            logger.warning("No AI providers enabled", enabled=list(config.enabled_providers))
            raise NoProviderAvailableError("No AI providers are enabled")

        logger.info("Dispatching chat request",
                    candidates=candidates,
                    fallback_to_free=config.fallback_to_free,
                    message_count=len(messages))

        failures: List[ProviderFailure] = []
        skipped: List[str] = []

        for name in candidates:
            provider = self._providers[name]
            if not provider.is_available():
                logger.info("Skipping unavailable provider", provider=name)
                skipped.append(name)
                continue

            try:
                stream = await provider.stream_chat(messages)
            except ProviderUnavailableError:
                # Credential disappeared between the check and the call
                logger.info("Skipping unavailable provider", provider=name)
                skipped.append(name)
                continue
            except (UpstreamError, EmptyResponseError) as e:
                failures.append(ProviderFailure(name, str(e), e))
                if not config.fallback_to_free:
                    logger.warning("Provider failed, fallback disabled", provider=name, error=str(e))
                    raise AllProvidersFailedError(failures, skipped) from e
                logger.warning("Provider failed, trying next candidate", provider=name, error=str(e))
                continue

            logger.info("Chat request served",
                        provider=name,
                        cost=stream.cost,
                        attempts=len(failures) + 1,
                        skipped=skipped)
            return stream

        logger.error("All AI providers failed",
                     failures=[f.to_dict() for f in failures],
                     skipped=skipped)
        raise AllProvidersFailedError(failures, skipped)

    async def dispatch_to(self, name: str, messages: MessagesInput) -> StreamResult:
        """Stream from exactly one provider, without fallback"""
        provider = self._providers.get(name)
        if provider is None:
            raise ProviderNotFoundError(f"Provider not found: {name}", name)
        logger.info("Dispatching directed chat request", provider=name)
        return await provider.stream_chat(coerce_messages(messages))


def coerce_messages(messages: MessagesInput) -> List[ChatMessage]:
    return [m if isinstance(m, ChatMessage) else ChatMessage.model_validate(m) for m in messages]


class OrchestrationError(ChatgateError):
    """Base exception for orchestration errors"""
    pass


class NoProviderAvailableError(OrchestrationError):
    """The candidate order was empty; nothing was attempted"""
    pass


class AllProvidersFailedError(OrchestrationError):
    """Every candidate was unavailable or failed"""
    def __init__(self, failures: Sequence[ProviderFailure], skipped: Sequence[str] = ()):
        self.failures = list(failures)
        self.skipped = list(skipped)
        summary = "; ".join(f"{f.provider}: {f.reason}" for f in self.failures) or "no provider was available"
        super().__init__(f"All AI providers failed ({summary})")


class UnknownProviderError(OrchestrationError):
    """Configuration named providers that are not registered (validated mode only)"""
    def __init__(self, message: str, names: Sequence[str]):
        super().__init__(message)
        self.names = list(names)


def create_default_orchestrator(
    settings: Optional[Settings] = None,
    transport: Any = None,
) -> ProviderOrchestrator:
    """Build an orchestrator with every built-in provider and settings defaults"""
    settings = settings or get_settings()
    providers = []
    for name, provider_class in BUILTIN_PROVIDERS.items():
        config = {
            "temperature": settings.temperature,
            "max_tokens": settings.max_tokens,
            "timeout": settings.request_timeout,
            **settings.provider_overrides(name),
        }
        providers.append(provider_class(config, transport=transport))

    orchestrator = ProviderOrchestrator(
        providers,
        OrchestratorConfig(
            enabled_providers=settings.enabled_providers,
            preferred_providers=settings.preferred_providers,
            fallback_to_free=settings.fallback_to_free,
        ),
    )
    logger.info("Provider orchestrator initialized",
                providers=list(orchestrator.providers),
                enabled=settings.enabled_providers,
                preferred=settings.preferred_providers)
    return orchestrator


# Global orchestrator instance
_orchestrator: Optional[ProviderOrchestrator] = None
_orchestrator_lock = threading.Lock()


def get_orchestrator() -> ProviderOrchestrator:
    """Get the process-wide orchestrator, creating it on first use"""
    global _orchestrator
    if _orchestrator is None:
        with _orchestrator_lock:
            if _orchestrator is None:
                _orchestrator = create_default_orchestrator()
    return _orchestrator


def reset_orchestrator() -> None:
    """Drop the process-wide orchestrator"""
    global _orchestrator
    with _orchestrator_lock:
        _orchestrator = None
