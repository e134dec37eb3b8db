"""
Unit tests for the provider status and configuration service
"""
import pytest

from chatgate.models import OrchestratorConfigUpdate
from chatgate.providers import (
    EmptyResponseError,
    ProviderNotFoundError,
    ProviderUnavailableError,
    UnknownProviderError,
)
from chatgate.services import ProviderAdminService, get_admin_service
from fakes import FakeProvider


@pytest.fixture
def service(make_orchestrator):
    providers = [
        FakeProvider("groq", cost="free"),
        FakeProvider("openai", cost="paid", available=False),
        FakeProvider("cohere", cost="free (with limits)"),
    ]
    orchestrator = make_orchestrator(
        providers, enabled_providers=["groq", "openai"], preferred_providers=["openai"]
    )
    return ProviderAdminService(orchestrator)


class TestProviderAdminService:
    """Test the admin facade"""

    def test_get_status(self, service):
        status = service.get_status()

        assert status["providers"] == [
            {"name": "groq", "cost": "free", "available": True},
            {"name": "openai", "cost": "paid", "available": False},
            {"name": "cohere", "cost": "free (with limits)", "available": True},
        ]
        assert status["enabled_providers"] == ["groq", "openai"]
        assert status["preferred_providers"] == ["openai"]
        assert status["fallback_to_free"] is True

    def test_toggle_enable_appends_once(self, service):
        service.toggle_provider("cohere", True)
        service.toggle_provider("cohere", True)

        assert service.get_config().enabled_providers == ("groq", "openai", "cohere")

    def test_toggle_disable_removes(self, service):
        service.toggle_provider("groq", False)

        assert service.get_config().enabled_providers == ("openai",)

    def test_reorder_only_touches_preferred(self, service):
        service.reorder(["cohere", "groq"])

        config = service.get_config()
        assert config.preferred_providers == ("cohere", "groq")
        assert config.enabled_providers == ("groq", "openai")

    def test_update_config_partial(self, service):
        service.update_config(OrchestratorConfigUpdate(fallback_to_free=False))

        assert service.get_status()["fallback_to_free"] is False
        assert service.get_status()["enabled_providers"] == ["groq", "openai"]

    def test_update_config_validated(self, service):
        with pytest.raises(UnknownProviderError):
            service.update_config(OrchestratorConfigUpdate(enabled_providers=["mistral"]), validate=True)

    @pytest.mark.asyncio
    async def test_test_provider_success(self, service):
        result = await service.test_provider("cohere")

        assert result == {
            "success": True,
            "message": "Provider test successful",
            "provider": "cohere",
            "cost": "free (with limits)",
        }
        provider = service.orchestrator.get_provider("cohere")
        assert provider.closed_streams == 1
        assert provider.received[0][0].content.startswith("Hello!")

    @pytest.mark.asyncio
    async def test_test_provider_unavailable(self, service):
        service.orchestrator.get_provider("openai").error = ProviderUnavailableError(
            "openai API key not configured", "openai"
        )

        with pytest.raises(ProviderUnavailableError):
            await service.test_provider("openai")

    @pytest.mark.asyncio
    async def test_test_provider_empty_first_chunk(self, service):
        service.orchestrator.get_provider("groq").chunks = []

        with pytest.raises(EmptyResponseError):
            await service.test_provider("groq")

    @pytest.mark.asyncio
    async def test_test_provider_unknown(self, service):
        with pytest.raises(ProviderNotFoundError):
            await service.test_provider("mistral")

    def test_get_admin_service_defaults_to_global(self):
        service = get_admin_service()

        assert "groq" in service.orchestrator.providers
