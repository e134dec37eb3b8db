"""
API endpoint tests against the ASGI app with fake providers
"""
import httpx
import pytest
import pytest_asyncio

from chatgate.api.chat import chat
from chatgate.main import create_app
from chatgate.models import ChatRequest
from chatgate.providers import EmptyResponseError, ProviderUnavailableError, UpstreamError
from fakes import FakeProvider

PREFIX = "/api/v1"
CHAT_BODY = {"messages": [{"role": "user", "content": "Hello"}]}


@pytest.fixture
def providers():
    return [
        FakeProvider("groq", cost="free"),
        FakeProvider("openai", cost="paid"),
    ]


@pytest.fixture
def orchestrator(make_orchestrator, providers):
    return make_orchestrator(providers)


@pytest_asyncio.fixture
async def client(orchestrator):
    app = create_app(orchestrator=orchestrator)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_health_check(client):
    """Test health endpoint"""
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["providers_registered"] == 2
    assert data["providers_available"] == 2


@pytest.mark.asyncio
async def test_chat_streams_first_available_provider(client, providers):
    providers[0].available = False

    response = await client.post(f"{PREFIX}/chat", json=CHAT_BODY)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["x-ai-provider"] == "openai"
    assert response.headers["x-ai-cost"] == "paid"
    assert response.text.endswith("data: [DONE]\n\n")
    assert providers[1].closed_streams == 1


@pytest.mark.asyncio
async def test_chat_stream_released_when_body_never_starts(orchestrator, providers):
    """A response cancelled before its first chunk still closes the upstream stream"""
    response = await chat(ChatRequest.model_validate(CHAT_BODY), orchestrator)

    await response.body_iterator.aclose()
    assert providers[0].closed_streams == 0

    await response.background()
    assert providers[0].closed_streams == 1

    await response.background()
    assert providers[0].closed_streams == 1


@pytest.mark.asyncio
async def test_chat_non_streaming(client):
    response = await client.post(f"{PREFIX}/chat", json={**CHAT_BODY, "stream": False})

    assert response.status_code == 200
    data = response.json()
    assert data["content"] == "hi"
    assert data["provider"] == "groq"
    assert data["cost"] == "free"
    assert data["duration_ms"] >= 0


@pytest.mark.asyncio
async def test_chat_directed_provider(client, providers):
    response = await client.post(f"{PREFIX}/chat", json={**CHAT_BODY, "provider": "openai"})

    assert response.status_code == 200
    assert response.headers["x-ai-provider"] == "openai"
    assert providers[0].calls == 0


@pytest.mark.asyncio
async def test_chat_all_failed_is_service_unavailable(client, providers):
    providers[0].error = UpstreamError("groq API error: 500", "groq", status_code=500)
    providers[1].error = EmptyResponseError("No response body from openai", "openai")

    response = await client.post(f"{PREFIX}/chat", json=CHAT_BODY)

    assert response.status_code == 503
    data = response.json()
    assert data["error_type"] == "AllProvidersFailedError"
    assert data["failures"] == [
        {"provider": "groq", "reason": "groq API error: 500", "status_code": 500},
        {"provider": "openai", "reason": "No response body from openai"},
    ]


@pytest.mark.asyncio
async def test_chat_nothing_enabled_is_service_unavailable(client, orchestrator):
    orchestrator.configure(enabled_providers=[])

    response = await client.post(f"{PREFIX}/chat", json=CHAT_BODY)

    assert response.status_code == 503
    assert response.json()["error_type"] == "NoProviderAvailableError"


@pytest.mark.asyncio
async def test_chat_directed_errors_name_the_backend(client, providers):
    providers[1].error = ProviderUnavailableError("openai API key not configured", "openai")
    providers[0].error = UpstreamError("groq API error: 401", "groq", status_code=401, body="bad key")

    unavailable = await client.post(f"{PREFIX}/chat", json={**CHAT_BODY, "provider": "openai"})
    upstream = await client.post(f"{PREFIX}/chat", json={**CHAT_BODY, "provider": "groq"})
    missing = await client.post(f"{PREFIX}/chat", json={**CHAT_BODY, "provider": "mistral"})

    assert unavailable.status_code == 400
    assert unavailable.json()["provider"] == "openai"
    assert upstream.status_code == 502
    assert upstream.json()["status_code"] == 401
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_chat_rejects_empty_messages(client):
    response = await client.post(f"{PREFIX}/chat", json={"messages": []})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_status(client, orchestrator):
    orchestrator.configure(preferred_providers=["openai"])

    response = await client.get(f"{PREFIX}/ai/status")

    assert response.status_code == 200
    assert response.json() == {
        "providers": [
            {"name": "groq", "cost": "free", "available": True},
            {"name": "openai", "cost": "paid", "available": True},
        ],
        "enabled_providers": ["groq", "openai"],
        "preferred_providers": ["openai"],
        "fallback_to_free": True,
    }


@pytest.mark.asyncio
async def test_configure_actions(client, orchestrator):
    toggled = await client.post(f"{PREFIX}/ai/configure", json={
        "action": "toggle", "provider": "groq", "enabled": False,
    })
    reordered = await client.post(f"{PREFIX}/ai/configure", json={
        "action": "reorder", "preferred_order": ["openai", "groq"],
    })

    assert toggled.status_code == 200
    assert reordered.status_code == 200
    assert reordered.json()["enabled_providers"] == ["openai"]
    assert orchestrator.get_config().preferred_providers == ("openai", "groq")


@pytest.mark.asyncio
async def test_configure_partial_update(client, orchestrator):
    response = await client.post(f"{PREFIX}/ai/configure", json={"fallback_to_free": False})

    assert response.status_code == 200
    assert response.json()["fallback_to_free"] is False
    assert orchestrator.get_config().enabled_providers == ("groq", "openai")


@pytest.mark.asyncio
async def test_configure_validation(client):
    incomplete = await client.post(f"{PREFIX}/ai/configure", json={"action": "toggle", "provider": "groq"})
    unknown = await client.post(f"{PREFIX}/ai/configure", json={
        "enabled_providers": ["mistral"], "validate_names": True,
    })
    permissive = await client.post(f"{PREFIX}/ai/configure", json={"enabled_providers": ["mistral"]})

    assert incomplete.status_code == 400
    assert unknown.status_code == 422
    assert unknown.json()["names"] == ["mistral"]
    assert permissive.status_code == 200
    assert permissive.json()["enabled_providers"] == ["mistral"]


@pytest.mark.asyncio
async def test_provider_test_endpoint(client, providers):
    ok = await client.post(f"{PREFIX}/ai/test", json={"provider": "openai"})
    providers[0].error = ProviderUnavailableError("groq API key not configured", "groq")
    failed = await client.post(f"{PREFIX}/ai/test", json={"provider": "groq"})

    assert ok.status_code == 200
    assert ok.json() == {
        "success": True,
        "message": "Provider test successful",
        "provider": "openai",
        "cost": "paid",
    }
    assert failed.status_code == 400
