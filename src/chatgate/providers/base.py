"""
Base Provider Interface

Abstract base class for chat backends in Chatgate.
Defines the adapter contract (availability, cost, streaming chat), the
StreamResult handed back to callers, and the provider error hierarchy.
"""

import os
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import httpx
import structlog

from chatgate.models import ChatMessage
from .streaming import iter_text_deltas

logger = structlog.get_logger()

MIN_API_KEY_LENGTH = 10
PLACEHOLDER_MARKER = "REPLACE"
PLACEHOLDER_PREFIX = "your_"

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2048
DEFAULT_TIMEOUT_SECONDS = 30.0


class StreamResult:
    """Single-pass byte stream produced by one provider

    Iterate it once, or use it as an async context manager so the upstream
    connection is released even when the consumer stops early.
    """

    def __init__(
        self,
        chunks: AsyncIterator[bytes],
        provider: str,
        cost: str,
        closer: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.provider = provider
        self.cost = cost
        self._chunks = chunks
        self._closer = closer
        self._consumed = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise RuntimeError("StreamResult can only be iterated once")
        self._consumed = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._chunks:
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Release the upstream connection; safe to call more than once"""
        if self._closed:
            return
        self._closed = True
        try:
            close_chunks = getattr(self._chunks, "aclose", None)
            if close_chunks is not None:
                await close_chunks()
        finally:
            if self._closer is not None:
                await self._closer()

    async def __aenter__(self) -> "StreamResult":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def read_text(self) -> str:
        """Drain the whole stream and decode it"""
        parts: List[bytes] = []
        async with self:
            async for chunk in self:
                parts.append(chunk)
        return b"".join(parts).decode("utf-8", errors="replace")

    async def iter_text_deltas(self) -> AsyncIterator[str]:
        """Yield only the generated text carried by the delta events"""
        async with self:
            async for content in iter_text_deltas(self.__aiter__()):
                yield content


class BaseProvider(ABC):
    """Abstract base class for chat backends

    Subclasses describe their wire protocol through ``build_request`` and,
    when the backend does not already speak the delta format, ``transform``.
    The HTTP exchange, error mapping and connection lifecycle live here.
    """

    name: str = ""
    cost: str = "unknown"
    api_key_env: str = ""
    default_model: str = ""
    default_base_url: str = ""

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = dict(config or {})
        self.model: str = self.config.get("model") or self.default_model
        self.base_url: str = (self.config.get("base_url") or self.default_base_url).rstrip("/")
        self.temperature: float = self.config.get("temperature", DEFAULT_TEMPERATURE)
        self.max_tokens: int = self.config.get("max_tokens", DEFAULT_MAX_TOKENS)
        self.timeout: float = self.config.get("timeout", DEFAULT_TIMEOUT_SECONDS)
        self._transport = transport

    @property
    def api_key(self) -> Optional[str]:
        """Credential read from the environment on every access"""
        return os.environ.get(self.api_key_env)

    def is_available(self) -> bool:
        """True when a plausible credential is configured; never touches the network"""
        key = (self.api_key or "").strip()
        if len(key) < MIN_API_KEY_LENGTH:
            return False
        return PLACEHOLDER_MARKER not in key and not key.startswith(PLACEHOLDER_PREFIX)

    def get_cost(self) -> str:
        return self.cost

    @abstractmethod
    def build_request(self, messages: Sequence[ChatMessage]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
        """Return ``(url, headers, json_body)`` for a streaming completion"""
        pass

    async def transform(self, response: httpx.Response) -> AsyncIterator[bytes]:
        """Convert the upstream body into delta events (identity by default)"""
        async for chunk in response.aiter_bytes():
            yield chunk

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=self._transport)

    async def stream_chat(self, messages: Sequence[ChatMessage]) -> StreamResult:
        """Start a streaming completion and return once the first bytes arrive"""
        if not self.is_available():
            raise ProviderUnavailableError(f"{self.name} API key not configured", self.name)

        url, headers, payload = self.build_request(messages)
        client = self._create_client()
        response: Optional[httpx.Response] = None
        chunks: Optional[AsyncIterator[bytes]] = None

        async def close() -> None:
            try:
                close_chunks = getattr(chunks, "aclose", None)
                if close_chunks is not None:
                    await close_chunks()
                if response is not None:
                    await response.aclose()
            finally:
                await client.aclose()

        try:
            request = client.build_request("POST", url, headers=headers, json=payload)
            response = await client.send(request, stream=True)

            if not response.is_success:
                body = (await response.aread()).decode("utf-8", errors="replace")
                logger.error("Provider returned error status",
                             provider=self.name,
                             status_code=response.status_code,
                             error=body[:500])
                raise UpstreamError(
                    f"{self.name} API error: {response.status_code} - {body}",
                    self.name,
                    status_code=response.status_code,
                    body=body,
                )

            chunks = self.transform(response).__aiter__()
            first = await self._first_chunk(chunks)
            if first is None:
                logger.error("Provider returned empty response", provider=self.name,
                             status_code=response.status_code)
                raise EmptyResponseError(f"No response body from {self.name}", self.name)

        except httpx.HTTPError as e:
            await close()
            logger.error("Provider request failed", provider=self.name,
                         error=str(e), error_type=type(e).__name__)
            raise UpstreamError(
                f"{self.name} request failed: {e}",
                self.name,
                status_code=response.status_code if response is not None else None,
                body=str(e),
            ) from e
        except BaseException:
            # Provider errors and cancellation both release the connection
            await close()
            raise

        return StreamResult(self._relay(first, chunks), self.name, self.get_cost(), closer=close)

    @staticmethod
    async def _first_chunk(chunks: AsyncIterator[bytes]) -> Optional[bytes]:
        async for chunk in chunks:
            if chunk:
                return chunk
        return None

    async def _relay(self, first: bytes, chunks: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        yield first
        try:
            async for chunk in chunks:
                if chunk:
                    yield chunk
        except httpx.HTTPError as e:
            logger.error("Provider stream interrupted", provider=self.name, error=str(e))
            raise UpstreamError(f"{self.name} stream interrupted: {e}", self.name, body=str(e)) from e

    def bearer_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} model={self.model!r}>"


class ChatgateError(Exception):
    """Root of every error raised by Chatgate"""
    pass


class ProviderError(ChatgateError):
    """Base exception for provider errors"""
    def __init__(self, message: str, provider: str):
        super().__init__(message)
        self.provider = provider


class ProviderUnavailableError(ProviderError):
    """Provider has no usable credential"""
    pass


class ProviderNotFoundError(ProviderError):
    """No provider is registered under the requested name"""
    pass


class UpstreamError(ProviderError):
    """Backend answered with a non-success status, timed out or dropped the connection"""
    def __init__(self, message: str, provider: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message, provider)
        self.status_code = status_code
        self.body = body


class EmptyResponseError(ProviderError):
    """Backend reported success without sending a body"""
    pass
