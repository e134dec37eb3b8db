"""Chat API Endpoints"""
import time
from typing import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
from pydantic import BaseModel
import structlog

from chatgate.models import ChatRequest
from chatgate.providers import ProviderOrchestrator, StreamResult
from .deps import get_orchestrator_dep

router = APIRouter()
logger = structlog.get_logger()


class ChatResponse(BaseModel):
    """Response model for a fully drained chat reply"""
    content: str
    provider: str
    cost: str
    duration_ms: int


async def relay_stream(stream: StreamResult) -> AsyncIterator[bytes]:
    """Forward upstream bytes; disconnects close the upstream connection"""
    async with stream:
        async for chunk in stream:
            yield chunk


@router.post("")
async def chat(request: ChatRequest, orchestrator: ProviderOrchestrator = Depends(get_orchestrator_dep)):
    """Route a chat request to a provider, falling back across providers unless one is named"""
    start = time.monotonic()

    if request.provider:
        stream = await orchestrator.dispatch_to(request.provider, request.messages)
    else:
        stream = await orchestrator.dispatch(request.messages)

    if not request.stream:
        content = "".join([part async for part in stream.iter_text_deltas()])
        return ChatResponse(
            content=content,
            provider=stream.provider,
            cost=stream.cost,
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    return StreamingResponse(
        relay_stream(stream),
        # Runs even when the body is cancelled before its first chunk
        background=BackgroundTask(stream.aclose),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "X-AI-Provider": stream.provider,
            "X-AI-Cost": stream.cost,
        },
    )
