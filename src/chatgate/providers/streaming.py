"""
Incremental delta stream helpers

Every StreamResult speaks the same server-sent events dialect as the
OpenAI-compatible backends:

    data: {"choices": [{"delta": {"content": "..."}}]}\n\n
    data: [DONE]\n\n

Adapters for backends with a different wire format translate into it here.
"""

import json
from typing import Any, AsyncIterator, Dict, Iterable, Iterator, Optional

import structlog

logger = structlog.get_logger()

DATA_PREFIX = "data:"
DONE_MARKER = "[DONE]"
DONE_EVENT = b"data: [DONE]\n\n"


def format_delta(text: str) -> bytes:
    """Encode a text fragment as one delta event"""
    payload = {"choices": [{"delta": {"content": text}}]}
    return f"data: {json.dumps(payload)}\n\n".encode("utf-8")


def sse_data(line: str) -> Optional[str]:
    """Return the payload of a ``data:`` line, or None for any other line"""
    if not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX):].strip()


def parse_event(data: str, provider: str) -> Optional[Dict[str, Any]]:
    """Decode a JSON event payload, logging and skipping malformed ones"""
    try:
        event = json.loads(data)
    except json.JSONDecodeError as e:
        logger.warning("Skipping malformed stream event", provider=provider, error=str(e))
        return None
    if not isinstance(event, dict):
        return None
    return event


def delta_content(event: Dict[str, Any]) -> Optional[str]:
    """Pull ``choices[0].delta.content`` out of a delta event"""
    try:
        content = event["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None
    return content if isinstance(content, str) else None


def iter_lines(buffer: bytearray, chunk: bytes) -> Iterator[str]:
    """Feed a chunk into ``buffer`` and yield every complete line"""
    buffer.extend(chunk)
    while True:
        index = buffer.find(b"\n")
        if index < 0:
            return
        line = bytes(buffer[:index]).rstrip(b"\r")
        del buffer[:index + 1]
        yield line.decode("utf-8", errors="replace")


async def iter_text_deltas(chunks: AsyncIterator[bytes]) -> AsyncIterator[str]:
    """Yield the content fragments carried by a delta event stream"""
    buffer = bytearray()

    def contents(lines: Iterable[str]) -> Iterator[str]:
        for line in lines:
            data = sse_data(line)
            if not data or data == DONE_MARKER:
                continue
            try:
                event = json.loads(data)
            except json.JSONDecodeError:
                continue
            content = delta_content(event) if isinstance(event, dict) else None
            if content:
                yield content

    async for chunk in chunks:
        for content in contents(iter_lines(buffer, chunk)):
            yield content

    if buffer:
        for content in contents([buffer.decode("utf-8", errors="replace")]):
            yield content
