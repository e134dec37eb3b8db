"""
Chatgate CLI

Inspect provider status and send chat requests through the orchestrator
from the command line.
"""
import asyncio
import json
import sys
from typing import List, Optional

import typer

from chatgate.config import get_settings
from chatgate.models import ChatMessage, MessageRole
from chatgate.providers import ChatgateError, ProviderOrchestrator, get_orchestrator
from chatgate.utils.logging import setup_logging

app = typer.Typer(
    name="chatgate",
    help="Multi-provider AI chat routing with ordered fallback",
    add_completion=False
)


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for diagnostics"),
):
    # Diagnostics go to stderr so replies and --json output stay clean
    setup_logging(log_level=log_level, log_format="plain", cache_loggers=False, log_file=sys.stderr)


@app.command(name="status", help="Show provider availability and configuration")
def status(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    orchestrator = get_orchestrator()
    config = orchestrator.get_config()
    providers = orchestrator.get_provider_status()

    if json_output:
        typer.echo(json.dumps({
            "providers": [p.model_dump() for p in providers],
            "enabled_providers": list(config.enabled_providers),
            "preferred_providers": list(config.preferred_providers),
            "fallback_to_free": config.fallback_to_free,
            "candidate_order": orchestrator.candidate_order(config),
        }, indent=2))
        return

    for provider in providers:
        mark = "available" if provider.available else "not configured"
        enabled = "enabled" if provider.name in config.enabled_providers else "disabled"
        typer.echo(f"{provider.name:<12} {mark:<15} {enabled:<9} {provider.cost}")
    typer.echo(f"\nCandidate order: {', '.join(orchestrator.candidate_order(config)) or '(none)'}")
    typer.echo(f"Fallback: {'on' if config.fallback_to_free else 'off'}")


async def _stream_reply(orchestrator: ProviderOrchestrator, messages: List[ChatMessage], provider: Optional[str]) -> str:
    if provider:
        stream = await orchestrator.dispatch_to(provider, messages)
    else:
        stream = await orchestrator.dispatch(messages)
    async for text in stream.iter_text_deltas():
        typer.echo(text, nl=False)
    typer.echo("")
    return stream.provider


@app.command(name="chat", help="Send one prompt and stream the reply")
def chat(
    prompt: str = typer.Argument(..., help="User message"),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p",
        help="Use exactly this provider, without fallback"
    ),
    system: Optional[str] = typer.Option(None, "--system", "-s", help="System message"),
):
    messages = []
    if system:
        messages.append(ChatMessage(role=MessageRole.SYSTEM, content=system))
    messages.append(ChatMessage(role=MessageRole.USER, content=prompt))

    try:
        served_by = asyncio.run(_stream_reply(get_orchestrator(), messages, provider))
    except ChatgateError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"[served by {served_by}]", err=True)


@app.command(name="serve", help="Run the HTTP API")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
):
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "chatgate.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    app()
