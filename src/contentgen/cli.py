"""CLI entry point for contentgen.

Provides ``generate``, ``embed`` and ``resolve-model``
sub-commands using Click and Rich for output formatting.

Usage::

    contentgen generate "Summarize RFC 2119" --stream
    contentgen embed "first text" "second text"
    contentgen resolve-model --model gpt-4o
"""

from __future__ import annotations

import asyncio
import json
import logging

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from contentgen.adapters.base import ContentGenerator
from contentgen.config import AuthType
from contentgen.content_generator import (
    create_content_generator,
    create_content_generator_config,
)
from contentgen.errors import ContentGeneratorError
from contentgen.models import (
    EmbedContentParameters,
    GenerateContentConfig,
    GenerateContentParameters,
    GenerateContentResponse,
    Part,
    create_user_content,
)

console = Console()

_AUTH_CHOICES = [AuthType.USE_OPENAI.value, AuthType.USE_VERTEX_AI.value]


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


async def _build_generator(model: str | None, auth_type: str) -> tuple[str, ContentGenerator]:
    config = await create_content_generator_config(model, AuthType(auth_type))
    return config.model, create_content_generator(config)


def _print_function_calls(response: GenerateContentResponse) -> None:
    for call in response.function_calls:
        if call.error is not None:
            console.print(f"[red]Malformed tool call[/red] {call.name}: {call.error}")
        else:
            console.print(f"[cyan]{call.name}[/cyan]({json.dumps(call.args)})")


async def _generate(
    prompt: str,
    model: str | None,
    system: str | None,
    stream: bool,
    auth_type: str,
) -> None:
    resolved, generator = await _build_generator(model, auth_type)
    request = GenerateContentParameters(
        model=resolved,
        contents=[create_user_content(Part.from_text(prompt))],
        config=GenerateContentConfig(system_instruction=system),
    )

    if not stream:
        response = await generator.generate_content(request)
        console.print(response.text or "")
        _print_function_calls(response)
        return

    final: GenerateContentResponse | None = None
    with Live(Text(""), console=console, refresh_per_second=8) as live:
        async for snapshot in generator.generate_content_stream(request):
            final = snapshot
            live.update(Text(snapshot.text or ""))
    if final is not None:
        _print_function_calls(final)


@click.group()
@click.version_option(package_name="contentgen")
def main() -> None:
    """contentgen - provider-agnostic content generation."""
    load_dotenv()


@main.command()
@click.argument("prompt")
@click.option("--model", default=None, help="Model id (defaults to the primary model).")
@click.option("--system", default=None, help="System instruction.")
@click.option("--stream/--no-stream", default=False, help="Stream snapshots live.")
@click.option(
    "--auth-type",
    type=click.Choice(_AUTH_CHOICES),
    default=AuthType.USE_OPENAI.value,
    show_default=True,
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def generate(
    prompt: str,
    model: str | None,
    system: str | None,
    stream: bool,
    auth_type: str,
    verbose: bool,
) -> None:
    """Send PROMPT as a single user turn and print the reply."""
    _setup_logging(verbose)
    try:
        asyncio.run(_generate(prompt, model, system, stream, auth_type))
    except ContentGeneratorError as exc:
        console.print(f"[red]Generation failed:[/red] {exc}")
        raise SystemExit(1) from exc


@main.command()
@click.argument("texts", nargs=-1, required=True)
@click.option("--model", default="", help="Embedding model id.")
@click.option(
    "--auth-type",
    type=click.Choice(_AUTH_CHOICES),
    default=AuthType.USE_OPENAI.value,
    show_default=True,
)
def embed(texts: tuple[str, ...], model: str, auth_type: str) -> None:
    """Embed each of TEXTS and print the vector sizes."""

    async def _embed():
        _, generator = await _build_generator(None, auth_type)
        return await generator.embed_content(
            EmbedContentParameters(model=model, contents=list(texts))
        )

    try:
        response = asyncio.run(_embed())
    except ContentGeneratorError as exc:
        console.print(f"[red]Embedding failed:[/red] {exc}")
        raise SystemExit(1) from exc

    table = Table(title="Embeddings")
    table.add_column("Input")
    table.add_column("Dimensions", justify="right")
    for text, embedding in zip(texts, response.embeddings):
        table.add_row(text, str(len(embedding.values)))
    console.print(table)


@main.command(name="resolve-model")
@click.option("--model", default=None, help="Configured model id.")
@click.option(
    "--auth-type",
    type=click.Choice(_AUTH_CHOICES),
    default=AuthType.USE_OPENAI.value,
    show_default=True,
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def resolve_model(model: str | None, auth_type: str, verbose: bool) -> None:
    """Print the model this session would use after the availability probe."""
    _setup_logging(verbose)
    config = asyncio.run(create_content_generator_config(model, AuthType(auth_type)))
    console.print(config.model)
