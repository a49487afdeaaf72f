"""
CLI for batch-embed.

Provides command-line interface for embedding text files line by line.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from batchembed.core.config import BatchEmbedConfig, load_config
from batchembed.core.logging_setup import configure_logging
from batchembed.infrastructure.embedding import (
    EmbeddingClientError,
    SessionContext,
    create_embedding_client,
)

# Diagnostics go to stderr so stdout stays clean JSON
console = Console(stderr=True)

app = typer.Typer(
    name="batchembed",
    help="Batch-embed text through an OpenAI-compatible embeddings API",
    add_completion=False,
)


def _load(config_path: Optional[Path]) -> BatchEmbedConfig:
    load_dotenv()
    return load_config(config_path)


def _read_inputs(source: Optional[Path]) -> list[str]:
    if source is None:
        lines = sys.stdin.read().splitlines()
    else:
        lines = source.read_text(encoding="utf-8").splitlines()
    return [line for line in lines if line.strip()]


async def _run_embed(
    config: BatchEmbedConfig, texts: list[str], strict: bool
) -> list[Optional[list[float]]]:
    session = SessionContext.from_env(config.embedding.api_key_env)
    async with create_embedding_client(config, session) as client:
        return await client.embed_aligned(texts, strict=strict)


@app.command()
def embed(
    source: Optional[Path] = typer.Argument(
        None, help="Text file with one input per line (stdin if omitted)"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML or JSON configuration file"
    ),
    gas: Optional[int] = typer.Option(
        None, "--gas", "-g", help="Same-size retries allowed per batch"
    ),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-b", help="Maximum inputs per initial request"
    ),
    plain: bool = typer.Option(
        False, "--plain", help="Fail on the first error instead of retrying and splitting"
    ),
    trace: Optional[bool] = typer.Option(
        None, "--trace/--no-trace", help="Print retry/split decisions to stdout"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write JSON here instead of stdout"
    ),
):
    """Embed every non-blank line and print a JSON array of vectors (null when dropped)."""
    try:
        cfg = _load(config_path)
        if gas is not None:
            cfg.embedding.gas = gas
        if batch_size is not None:
            cfg.embedding.batch_size = batch_size
        if trace is not None:
            cfg.embedding.trace = trace
        cfg.embedding.validate()

        # Trace lines go to stdout; pass --output to keep the JSON apart
        trace_stream = sys.stdout if cfg.embedding.trace else None
        configure_logging(cfg.logging, trace_stream=trace_stream)

        texts = _read_inputs(source)
        if not texts:
            console.print("[yellow]No input lines.[/yellow]")
            vectors: list[Optional[list[float]]] = []
        else:
            vectors = asyncio.run(_run_embed(cfg, texts, strict=plain))

        document = json.dumps(vectors)
        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(document, encoding="utf-8")
        else:
            typer.echo(document)

        embedded = sum(1 for v in vectors if v is not None)
        summary = Table.grid(padding=1)
        summary.add_column(style="bold")
        summary.add_column()
        summary.add_row("Inputs:", str(len(texts)))
        summary.add_row("Embedded:", str(embedded))
        if embedded < len(texts):
            summary.add_row("Dropped:", f"[red]{len(texts) - embedded}[/red]")
        summary.add_row("Mode:", "plain" if plain else f"resilient (gas={cfg.embedding.gas})")
        if cfg.embedding.trace and output is None:
            summary.add_row(
                "Warning:",
                "[yellow]trace lines were mixed into the JSON on stdout; use --output[/yellow]",
            )

        console.print(
            Panel(
                summary,
                title="[bold green]Embedding Complete[/bold green]",
                border_style="green",
                expand=False,
            )
        )

    except (EmbeddingClientError, ValueError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command("config")
def show_config(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML or JSON configuration file"
    ),
    fmt: str = typer.Option("yaml", "--format", "-f", help="Output format: yaml or json"),
):
    """Show the effective configuration."""
    try:
        cfg = _load(config_path)
    except (ValueError, OSError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if fmt not in ("yaml", "json"):
        console.print(f"[bold red]Error:[/bold red] Invalid format: {fmt}. Valid formats: json, yaml")
        raise typer.Exit(1)

    typer.echo(cfg.to_yaml() if fmt == "yaml" else cfg.to_json())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
