"""
Command-line interface for ragpipe.

Commands:
    serve      - Start the FastAPI server
    ingest     - Index a single document file
    ingest-dir - Send every document in a directory to a running server
    query      - Answer a single question
    version    - Show version information
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

app = typer.Typer(
    name="ragpipe",
    help="Retrieval-augmented question answering over your documents",
    add_completion=False,
)
console = Console()


@app.callback()
def main() -> None:
    """Configure logging for every command."""
    from ragpipe.config import settings

    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Host to bind (default from settings)"),
    port: Optional[int] = typer.Option(None, help="Port to bind (default from settings)"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
) -> None:
    """Start the FastAPI server."""
    import uvicorn

    from ragpipe.config import settings

    host = host or settings.api_host
    port = port or settings.api_port

    console.print(f"[green]Starting ragpipe server on {host}:{port}[/green]")

    uvicorn.run(
        "ragpipe.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def ingest(
    path: Path = typer.Argument(..., help="Text file to ingest"),
    doc_id: Optional[str] = typer.Option(
        None, "--id", help="Document id (defaults to the file name)"
    ),
) -> None:
    """Chunk, embed and index a single document."""
    from ragpipe.errors import RAGError
    from ragpipe.retrieval.chunker import load_file

    if not path.is_file():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)

    text = load_file(path)
    doc_id = doc_id if doc_id is not None else path.name

    async def _run() -> int:
        llm_client, pipeline = await _build()
        try:
            return await pipeline.ingest(text, doc_id)
        finally:
            await _close(llm_client, pipeline)

    try:
        with console.status(f"[bold green]Ingesting {path.name}..."):
            chunks = asyncio.run(_run())
    except (RAGError, ValueError) as e:
        console.print(f"[red]Ingestion failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ {path.name}: {chunks} chunks indexed as {doc_id!r}[/green]")


@app.command("ingest-dir")
def ingest_dir(
    data_dir: Path = typer.Argument(Path("testdata/docs"), help="Directory with documents"),
    server_url: str = typer.Option("http://localhost:8080", help="Base URL of a running server"),
    pattern: str = typer.Option("*.txt", help="Glob pattern for document files"),
    timeout: float = typer.Option(300.0, help="Per-request timeout in seconds"),
) -> None:
    """Send each document in a directory to a running server's /ingest endpoint."""
    import requests

    from ragpipe.retrieval.chunker import discover_documents, load_file

    if not data_dir.is_dir():
        console.print(f"[red]Data directory not found: {data_dir}[/red]")
        raise typer.Exit(1)

    files = discover_documents(data_dir, pattern)
    if not files:
        console.print(f"[red]No {pattern} files found in {data_dir}[/red]")
        raise typer.Exit(1)

    url = f"{server_url.rstrip('/')}/ingest"
    failed = 0

    for file in files:
        try:
            payload = {"text": load_file(file), "id": file.name}
            response = requests.post(url, json=payload, timeout=timeout)
            response.raise_for_status()
        except (OSError, requests.RequestException) as e:
            failed += 1
            console.print(f"[red]  ✗ {file.name}: {e}[/red]")
            continue

        chunks = response.json().get("chunks", "?")
        console.print(f"[green]  ✓ {file.name}: {chunks} chunks[/green]")

    console.print(f"[bold]Ingestion complete: {len(files) - failed}/{len(files)} files[/bold]")
    if failed:
        raise typer.Exit(1)


@app.command()
def query(
    question: str = typer.Argument(..., help="Question to ask"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show retrieved context"),
) -> None:
    """Answer a single question from the indexed documents."""
    from ragpipe.errors import RAGError

    console.print(f"[blue]Question:[/blue] {question}\n")

    async def _run() -> tuple[str, str]:
        llm_client, pipeline = await _build()
        try:
            context = await pipeline.retrieve(question)
            answer = await llm_client.answer(context, question)
            return context, answer
        finally:
            await _close(llm_client, pipeline)

    try:
        with console.status("[bold green]Processing..."):
            context, answer = asyncio.run(_run())
    except (RAGError, ValueError) as e:
        console.print(f"[red]Query failed: {e}[/red]")
        raise typer.Exit(1)

    if verbose:
        console.print("[cyan]Context:[/cyan]")
        console.print(context, markup=False)
        console.print()

    console.print("[green]Answer:[/green]")
    console.print(answer, markup=False)


@app.command()
def version() -> None:
    """Show version information."""
    from ragpipe import __version__

    console.print(f"ragpipe v{__version__}")


async def _build():
    """Create the OpenAI client and a pipeline that shares it."""
    from ragpipe.config import settings
    from ragpipe.llm.factory import create_llm_client
    from ragpipe.retrieval.resources import build_pipeline

    llm_client = create_llm_client(settings)
    try:
        pipeline = await build_pipeline(settings, embedder=llm_client)
    except Exception:
        await llm_client.aclose()
        raise
    return llm_client, pipeline


async def _close(llm_client, pipeline) -> None:
    """Close the OpenAI client and the vector store client, if it has one."""
    await llm_client.aclose()
    close = getattr(pipeline.index, "close", None)
    if close is not None:
        await close()


if __name__ == "__main__":
    app()
