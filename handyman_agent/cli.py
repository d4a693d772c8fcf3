"""CLI entry point for handyman-connector."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

import handyman_agent

app = typer.Typer(
    name="handyman",
    help="Barcode-to-instructions handyman assistant.",
    no_args_is_help=True,
)
console = Console()

EXIT_WORDS = ("quit", "exit")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug logging"
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _open_store():
    from handyman_agent.data.store import DataStore

    return DataStore()


def _build_context(store):
    from handyman_agent.config import load_settings
    from handyman_agent.core.pipeline import PipelineContext

    return PipelineContext.from_settings(load_settings(store), store=store)


class ConsoleDisplay:
    """Prints screens pushed from background resolutions."""

    def __init__(self, console: Console):
        self.console = console

    def show(self, session_id: str, text: str) -> None:
        self.console.print(Panel(text, title=session_id, border_style="cyan"))


def _project_table(project) -> Table:
    table = Table(title=f"{project.name} ({project.source.value})")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Title", style="green")
    table.add_column("Description")
    table.add_column("Tip", style="dim")
    for step in project.steps:
        table.add_row(
            str(step.ordinal), step.title, step.description, step.tip or ""
        )
    return table


@app.command()
def resolve(
    barcode: str = typer.Argument(..., help="Barcode to resolve"),
    command: str = typer.Option(
        "show instructions", "--command", "-c", help="Command text passed to the pipeline"
    ),
) -> None:
    """Resolve a barcode into assembly steps."""
    from handyman_agent.config import describe_limitations, load_settings
    from handyman_agent.core.pipeline import PipelineContext, ResolutionPipeline

    store = _open_store()
    settings = load_settings(store)
    for warning in describe_limitations(settings):
        console.print(f"[yellow]{warning}[/]")

    async def run():
        context = PipelineContext.from_settings(settings, store=store)
        pipeline = ResolutionPipeline(context)
        try:
            with console.status(f"Resolving {barcode}..."):
                project = await pipeline.resolve(command, barcode)
                await pipeline.drain()
        finally:
            await context.aclose()
        return project

    project = asyncio.run(run())
    store.close()

    if project is None:
        console.print(f"[red]Could not resolve barcode {barcode}.[/]")
        raise typer.Exit(1)
    console.print(_project_table(project))


@app.command()
def session(
    session_id: str = typer.Option(
        "cli", "--session-id", help="Session identifier"
    ),
    barcode: Optional[str] = typer.Option(
        None, "--barcode", "-b", help="Use this barcode instead of the barcode source"
    ),
) -> None:
    """Walk through a project interactively."""
    from handyman_agent.core.orchestrator import Orchestrator

    store = _open_store()

    async def run() -> None:
        orchestrator = Orchestrator(
            _build_context(store),
            display=ConsoleDisplay(console),
            barcode=barcode,
        )
        try:
            queued = await orchestrator.start()
            if queued:
                console.print(f"[dim]Uploaded {queued} queued projects[/]")
            console.print(Panel(await orchestrator.connect(session_id)))
            while True:
                text = await asyncio.to_thread(console.input, "[bold]> [/]")
                if text.strip().lower() in EXIT_WORDS:
                    break
                console.print(Panel(await orchestrator.handle(session_id, text)))
            orchestrator.disconnect(session_id)
        finally:
            await orchestrator.aclose()

    try:
        asyncio.run(run())
    except (KeyboardInterrupt, EOFError):
        console.print("\n[dim]Session ended.[/]")
    finally:
        store.close()


@app.command("barcode")
def barcode_cmd(
    wait: bool = typer.Option(
        False, "--wait", "-w", help="Wait for a barcode different from the current one"
    ),
) -> None:
    """Show the current barcode from the barcode source."""
    from handyman_agent.config import load_settings
    from handyman_agent.data.token_source import TokenSource

    store = _open_store()
    settings = load_settings(store)
    store.close()
    if not settings.token_url:
        console.print(
            "[red]No barcode source configured.[/]\n"
            "Set it with: handyman config set token-url <url>"
        )
        raise typer.Exit(1)

    async def run() -> Optional[str]:
        source = TokenSource(settings.token_url, ttl=settings.token_ttl, timeout=settings.timeout)
        try:
            current = await source.current()
            if not wait:
                return current
            console.print(f"[dim]Current barcode: {current or '(none)'}; waiting...[/]")
            return await source.wait_for_change(current)
        finally:
            await source.aclose()

    value = asyncio.run(run())
    if value is None:
        console.print("[yellow]No barcode available.[/]")
        raise typer.Exit(1)
    console.print(value)


@app.command()
def product() -> None:
    """Show the hosted product and its assembly summary."""
    from handyman_agent.config import load_settings
    from handyman_agent.data.hosted import HostedDataset

    store = _open_store()
    settings = load_settings(store)
    store.close()
    if not settings.dataset_url:
        console.print(
            "[red]No hosted dataset configured.[/]\n"
            "Set it with: handyman config set dataset-url <url>"
        )
        raise typer.Exit(1)

    async def run():
        hosted = HostedDataset(settings.dataset_url, timeout=settings.timeout)
        try:
            project = await hosted.load_project()
            return hosted.summary(), project
        finally:
            await hosted.aclose()

    summary, project = asyncio.run(run())
    console.print(Panel(summary, title="Hosted product"))
    if project is not None:
        console.print(_project_table(project))


@app.command()
def status() -> None:
    """Show configured providers and limited-mode warnings."""
    from handyman_agent.config import describe_limitations, load_settings
    from handyman_agent.core.llm import GenerationClient

    store = _open_store()
    settings = load_settings(store)
    pending = len(store.get_pending_uploads())
    store.close()

    table = Table(title="Providers")
    table.add_column("Role", style="cyan")
    table.add_column("Provider", style="green")
    table.add_column("Configured")

    def mark(ok: bool) -> str:
        return "[green]yes[/]" if ok else "[red]no[/]"

    steps_llm = GenerationClient(settings.model)
    query_llm = GenerationClient(settings.query_model)
    table.add_row("Steps", f"{steps_llm.provider_name} ({settings.model})", mark(steps_llm.is_configured))
    table.add_row("Queries", f"{query_llm.provider_name} ({settings.query_model})", mark(query_llm.is_configured))
    if settings.search_provider == "duckduckgo":
        from handyman_agent.search.duckduckgo import DuckDuckGoSearch

        table.add_row("Search", "duckduckgo", mark(DuckDuckGoSearch().is_configured))
    else:
        table.add_row("Search", "serpapi", mark(bool(settings.serpapi_key)))
    table.add_row("Neural search", "exa", mark(bool(settings.exa_key)))
    table.add_row("Barcode source", settings.token_url or "-", mark(bool(settings.token_url)))
    table.add_row("Hosted dataset", settings.dataset_url or "-", mark(bool(settings.dataset_url)))
    table.add_row("Object store", settings.object_store, f"{pending} queued")
    console.print(table)

    limitations = describe_limitations(settings)
    if limitations:
        console.print("\n[bold]Limited mode:[/]")
        for warning in limitations:
            console.print(f"  [yellow]{warning}[/]")


@app.command()
def config(
    action: str = typer.Argument(
        "get", help="Action: get or set"
    ),
    key: Optional[str] = typer.Argument(
        None, help="Config key (model, query-model, search-provider, ...)"
    ),
    value: Optional[str] = typer.Argument(
        None, help="Value to set"
    ),
) -> None:
    """View or modify configuration."""
    from handyman_agent.config import CONFIG_KEYS, resolve_value, validate

    store = _open_store()

    try:
        if action == "get":
            if key:
                if key not in CONFIG_KEYS:
                    console.print(f"[red]Unknown config key: {key}[/]")
                    raise typer.Exit(1)
                val = resolve_value(key, store)
                if val is not None:
                    console.print(f"{key} = {val}")
                else:
                    console.print(f"[yellow]{key} is not set[/]")
            else:
                for k in CONFIG_KEYS:
                    val = resolve_value(k, store)
                    console.print(f"{k} = {val or '(not set)'}")
        elif action == "set":
            if not key or value is None:
                console.print("[red]Usage: handyman config set <key> <value>[/]")
                raise typer.Exit(1)
            error = validate(key, value)
            if error:
                console.print(f"[red]{error}[/]")
                raise typer.Exit(1)
            store.set_config(key, value)
            console.print(f"[green]Set {key} = {value}[/]")
        else:
            console.print("[red]Unknown action. Use 'get' or 'set'.[/]")
            raise typer.Exit(1)
    finally:
        store.close()


@app.command()
def history(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of entries"),
) -> None:
    """List recently resolved barcodes."""
    store = _open_store()
    rows = store.recent_resolutions(limit)
    store.close()
    if not rows:
        console.print("[yellow]No resolutions yet.[/]")
        return

    table = Table(title="Recent resolutions")
    table.add_column("Resolved", style="dim")
    table.add_column("Barcode", style="cyan")
    table.add_column("Product", style="green")
    table.add_column("Steps", justify="right")
    table.add_column("Manual")
    for row in rows:
        table.add_row(
            row["resolved_at"],
            row["barcode"],
            row["product_title"],
            str(row["step_count"]),
            row["manual_url"] or "-",
        )
    console.print(table)


@app.command()
def flush() -> None:
    """Upload projects queued while the object store was unreachable."""
    store = _open_store()
    context = _build_context(store)
    if context.object_store is None:
        store.close()
        console.print("[yellow]No object store configured.[/]")
        raise typer.Exit(1)

    from handyman_agent.data.object_store import flush_uploads

    async def run() -> int:
        try:
            return await flush_uploads(context.object_store, store)
        finally:
            await context.aclose()

    uploaded = asyncio.run(run())
    remaining = len(store.get_pending_uploads())
    store.close()
    console.print(f"[green]Uploaded {uploaded}[/], {remaining} still queued")


@app.command()
def version() -> None:
    """Print version."""
    console.print(f"handyman-connector {handyman_agent.__version__}")


if __name__ == "__main__":
    app()
