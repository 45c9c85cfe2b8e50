"""
ERPChat CLI

Command-line interface for conversational analytics over Frappe/ERPNext.

Usage:
    erpchat chat                                   # Interactive mode
    erpchat ask "Top 5 customers by revenue"       # Single question
    erpchat connect https://erp.example.com --api-key KEY --api-secret SECRET
    erpchat status                                 # Show session status
    erpchat schema                                 # List known DocTypes
    erpchat memory add "Fiscal year starts in April"
    erpchat export chat --format csv               # Download the chat log
    erpchat reset                                  # Back to demo mode
    erpchat serve --port 8000                      # Run the HTTP API
"""

import asyncio
import logging
import subprocess
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from erpchat import __version__
from erpchat.config import get_settings
from erpchat.conversations.store import JsonFileSessionStore
from erpchat.models import ChartDescriptor, Message, SessionConfig
from erpchat.pipeline.session import ConversationSession
from erpchat.utils.export import (
    chart_filename,
    chart_to_csv,
    chart_to_json,
    chat_filename,
    chat_to_csv,
    chat_to_json,
)

console = Console()

EXIT_COMMANDS = {"exit", "quit", "q", "bye"}
MAX_CHART_ROWS = 20


def configure_cli_logging() -> None:
    """Keep library and pipeline logs out of the terminal UI."""
    logging.disable(logging.CRITICAL)
    for name in ("erpchat", "httpx", "httpcore", "openai", "google", "grpc"):
        logging.getLogger(name).setLevel(logging.CRITICAL)


def create_session() -> ConversationSession:
    """Build a session backed by the configured store file."""
    try:
        settings = get_settings()
        store = JsonFileSessionStore(settings.store.path)
        return ConversationSession(store=store)
    except ValidationError as e:
        console.print("[red]Invalid configuration:[/red]")
        for error in e.errors():
            console.print(f"  [red]•[/red] {escape(error['msg'])}")
        console.print("[dim]Check your environment variables or .env file.[/dim]")
        sys.exit(1)


def _should_exit_chat(text: str) -> bool:
    return text.strip().lower() in EXIT_COMMANDS


def render_chart(chart: ChartDescriptor) -> None:
    """Print chart data as a table."""
    table = Table(title=chart.title, show_header=True, header_style="bold cyan")
    columns = [chart.x_axis_key, *chart.series_keys]
    for column in columns:
        table.add_column(column)
    for row in chart.data[:MAX_CHART_ROWS]:
        cells = [row.get(column) for column in columns]
        table.add_row(*["" if cell is None else escape(str(cell)) for cell in cells])
    console.print(table)
    if len(chart.data) > MAX_CHART_ROWS:
        console.print(f"[dim]... {len(chart.data) - MAX_CHART_ROWS} more rows[/dim]")


def render_message(message: Message) -> None:
    """Display one bot message."""
    if message.is_error:
        console.print(
            Panel(
                escape(message.text),
                title=f"[bold red]Error[/bold red] ({message.error_type or 'unknown'})",
                border_style="red",
            )
        )
        console.print(f"[dim]Retry with: erpchat retry {message.id}[/dim]")
        return

    console.print(Panel(Markdown(message.text), title="[bold green]Answer[/bold green]"))
    if message.visualization is not None:
        console.print(f"[dim]Chart message id: {message.id}[/dim]")
        render_chart(message.visualization)
    if message.suggested_questions:
        console.print("\n[bold cyan]You could also ask:[/bold cyan]")
        for question in message.suggested_questions:
            console.print(f"  • {escape(question)}")


async def _ask(session: ConversationSession, text: str) -> Message | None:
    status = console.status("[cyan]Initializing...[/cyan]", spinner="dots")

    async def on_update(message: Message) -> None:
        if message.is_thinking and message.status_message:
            status.update(f"[cyan]{message.status_message}[/cyan]")

    session.on_update = on_update
    with status:
        return await session.submit(text)


@click.group()
@click.version_option(version=__version__, prog_name="ERPChat")
def cli():
    """ERPChat - Conversational analytics for Frappe/ERPNext."""
    configure_cli_logging()


@cli.command()
def chat():
    """Interactive REPL mode for conversations."""
    console.print(
        Panel.fit(
            "[bold green]ERPChat Interactive Mode[/bold green]\n"
            "Ask questions in natural language. Type 'exit' or 'quit' to leave.",
            border_style="green",
        )
    )

    async def run_chat():
        session = create_session()
        await session.restore()
        mode = session.config.url if session.config else "demo mode"
        console.print(f"[dim]Session: {mode}[/dim]\n")

        while True:
            try:
                text = console.input("[bold cyan]You:[/bold cyan] ")
                if not text.strip():
                    continue
                if _should_exit_chat(text):
                    console.print("\n[yellow]Goodbye![/yellow]")
                    break

                reply = await _ask(session, text)
                if reply is not None:
                    render_message(reply)
            except KeyboardInterrupt:
                console.print("\n[yellow]Interrupted. Type 'exit' to quit.[/yellow]")
                continue
            except EOFError:
                console.print("\n[yellow]Goodbye![/yellow]")
                break

    asyncio.run(run_chat())


@cli.command()
@click.argument("query")
def ask(query: str):
    """Ask a single question and exit."""

    async def run_query():
        session = create_session()
        await session.restore()
        return await _ask(session, query)

    reply = asyncio.run(run_query())
    if reply is None:
        console.print("[yellow]Nothing to ask.[/yellow]")
        return
    render_message(reply)
    if reply.is_error:
        sys.exit(1)


@cli.command()
@click.argument("message_id")
def retry(message_id: str):
    """Re-run the question behind a failed answer."""

    async def run_retry():
        session = create_session()
        await session.restore()
        return await session.retry(message_id)

    try:
        reply = asyncio.run(run_retry())
    except KeyError:
        console.print(f"[red]No failed message with id {message_id}[/red]")
        sys.exit(1)
    if reply is not None:
        render_message(reply)


@cli.command()
@click.argument("url")
@click.option("--api-key", required=True, help="Frappe API key")
@click.option("--api-secret", required=True, help="Frappe API secret")
def connect(url: str, api_key: str, api_secret: str):
    """Connect to a Frappe site.

    Example:
        erpchat connect https://erp.example.com --api-key KEY --api-secret SECRET
    """
    try:
        config = SessionConfig(url=url, api_key=api_key, api_secret=api_secret)
    except ValueError as e:
        console.print(f"[red]Invalid connection settings: {escape(str(e))}[/red]")
        sys.exit(1)

    async def run_connect():
        session = create_session()
        session.load()
        return await session.connect(config)

    with console.status("[cyan]Connecting...[/cyan]", spinner="dots"):
        outcome = asyncio.run(run_connect())

    if not outcome.success:
        console.print(f"[red]✗ {outcome.message}[/red]")
        sys.exit(1)
    if outcome.tables_loaded:
        console.print(f"[green]✓ Connected to {config.url}[/green]")
        console.print(f"DocTypes: {outcome.table_count}")
    else:
        console.print(f"[yellow]⚠ {escape(outcome.message)}[/yellow]")


@cli.command()
def status():
    """Show session status."""
    session = create_session()
    session.load()
    settings = get_settings()

    table = Table(title="ERPChat Status", show_header=True, header_style="bold cyan")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    table.add_row("Configuration", "✓", f"Environment: {settings.environment}")
    provider = settings.llm.default_provider
    model = settings.llm.google_model if provider == "google" else settings.llm.openai_model
    table.add_row("LLM", "✓", f"{provider} ({model})")
    if session.config:
        table.add_row("Connection", "✓", session.config.url)
    else:
        table.add_row("Connection", "⚠", "Demo mode (no Frappe site connected)")
    table.add_row("History", "✓", f"{len(session.messages)} messages")
    table.add_row("Memory", "✓", f"{len(session.memory)} facts")
    table.add_row("Store", "✓", str(settings.store.path))

    console.print(table)


@cli.command()
def schema():
    """List the DocTypes the assistant can query."""

    async def load_directory():
        session = create_session()
        await session.restore()
        return session

    session = asyncio.run(load_directory())
    directory = session.directory
    title = "Demo Schema" if directory.is_demo else f"DocTypes on {session.config.url}"
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("DocType", style="cyan")
    table.add_column("Fields")
    for entry in directory.entries:
        fields = ", ".join(entry.field_names) if entry.is_loaded else "[dim]not loaded[/dim]"
        table.add_row(entry.name, fields)
    console.print(table)


@cli.command()
@click.confirmation_option(prompt="Clear chat history, connection and memory?")
def reset():
    """Clear the session and return to demo mode."""
    session = create_session()
    session.reset()
    console.print("[green]✓ Session reset to demo mode[/green]")


@cli.group()
def memory():
    """Manage long-term memory facts."""


@memory.command("list")
def memory_list():
    """Show stored facts."""
    session = create_session()
    session.load()
    if not session.memory:
        console.print("[yellow]No facts stored.[/yellow]")
        return
    for index, fact in enumerate(session.memory):
        console.print(f"[cyan]{index}[/cyan]  {escape(fact)}")


@memory.command("add")
@click.argument("fact")
def memory_add(fact: str):
    """Store a fact the assistant should always consider."""
    session = create_session()
    session.load()
    try:
        session.add_memory(fact)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ Remembered ({len(session.memory)} facts)[/green]")


@memory.command("remove")
@click.argument("index", type=int)
def memory_remove(index: int):
    """Forget the fact at INDEX."""
    session = create_session()
    session.load()
    try:
        removed = session.remove_memory(index)
    except IndexError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)
    console.print(f"[green]✓ Forgot: {escape(removed)}[/green]")


@cli.group()
def export():
    """Export the chat log or chart data."""


@export.command("chat")
@click.option("--format", "fmt", type=click.Choice(["csv", "json"]), default="csv", show_default=True)
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None)
def export_chat(fmt: str, output: Path | None):
    """Write the chat log to a file."""
    session = create_session()
    session.load()
    content = chat_to_csv(session.messages) if fmt == "csv" else chat_to_json(session.messages)
    path = output or Path(chat_filename(fmt))
    path.write_text(content, encoding="utf-8")
    console.print(f"[green]✓ Exported {len(session.messages)} messages to {path}[/green]")


@export.command("chart")
@click.argument("message_id")
@click.option("--format", "fmt", type=click.Choice(["csv", "json"]), default="csv", show_default=True)
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None)
def export_chart(message_id: str, fmt: str, output: Path | None):
    """Write the data behind one chart to a file."""
    session = create_session()
    session.load()
    message = next((m for m in session.messages if m.id == message_id), None)
    if message is None or message.visualization is None:
        console.print(f"[red]No chart found for message {message_id}[/red]")
        sys.exit(1)

    chart = message.visualization
    try:
        content = chart_to_csv(chart) if fmt == "csv" else chart_to_json(chart)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)
    path = output or Path(chart_filename(chart, fmt))
    path.write_text(content, encoding="utf-8")
    console.print(f"[green]✓ Exported {len(chart.data)} rows to {path}[/green]")


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Restart on code changes.")
def serve(host: str, port: int, reload: bool):
    """Run the HTTP API with uvicorn."""
    command = [
        sys.executable,
        "-m",
        "uvicorn",
        "erpchat.api.main:app",
        "--host",
        host,
        "--port",
        str(port),
    ]
    if reload:
        command.append("--reload")
    console.print(f"[cyan]Starting API:[/cyan] {' '.join(command)}")
    try:
        subprocess.run(command, check=False)
    except KeyboardInterrupt:
        console.print("\n[yellow]API stopped[/yellow]")


if __name__ == "__main__":
    cli()
