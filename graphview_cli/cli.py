"""Typer-based CLI for GraphView interactive graph exploration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from . import __version__
from .config_manager import load_explore_config, save_explore_config
from .graph import Graph
from .models import GraphStats, VizItem
from .neighbours import DeferredNeighbourFetcher, StoreNeighbourSource
from .render import RichGraphView
from .session import COMMAND_HELP, HOVER, SELECTED, ExploreSession, SessionError, describe, describe_stats, seed_graph
from .storage import DatabaseManager, GraphStore, load_payload_file

console = Console()

app = typer.Typer(
    help="🕸️  GraphView CLI — explore property graphs: select, hover, expand, collapse.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(
    help="⚙️  Configuration — exploration settings.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"GraphView CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
):
    """GraphView CLI: interactive exploration of graph query results."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _open_current_store(dbm: DatabaseManager) -> GraphStore:
    name = dbm.get_current()
    if not name:
        raise typer.BadParameter("No database loaded. Use 'gv load-db <name>' or run 'gv import <file>'.")
    if not dbm.exists(name):
        raise typer.BadParameter(f"Loaded database '{name}' does not exist.")
    return dbm.open_store(name)


@app.command("import")
def import_graph(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with 'nodes' and 'relationships'."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Database name (defaults to the file stem)."),
    replace: bool = typer.Option(False, "--replace", help="Replace the database contents (left untouched if the file is invalid)."),
):
    """Import a graph query result into a local database and make it current."""
    from datetime import datetime

    dbm = DatabaseManager()
    db_name = name or source.stem.replace(" ", "_")
    try:
        payload = load_payload_file(source)
        store = dbm.open_store(db_name)
    except ValueError as exc:
        typer.echo(f"❌ {exc}", err=True)
        raise typer.Exit(code=1)
    counts = store.import_payload(payload, replace=replace)

    store.set_metadata({
        **store.get_metadata(),
        "name": db_name,
        "source_path": str(source.resolve()),
        "imported_at": datetime.now().isoformat(),
    })
    dbm.set_current(db_name)
    totals = store.counts()
    store.close()

    typer.echo(f"Imported '{source}' into database '{db_name}'.")
    typer.echo(f"Nodes: {counts['nodes']} | Relationships: {counts['relationships']}")
    typer.echo(f"Database now holds {totals['nodes']} nodes and {totals['relationships']} relationships.")


@app.command("list-dbs")
def list_dbs():
    """List all local graph databases."""
    dbm = DatabaseManager()
    databases = dbm.list_databases()
    current = dbm.get_current()

    if not databases:
        typer.echo("No databases imported yet.")
        raise typer.Exit(code=0)

    for db in databases:
        marker = "*" if db == current else " "
        typer.echo(f"{marker} {db}")


@app.command("load-db")
def load_db(name: str = typer.Argument(..., help="Name of the database to make current.")):
    """Switch the active database."""
    dbm = DatabaseManager()
    if not dbm.exists(name):
        raise typer.BadParameter(f"Database '{name}' not found.")
    dbm.set_current(name)
    typer.echo(f"Loaded database '{name}'.")


@app.command("delete-db")
def delete_db(name: str = typer.Argument(..., help="Database to delete.")):
    """Delete a local database."""
    if not DatabaseManager().delete(name):
        raise typer.BadParameter(f"Database '{name}' not found.")
    typer.echo(f"Deleted database '{name}'.")


@app.command("current-db")
def current_db():
    """Print the active database name."""
    typer.echo(DatabaseManager().get_current() or "No database loaded")


def _print_notification(channel: str, payload: Any) -> None:
    if isinstance(payload, VizItem):
        style = "cyan" if channel == HOVER else "green" if channel == SELECTED else "white"
        console.print(f"[{style}]{channel:>8}[/{style}] {escape(describe(payload))}")
    elif isinstance(payload, GraphStats):
        console.print(f"[yellow]{channel:>8}[/yellow] {escape(describe_stats(payload))}")


def _print_help() -> None:
    table = Table(title="Commands", show_header=False)
    table.add_column("command", style="cyan")
    table.add_column("description")
    for cmd, text in COMMAND_HELP.items():
        table.add_row(escape(cmd), escape(text))
    table.add_row("help", "show this list")
    table.add_row("quit", "leave the session")
    console.print(table)


@app.command("explore")
def explore(
    start_ids: Optional[List[str]] = typer.Argument(None, help="Node ids to start from (default: first N nodes)."),
    script: Optional[Path] = typer.Option(None, "--script", "-s", exists=True, dir_okay=False, help="Replay commands from a file instead of prompting."),
    deferred: Optional[bool] = typer.Option(None, "--deferred/--immediate", help="Hold neighbour fetches until 'resolve'."),
    stale_expansions: Optional[str] = typer.Option(None, "--stale-expansions", help="apply or discard late expansion results."),
    live: bool = typer.Option(False, "--live", help="Redraw tables on every refresh."),
):
    """Explore the current database interactively (or replay a command script)."""
    settings = load_explore_config()
    if stale_expansions is not None:
        settings["stale_expansions"] = stale_expansions
    if deferred is not None:
        settings["deferred_fetch"] = deferred

    store = _open_current_store(DatabaseManager())

    graph = Graph()
    view = RichGraphView(graph, console=console, live=live)
    fetch = StoreNeighbourSource(store, max_neighbours=settings["max_neighbours"])
    if settings["deferred_fetch"]:
        fetch = DeferredNeighbourFetcher(fetch)

    try:
        session = ExploreSession(
            graph, view, fetch,
            stale_expansions=settings["stale_expansions"],
            listener=_print_notification,
        )
    except ValueError as exc:
        store.close()
        raise typer.BadParameter(str(exc))

    try:
        seed_graph(graph, store, start_ids or store.first_node_ids(settings["initial_nodes"]))
    except SessionError as exc:
        store.close()
        raise typer.BadParameter(str(exc))
    session.start()

    try:
        if script is not None:
            lines = script.read_text(encoding="utf-8").splitlines()
            try:
                session.run_script(lines, echo=lambda message: console.print(escape(message)))
            except SessionError as exc:
                typer.echo(f"❌ {exc}", err=True)
                raise typer.Exit(code=1)
            return

        console.print("[dim]Type 'help' for commands, 'quit' to leave.[/dim]")
        while True:
            line = Prompt.ask("[bold]gv[/bold]", default="quit").strip()
            if line in {"quit", "exit", "q"}:
                break
            if line == "help":
                _print_help()
                continue
            try:
                message = session.execute(line)
            except SessionError as exc:
                console.print(f"[red]{escape(str(exc))}[/red]")
                continue
            if message:
                console.print(escape(message))
    finally:
        store.close()


# ------------------------------------------------------------------
# config
# ------------------------------------------------------------------

@config_app.command("show")
def config_show():
    """Show exploration settings."""
    settings = load_explore_config()
    for key, value in settings.items():
        typer.echo(f"{key} = {value}")


@config_app.command("set")
def config_set(
    stale_expansions: Optional[str] = typer.Option(None, help="apply or discard late expansion results."),
    max_neighbours: Optional[int] = typer.Option(None, help="Maximum new neighbours per expansion."),
    initial_nodes: Optional[int] = typer.Option(None, help="Nodes shown when exploring without start ids."),
    deferred_fetch: Optional[bool] = typer.Option(None, "--deferred-fetch/--immediate-fetch", help="Hold fetches until resolved."),
):
    """Update exploration settings in config.toml."""
    try:
        settings = save_explore_config(
            stale_expansions=stale_expansions,
            max_neighbours=max_neighbours,
            initial_nodes=initial_nodes,
            deferred_fetch=deferred_fetch,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    typer.echo("Saved settings:")
    for key, value in settings.items():
        typer.echo(f"{key} = {value}")


if __name__ == "__main__":
    app()
