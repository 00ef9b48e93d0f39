"""
bookgraph CLI - search books and print recommendation graphs
"""

from __future__ import annotations

import asyncio
import json

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from bookgraph import __version__
from bookgraph.clients.openlibrary import OpenLibraryClient
from bookgraph.errors import LookupFailure, NotFound
from bookgraph.graph import GraphData
from bookgraph.session import BookSession
from bookgraph.settings import configure_logging

console = Console()


@click.group()
@click.option("--log-level", default=None, help="Override BOOKGRAPH_LOG_LEVEL")
def cli(log_level):
    """bookgraph - related books from Open Library subjects"""
    configure_logging(log_level)


@cli.command()
def version():
    """Print the package version"""
    click.echo(__version__)


@cli.command()
@click.argument("query")
@click.option("--limit", default=5, help="Number of suggestions")
def suggest(query, limit):
    """Autocomplete a book title"""

    async def _run():
        async with OpenLibraryClient() as client:
            return await client.suggest(query, limit=limit)

    try:
        hits = asyncio.run(_run())
    except LookupFailure as e:
        raise click.ClickException(str(e)) from e

    if not hits:
        console.print("[yellow]No matches[/yellow]")
        return

    table = Table(title=f"Matches for '{escape(query)}'")
    table.add_column("Work", style="cyan")
    table.add_column("Title", style="white", overflow="fold")
    for hit in hits:
        table.add_row(hit.id, escape(hit.title))
    console.print(table)


@cli.command()
@click.argument("titles", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Print the graph as JSON")
def graph(titles, as_json):
    """Build the recommendation graph for one or more book TITLES"""

    async def _run() -> GraphData:
        async with OpenLibraryClient() as client:
            session = BookSession(client)
            try:
                for title in titles:
                    try:
                        await session.add_title(title)
                    except NotFound:
                        console.print(f"[red]Could not find a book for {escape(repr(title))}[/red]")
                return session.graph
            finally:
                await session.aclose()

    try:
        data = asyncio.run(_run())
    except LookupFailure as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps(data.to_dict(), indent=2, ensure_ascii=False))
        return
    _print_graph(data)


@cli.command()
def serve():
    """Run the HTTP API"""
    from bookgraph.server.main import main

    main()


def _print_graph(data: GraphData) -> None:
    roots = [n for n in data.nodes if n.type == "root"]
    recs = [n for n in data.nodes if n.type == "rec"]
    if not roots:
        console.print("[yellow]No books added[/yellow]")
        return

    labels = {n.id: n.label for n in roots}
    console.print("[bold]Books:[/bold] " + ", ".join(escape(n.label) for n in roots))

    if not recs:
        console.print("[yellow]No recommendations found[/yellow]")
        return

    table = Table(title="Recommendations")
    table.add_column("#", style="cyan", width=3)
    table.add_column("Title", style="white", overflow="fold")
    table.add_column("Because of", style="green", overflow="fold")
    table.add_column("Shared", style="magenta", width=6)
    for i, node in enumerate(recs, 1):
        table.add_row(
            str(i),
            f"[bold]{escape(node.label)}[/bold]" if node.is_warm else escape(node.label),
            escape(", ".join(labels[r] for r in node.matching_root_ids)),
            "yes" if node.is_intersection else "",
        )
    console.print(table)


def app() -> None:
    cli()


if __name__ == "__main__":
    app()
