#!/usr/bin/env python3
"""
kbgraph CLI - inspect a knowledge base's graph from the terminal
"""

from __future__ import annotations

import asyncio
import json
import logging

import click
import httpx
from rich.console import Console
from rich.table import Table

from kbgraph.client import KnowledgeGraphClient
from kbgraph.errors import GraphClientError
from kbgraph.models import Entity, KnowledgeGraph
from kbgraph.settings import settings

console = Console()


def _configure_logging() -> None:
    level = (settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _run(coro_fn):
    """Run `coro_fn(client)` with a fresh client; report client and HTTP errors and exit 1."""

    async def _main():
        async with KnowledgeGraphClient() as client:
            return await coro_fn(client)

    try:
        return asyncio.run(_main())
    except GraphClientError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1)
    except httpx.HTTPError as e:
        console.print(f"[red]Request failed: {e}[/red]")
        raise SystemExit(1)


def _entity_table(entities: list[Entity], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Type", style="magenta")
    table.add_column("Description")
    for e in entities:
        desc = e.description[:80] + "..." if len(e.description) > 80 else e.description
        table.add_row(str(e.id), e.name, e.entity_type.value, desc)
    return table


def _print_graph(graph: KnowledgeGraph, title: str) -> None:
    console.print(_entity_table(graph.entities, title))

    table = Table(title="Relationships")
    table.add_column("ID", style="cyan")
    table.add_column("Source")
    table.add_column("Target")
    table.add_column("Weight", justify="right")
    for r in graph.relationships:
        table.add_row(str(r.id), str(r.source_entity_id), str(r.target_entity_id), f"{r.weight:g}")
    console.print(table)


@click.group()
def cli():
    """kbgraph - browse knowledge-base graphs"""
    _configure_logging()


@cli.command()
def version():
    """Print the package version"""
    from kbgraph import __version__

    click.echo(__version__)


@cli.command()
@click.argument("kb_id", type=int)
@click.option("--out", type=click.Path(dir_okay=False, writable=True), help="Write the graph as JSON")
def stream(kb_id: int, out: str | None):
    """Stream the entire graph of a knowledge base"""

    async def go(client: KnowledgeGraphClient):
        coordinator = client.open_graph_stream(kb_id)
        graph = await coordinator.run()
        return graph, coordinator

    graph, coordinator = _run(go)

    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(graph.model_dump_json(indent=2))
        console.print(f"[green]✓ Wrote graph to {out}[/green]")

    status = "complete" if coordinator.terminated_by_server else "[yellow]connection closed early[/yellow]"
    console.print(
        f"Entities: {len(graph.entities):,}  Relationships: {len(graph.relationships):,}  ({status})"
    )
    if coordinator.malformed_frames:
        console.print(f"[yellow]Skipped {coordinator.malformed_frames} malformed frame(s)[/yellow]")
    if coordinator.rejected_records:
        console.print(f"[yellow]Dropped {coordinator.rejected_records} invalid record(s)[/yellow]")


@cli.command()
@click.argument("kb_id", type=int)
@click.argument("entity_id", type=int)
def entity(kb_id: int, entity_id: int):
    """Show one entity"""
    e = _run(lambda client: client.get_entity(kb_id, entity_id))
    console.print_json(e.model_dump_json())


@cli.command("search-entities")
@click.argument("kb_id", type=int)
@click.argument("query")
@click.option("--top-k", default=10, help="Number of results")
def search_entities(kb_id: int, query: str, top_k: int):
    """Search entities by text"""
    results = _run(lambda client: client.search_entity(kb_id, query, top_k=top_k))
    if not results:
        console.print("[yellow]No results found[/yellow]")
        return
    console.print(_entity_table(results, f"Search Results for '{query}'"))


@cli.command()
@click.argument("kb_id", type=int)
@click.argument("relationship_id", type=int)
def relationship(kb_id: int, relationship_id: int):
    """Show one relationship"""
    r = _run(lambda client: client.get_relationship(kb_id, relationship_id))
    console.print_json(json.dumps(r.model_dump(mode="json")))


@cli.command()
@click.argument("kb_id", type=int)
@click.argument("entity_id", type=int)
def subgraph(kb_id: int, entity_id: int):
    """Show the neighbourhood of an entity"""
    graph = _run(lambda client: client.get_entity_subgraph(kb_id, entity_id))
    _print_graph(graph, f"Subgraph of entity {entity_id}")


if __name__ == "__main__":
    cli()
