"""Task CLI commands: add, complete, delete, edit, list, status."""

import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cli.utils import get_components, render_response

console = Console()

KIND_CHOICE = click.Choice(["work", "personal"])


def _run(response, c: dict) -> None:
    if not render_response(response, c["context_file"]):
        sys.exit(1)


@click.command()
@click.argument("text", nargs=-1, required=True)
@click.option("-k", "--kind", type=KIND_CHOICE, default="personal", help="Task kind")
@click.option("-i", "--item", "items", multiple=True, help="List item (repeat to create a list)")
def add(text: tuple[str, ...], kind: str, items: tuple[str, ...]):
    """Add a task, or a list when --item is given."""
    c = get_components()
    _run(c["engine"].add_record(" ".join(text), kind=kind, items=items), c)


@click.command()
@click.argument("query", nargs=-1, required=True)
@click.option("-k", "--kind", type=KIND_CHOICE, help="Only match tasks of this kind")
def complete(query: tuple[str, ...], kind: str | None):
    """Toggle completion of the task best matching QUERY."""
    c = get_components()
    _run(c["engine"].handle_action("complete", " ".join(query), kind=kind), c)


@click.command()
@click.argument("query", nargs=-1, required=True)
@click.option("-k", "--kind", type=KIND_CHOICE, help="Only match tasks of this kind")
def delete(query: tuple[str, ...], kind: str | None):
    """Delete the task best matching QUERY."""
    c = get_components()
    _run(c["engine"].handle_action("delete", " ".join(query), kind=kind), c)


@click.command()
@click.argument("query", nargs=-1, required=True)
@click.option("--to", "new_text", required=True, help="Replacement text")
@click.option("-k", "--kind", type=KIND_CHOICE, help="Only match tasks of this kind")
def edit(query: tuple[str, ...], new_text: str, kind: str | None):
    """Rename the task best matching QUERY."""
    c = get_components()
    _run(c["engine"].handle_action("edit", " ".join(query), payload=new_text, kind=kind), c)


@click.command("list")
@click.option("-k", "--kind", type=KIND_CHOICE, help="Only show tasks of this kind")
def list_tasks(kind: str | None):
    """List stored tasks."""
    c = get_components()
    response = c["engine"].list_records(kind)
    if not response.success:
        console.print(f"[red]{escape(response.message)}[/]")
        sys.exit(1)

    records = response.result.data
    if not records:
        console.print("[yellow]No tasks found.[/]")
        return

    table = Table(title=response.message, show_header=True)
    table.add_column("Kind", style="cyan")
    table.add_column("Task")
    table.add_column("Done", justify="center")
    table.add_column("Items", justify="right", style="dim")

    for r in records:
        done = sum(1 for i in r.sub_items if i.completed)
        items = f"{done}/{len(r.sub_items)}" if r.sub_items else ""
        table.add_row(str(r.kind), escape(r.text), "[green]✓[/]" if r.completed else "", items)

    console.print(table)


@click.command()
def status():
    """Show completion counts per kind."""
    c = get_components()
    response = c["engine"].status()
    if not response.success:
        console.print(f"[red]{escape(response.message)}[/]")
        sys.exit(1)

    table = Table(show_header=True)
    table.add_column("Kind", style="cyan")
    table.add_column("Completed", justify="right", style="green")
    table.add_column("Total", justify="right")
    for kind, counts in response.result.data.items():
        table.add_row(kind, str(counts["completed"]), str(counts["total"]))
    console.print(table)


@click.command()
def capabilities():
    """Show what this setup can and cannot do."""
    c = get_components()
    response = c["engine"].describe_capabilities()
    for name, enabled in response.result.data.items():
        mark = "[green]✓[/]" if enabled else "[red]✗[/]"
        console.print(f"  {mark} {name}")
    console.print(f"\n{escape(response.message)}")
