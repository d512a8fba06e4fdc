"""Answering pending questions between invocations."""

import sys

import click
from rich.console import Console
from rich.markup import escape

from cli.utils import clear_pending, get_components, load_pending, render_response
from matching.disambiguation import DisambiguationContext, option_letter
from matching.errors import ContextError
from shared_types import ContextKind

console = Console()


@click.command()
@click.argument("answer", nargs=-1, required=True)
def reply(answer: tuple[str, ...]):
    """Answer the pending question (Y/N or a letter)."""
    c = get_components()
    context = load_pending(c["context_file"])
    if context is None:
        console.print("[yellow]Nothing is waiting for an answer.[/]")
        sys.exit(1)

    response = c["engine"].handle_reply(context, " ".join(answer))
    if not render_response(response, c["context_file"]):
        sys.exit(1)


@click.group()
def pending():
    """Inspect or drop the pending question."""
    pass


@pending.command("show")
def pending_show():
    """Show the question waiting for an answer."""
    c = get_components()
    data = load_pending(c["context_file"])
    if data is None:
        console.print("[dim]No pending question.[/]")
        return

    try:
        context = DisambiguationContext.from_dict(data)
    except ContextError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        console.print("[dim]Run 'taskresolver pending clear' to drop it.[/]")
        sys.exit(1)

    console.print(f"[bold]{context.kind.capitalize()}[/] for [cyan]{context.action}[/] \"{escape(context.query)}\"")
    for i, candidate in enumerate(context.pending_candidates):
        score = f" - {context.scores[i]}% confidence" if context.scores else ""
        label = "" if context.kind == ContextKind.CONFIRMATION else f"{option_letter(i)}. "
        console.print(f"  {label}{escape(candidate.text)} ({candidate.kind}){score}")
    if context.steps:
        console.print(f"[dim]{len(context.steps)} step(s) waiting[/]")


@pending.command("clear")
def pending_clear():
    """Drop the pending question."""
    c = get_components()
    if clear_pending(c["context_file"]):
        console.print("[green]Pending question cleared.[/]")
    else:
        console.print("[dim]No pending question.[/]")
