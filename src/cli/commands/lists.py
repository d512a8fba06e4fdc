"""List CLI commands: item edits, compound modify, show."""

import sys

import click
from pydantic import ValidationError
from rich.console import Console

from cli.utils import get_components, render_response
from matching.models import OperationStep
from shared_types import StepAction

console = Console()

KIND_CHOICE = click.Choice(["work", "personal"])

STEP_VERBS = {
    "add": StepAction.ADD_ITEM,
    "remove": StepAction.REMOVE_ITEM,
    "delete": StepAction.DELETE,
    "toggle": StepAction.TOGGLE_ITEM,
    "complete": StepAction.COMPLETE,
    "edit": StepAction.EDIT,
}


def parse_step(raw: str) -> OperationStep:
    """Parse "verb:item text" (or "edit:old text=>new text") into a step.

    Raises:
        click.BadParameter: unknown verb or missing text
    """
    verb, sep, text = raw.partition(":")
    action = STEP_VERBS.get(verb.strip().lower())
    if not sep or action is None:
        raise click.BadParameter(
            f'"{raw}" is not a step. Use one of {", ".join(STEP_VERBS)} followed by ":item text"'
        )

    payload = None
    if action == StepAction.EDIT:
        text, arrow, payload = text.partition("=>")
        if not arrow:
            raise click.BadParameter(f'Edit steps look like "edit:old text=>new text", got "{raw}"')

    try:
        return OperationStep(action=action, target_text=text, payload=payload.strip() if payload else None)
    except ValidationError:
        raise click.BadParameter(f'Step "{raw}" has no item text')


def _run(response, c: dict) -> None:
    if not render_response(response, c["context_file"]):
        sys.exit(1)


@click.group()
def item():
    """Add, remove or toggle one item on a list."""
    pass


@item.command("add")
@click.argument("list_query")
@click.argument("text")
@click.option("-k", "--kind", type=KIND_CHOICE, help="Only match lists of this kind")
def item_add(list_query: str, text: str, kind: str | None):
    """Add TEXT to the list best matching LIST_QUERY."""
    c = get_components()
    _run(c["engine"].handle_action("add_item", list_query, payload=text, kind=kind), c)


@item.command("remove")
@click.argument("list_query")
@click.argument("text")
@click.option("-k", "--kind", type=KIND_CHOICE, help="Only match lists of this kind")
def item_remove(list_query: str, text: str, kind: str | None):
    """Remove the item matching TEXT from a list."""
    c = get_components()
    _run(c["engine"].handle_action("remove_item", list_query, payload=text, kind=kind), c)


@item.command("toggle")
@click.argument("list_query")
@click.argument("text")
@click.option("-k", "--kind", type=KIND_CHOICE, help="Only match lists of this kind")
def item_toggle(list_query: str, text: str, kind: str | None):
    """Flip completion of the item matching TEXT."""
    c = get_components()
    _run(c["engine"].handle_action("toggle_item", list_query, payload=text, kind=kind), c)


@click.command()
@click.argument("list_query")
@click.argument("steps", nargs=-1, required=True)
@click.option("-k", "--kind", type=KIND_CHOICE, help="Only match lists of this kind")
def modify(list_query: str, steps: tuple[str, ...], kind: str | None):
    """Apply several item edits to one list, in order.

    \b
    Example:
      taskresolver modify "grocery list" "remove:Greek yogurt" "add:Apples"
    """
    parsed = [parse_step(raw) for raw in steps]
    c = get_components()
    _run(c["engine"].handle_compound(list_query, parsed, kind=kind), c)


@click.command()
@click.argument("list_query", nargs=-1, required=True)
@click.option("-k", "--kind", type=KIND_CHOICE, help="Only match lists of this kind")
def show(list_query: tuple[str, ...], kind: str | None):
    """Show pending and completed items of a list."""
    c = get_components()
    _run(c["engine"].show_list(" ".join(list_query), kind=kind), c)
