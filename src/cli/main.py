"""CLI entry point for task-resolver."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cli.commands import (
    add,
    capabilities,
    complete,
    delete,
    edit,
    item,
    list_tasks,
    modify,
    pending,
    reply,
    show,
    status,
)
from cli.config import load_config_model
from cli.logging_config import setup_logging
from observability import log_run_summary

console = Console()


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines on stderr")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ./config.yaml or ~/.taskresolver/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, json_logs: bool, config_path: Path | None):
    """Resolve loose task references and act on them."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    try:
        config = load_config_model(config_path)
    except ValueError as e:
        console.print(f"[red]Config error:[/] {escape(str(e))}")
        sys.exit(1)

    level = "DEBUG" if verbose else config.logging.level
    setup_logging(json_mode=json_logs or config.logging.json_logs, level=level)
    ctx.call_on_close(log_run_summary)


for command in (
    add,
    complete,
    delete,
    edit,
    list_tasks,
    status,
    capabilities,
    item,
    modify,
    show,
    reply,
    pending,
):
    cli.add_command(command)


if __name__ == "__main__":
    cli()
