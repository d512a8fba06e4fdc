"""Shared CLI utilities."""

import json
import sys
from pathlib import Path
from typing import Optional

import click
import structlog
from rich.console import Console
from rich.markup import escape

console = Console()
logger = structlog.get_logger()


def _config_path() -> Optional[Path]:
    ctx = click.get_current_context(silent=True)
    if ctx is None:
        return None
    obj = ctx.find_root().obj or {}
    return obj.get("config_path")


def build_store(config_model):
    """Record store for the configured backend."""
    from store import HttpRecordStore, JsonRecordStore

    store_cfg = config_model.store
    if store_cfg.backend == "http":
        return HttpRecordStore(
            base_url=store_cfg.base_url,
            timeout=store_cfg.timeout,
            max_attempts=config_model.retry.max_attempts,
            min_wait=config_model.retry.min_wait,
            max_wait=config_model.retry.max_wait,
        )
    return JsonRecordStore(store_cfg.path)


def get_components(config_path: Optional[Path] = None) -> dict:
    """Initialize store and engine from config."""
    from cli.config import load_config_model
    from matching.tiers import TierThresholds
    from operations import ResolutionEngine

    try:
        config_model = load_config_model(config_path or _config_path())
    except ValueError as e:
        console.print(f"[red]Config error:[/] {escape(str(e))}")
        sys.exit(1)

    matching = config_model.matching
    store = build_store(config_model)
    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        ctx.call_on_close(store.close)
    engine = ResolutionEngine(
        store,
        thresholds=TierThresholds(
            auto=matching.auto_threshold,
            floor=matching.min_confidence,
            max_options=matching.max_options,
        ),
        item_floor=matching.item_min_confidence,
        capabilities=config_model.capabilities,
    )
    return {
        "config_model": config_model,
        "store": store,
        "engine": engine,
        "context_file": config_model.paths.context_file,
    }


def load_pending(path: Path) -> Optional[dict]:
    """Saved disambiguation context, or None if nothing is waiting."""
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("pending_context_unreadable", path=str(path), error=str(e))
        return None
    return data if isinstance(data, dict) else None


def save_pending(path: Path, context) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(context.to_dict(), f, indent=2)


def clear_pending(path: Path) -> bool:
    if path.exists():
        path.unlink()
        return True
    return False


def render_response(response, context_file: Path) -> bool:
    """Print an engine response and keep the pending-question file in sync.

    Returns:
        False if the command failed outright
    """
    if response.needs_reply:
        save_pending(context_file, response.context)
        console.print(f"[yellow]{escape(response.message)}[/]")
        console.print("[dim]Answer with: taskresolver reply <answer>[/]")
        return True

    clear_pending(context_file)
    style = "green" if response.success else "red"
    console.print(f"[{style}]{escape(response.message)}[/]")
    return response.success
