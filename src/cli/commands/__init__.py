"""CLI command modules."""

from .lists import item, modify, show
from .session import pending, reply
from .tasks import add, capabilities, complete, delete, edit, list_tasks, status

__all__ = [
    "add",
    "complete",
    "delete",
    "edit",
    "list_tasks",
    "status",
    "capabilities",
    "item",
    "modify",
    "show",
    "reply",
    "pending",
]
