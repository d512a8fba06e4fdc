"""Shared enums and types for task-resolver."""

from enum import StrEnum


class RecordKind(StrEnum):
    WORK = "work"
    PERSONAL = "personal"


class Action(StrEnum):
    """Actions the engine performs on a resolved record."""

    COMPLETE = "complete"
    DELETE = "delete"
    EDIT = "edit"
    ADD_ITEM = "add_item"
    REMOVE_ITEM = "remove_item"
    TOGGLE_ITEM = "toggle_item"
    MODIFY_LIST = "modify_list"
    SHOW_LIST = "show_list"


class StepAction(StrEnum):
    """Sub-item actions inside a compound list command."""

    ADD_ITEM = "add_item"
    REMOVE_ITEM = "remove_item"
    TOGGLE_ITEM = "toggle_item"
    COMPLETE = "complete"
    DELETE = "delete"
    EDIT = "edit"


class ContextKind(StrEnum):
    CONFIRMATION = "confirmation"
    CLARIFICATION = "clarification"


class ReplyState(StrEnum):
    RESOLVED = "resolved"
    CANCELLED = "cancelled"
    INVALID = "invalid"


class Capability(StrEnum):
    TASKS = "tasks"
    LISTS = "lists"
    CALENDAR = "calendar"
    EMAIL = "email"
    FILES = "files"


# Actions whose payload is an item inside the resolved container
ITEM_ACTIONS = frozenset({Action.ADD_ITEM, Action.REMOVE_ITEM, Action.TOGGLE_ITEM})
