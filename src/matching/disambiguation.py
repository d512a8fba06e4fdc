"""Multi-turn disambiguation: questions out, replies in.

The engine never stores a pending question. It hands the caller a
DisambiguationContext, and the caller echoes it back with the user's next
message. A context is consumed by a Resolved or Cancelled reply and survives
an Invalid one.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from shared_types import Action, ContextKind, ReplyState

from .errors import ContextError
from .models import CandidateRecord, OperationStep
from .tiers import NeedsClarification, NeedsConfirmation

YES_TOKENS = frozenset({"y", "yes", "true", "1", "confirm"})
NO_TOKENS = frozenset({"n", "no", "false", "0", "cancel", "abort"})

MAX_PENDING = 5


class DisambiguationContext(BaseModel):
    """Pending question state, owned by the caller between turns."""

    kind: ContextKind
    action: Action
    pending_candidates: list[CandidateRecord] = Field(min_length=1, max_length=MAX_PENDING)
    scores: list[int] = Field(default_factory=list)
    query: str = ""
    payload: Optional[str] = None
    steps: list[OperationStep] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_shape(self):
        count = len(self.pending_candidates)
        if self.kind == ContextKind.CONFIRMATION and count != 1:
            raise ValueError(f"Confirmation context holds exactly one candidate, got {count}")
        if self.kind == ContextKind.CLARIFICATION and count < 2:
            raise ValueError(f"Clarification context needs at least two candidates, got {count}")
        if self.scores and len(self.scores) != count:
            raise ValueError("scores must line up with pending_candidates")
        return self

    def to_dict(self) -> dict:
        """JSON-safe form for the caller to persist."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: dict) -> "DisambiguationContext":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ContextError(f"Pending context is malformed: {e}") from e


@dataclass
class Prompt:
    """Question to show the user plus the context to echo back."""

    message: str
    context: DisambiguationContext


@dataclass
class ReplyOutcome:
    state: ReplyState
    message: str = ""
    candidate: Optional[CandidateRecord] = None
    # Only set when the reply was invalid and the question still stands
    context: Optional[DisambiguationContext] = None


def option_letter(index: int) -> str:
    return chr(ord("A") + index)


def letter_index(reply: str) -> int:
    """Map the first character of a reply to a 0-based option index, -1 if none."""
    choice = reply.strip().upper()[:1]
    if not choice:
        return -1
    return ord(choice) - ord("A")


_QUESTIONS = {
    Action.COMPLETE: "Mark this task as complete?",
    Action.DELETE: "Delete this task?",
    Action.SHOW_LIST: "Show this list?",
}

_VERBS = {
    Action.COMPLETE: "mark as complete",
    Action.DELETE: "delete",
    Action.EDIT: "edit",
    Action.ADD_ITEM: "add to",
    Action.REMOVE_ITEM: "remove from",
    Action.TOGGLE_ITEM: "update",
    Action.MODIFY_LIST: "modify",
    Action.SHOW_LIST: "show",
}


def _question(action: Action, payload: Optional[str], steps: list[OperationStep]) -> str:
    if action == Action.EDIT:
        return f'Edit this task to "{payload}"?'
    if action == Action.ADD_ITEM:
        return f'Add "{payload}" to this list?'
    if action == Action.REMOVE_ITEM:
        return f'Remove "{payload}" from this list?'
    if action == Action.TOGGLE_ITEM:
        return f'Toggle "{payload}" on this list?'
    if action == Action.MODIFY_LIST:
        return f"Apply {len(steps)} change(s) to this list?"
    return _QUESTIONS[action]


def open_session(
    outcome: NeedsConfirmation | NeedsClarification,
    action: Action | str,
    payload: Optional[str] = None,
    steps: Optional[list[OperationStep]] = None,
    query: str = "",
) -> Prompt:
    """Turn a non-actionable outcome into a question and a context.

    Raises:
        TypeError: outcome is neither NeedsConfirmation nor NeedsClarification
    """
    action = Action(action)
    steps = list(steps or [])

    if isinstance(outcome, NeedsConfirmation):
        candidate = outcome.candidate
        message = (
            f'Found potential match: "{candidate.text}" ({candidate.kind}) '
            f"with {outcome.score}% confidence.\n\n"
            f"{_question(action, payload, steps)} [Y/N]"
        )
        context = DisambiguationContext(
            kind=ContextKind.CONFIRMATION,
            action=action,
            pending_candidates=[candidate],
            scores=[outcome.score],
            query=query,
            payload=payload,
            steps=steps,
        )
        return Prompt(message=message, context=context)

    if isinstance(outcome, NeedsClarification):
        matches = list(outcome.matches[:MAX_PENDING])
        options = "\n".join(
            f"{option_letter(i)}. {m.candidate.text} ({m.candidate.kind}) - {m.score}% confidence"
            for i, m in enumerate(matches)
        )
        last = option_letter(len(matches) - 1)
        message = (
            f'Multiple matches for "{query}". Which one would you like to {_VERBS[action]}?\n\n'
            f"{options}\n\nReply with a letter (A-{last})."
        )
        context = DisambiguationContext(
            kind=ContextKind.CLARIFICATION,
            action=action,
            pending_candidates=[m.candidate for m in matches],
            scores=[m.score for m in matches],
            query=query,
            payload=payload,
            steps=steps,
        )
        return Prompt(message=message, context=context)

    raise TypeError(f"No question to ask for {type(outcome).__name__}")


def handle_reply(context: DisambiguationContext, reply: str) -> ReplyOutcome:
    """Interpret the user's answer to a pending question."""
    if context.kind == ContextKind.CONFIRMATION:
        return _confirmation_reply(context, reply)
    return _clarification_reply(context, reply)


def _confirmation_reply(context: DisambiguationContext, reply: str) -> ReplyOutcome:
    token = reply.strip().lower()
    if token in YES_TOKENS:
        return ReplyOutcome(ReplyState.RESOLVED, candidate=context.pending_candidates[0])
    if token in NO_TOKENS:
        return ReplyOutcome(
            ReplyState.CANCELLED,
            message="Operation cancelled. Please try again with a more specific description.",
        )
    return ReplyOutcome(
        ReplyState.INVALID,
        message=f"Please respond with 'Y' for Yes or 'N' for No. You responded: \"{reply.strip()}\"",
        context=context,
    )


def _clarification_reply(context: DisambiguationContext, reply: str) -> ReplyOutcome:
    pending = context.pending_candidates
    index = letter_index(reply)
    if 0 <= index < len(pending):
        return ReplyOutcome(ReplyState.RESOLVED, candidate=pending[index])
    return ReplyOutcome(
        ReplyState.INVALID,
        message=(
            f'Invalid choice "{reply.strip()}". '
            f"Please choose from A-{option_letter(len(pending) - 1)}."
        ),
        context=context,
    )
