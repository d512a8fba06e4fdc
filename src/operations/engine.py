"""Resolution engine: from a free-text reference to an applied action.

Every public method returns an ActionResponse. Store failures, malformed
payloads and bad contexts come back as failed results, never as exceptions.
"""

from typing import Iterable, Optional, Sequence

import structlog
from pydantic import ValidationError

from matching import disambiguation
from matching.disambiguation import DisambiguationContext, open_session
from matching.errors import ContextError, ResolutionError
from matching.models import CandidateRecord, OperationStep
from matching.scorer import rank
from matching.tiers import (
    DEFAULT_THRESHOLDS,
    AutoResolved,
    NotFound,
    ResolutionOutcome,
    TierThresholds,
    classify,
)
from observability import SNAPSHOT_TIMER, STORE_ERRORS, metrics
from shared_types import ITEM_ACTIONS, Action, Capability, ContextKind, RecordKind, ReplyState, StepAction
from store.base import RecordNotFoundError, RecordStore, StoreError

from .compound import CompoundExecutor
from .items import DEFAULT_ITEM_FLOOR, ListEditor
from .results import ActionResponse, CompoundResult, OperationResult

logger = structlog.get_logger()

# Actions whose target is a list container rather than a plain task
LIST_ACTIONS = ITEM_ACTIONS | {Action.MODIFY_LIST, Action.SHOW_LIST}

DEFAULT_CAPABILITIES = frozenset({Capability.TASKS, Capability.LISTS})

_CAPABILITY_LABELS = {
    Capability.TASKS: "add, complete, edit and delete tasks",
    Capability.LISTS: "manage items on lists",
    Capability.CALENDAR: "manage calendar events",
    Capability.EMAIL: "send or read email",
    Capability.FILES: "read or write files",
}


def _required(action: Action) -> Capability:
    return Capability.LISTS if action in LIST_ACTIONS else Capability.TASKS


def _is_list(record: CandidateRecord) -> bool:
    return record.is_list or "list" in record.text.lower()


class ResolutionEngine:
    """Resolves references against the store snapshot and applies actions.

    The engine keeps no conversation state. When it needs an answer it
    returns a DisambiguationContext, and the caller passes it back to
    handle_reply together with the user's reply.
    """

    def __init__(
        self,
        store: RecordStore,
        thresholds: TierThresholds = DEFAULT_THRESHOLDS,
        item_floor: int = DEFAULT_ITEM_FLOOR,
        capabilities: Iterable[Capability | str] = DEFAULT_CAPABILITIES,
    ):
        self.store = store
        self.thresholds = thresholds
        self.editor = ListEditor(store, item_floor=item_floor)
        self.compound = CompoundExecutor(self.editor)
        self.capabilities = frozenset(Capability(c) for c in capabilities)

    # --- resolution ---

    def candidates(self, kind: Optional[RecordKind | str] = None, lists_only: bool = False) -> list[CandidateRecord]:
        with metrics.timer(SNAPSHOT_TIMER):
            records = self.store.records(kind)
        if lists_only:
            records = [r for r in records if _is_list(r)]
        return records

    def find(
        self,
        query: str,
        kind: Optional[RecordKind | str] = None,
        lists_only: bool = False,
    ) -> ResolutionOutcome:
        """Score query against the current snapshot and classify the result.

        Raises:
            StoreError: snapshot could not be fetched or parsed
        """
        results = rank(query, self.candidates(kind, lists_only))
        outcome = classify(results, self.thresholds, query)
        metrics.outcome(outcome.tier)
        logger.info(
            "reference_resolved",
            query=query,
            tier=outcome.tier,
            top_score=results[0].score if results else 0,
            matches=len(results),
        )
        return outcome

    # --- user turns ---

    def handle_action(
        self,
        action: Action | str,
        query: str,
        payload: Optional[str] = None,
        kind: Optional[RecordKind | str] = None,
    ) -> ActionResponse:
        """Resolve query and apply a single action to it.

        payload is the new text for edit, and the item text for the item
        actions (query then names the list).
        """
        try:
            action = Action(action)
        except ValueError:
            return _failed(f"Unknown action: {action}")

        if action == Action.MODIFY_LIST:
            return _failed("List modifications take a list of steps")
        if action == Action.EDIT and not (payload and payload.strip()):
            return _failed("New text is required for edit operation")
        if action in ITEM_ACTIONS and not (payload and payload.strip()):
            return _failed("Item text is required for list operations")
        if not self.can(_required(action)):
            return self._unsupported(_required(action))

        try:
            outcome = self.find(query, kind, lists_only=action in LIST_ACTIONS)
        except (StoreError, ResolutionError) as e:
            return self._store_failure(action, e)
        return self._respond(outcome, action, query, payload.strip() if payload else None)

    def handle_compound(
        self,
        container_query: str,
        steps: Sequence[OperationStep | dict],
        kind: Optional[RecordKind | str] = None,
    ) -> ActionResponse:
        """Resolve one list and run every step against it in order."""
        if not self.can(Capability.LISTS):
            return self._unsupported(Capability.LISTS)
        try:
            parsed = [s if isinstance(s, OperationStep) else OperationStep.model_validate(s) for s in steps]
        except ValidationError as e:
            return _failed(f"Invalid list operation: {e}")
        if not parsed:
            return ActionResponse(CompoundResult(False, "No operations specified for list modification"))

        try:
            outcome = self.find(container_query, kind, lists_only=True)
        except (StoreError, ResolutionError) as e:
            return self._store_failure(Action.MODIFY_LIST, e)
        return self._respond(outcome, Action.MODIFY_LIST, container_query, None, parsed)

    def handle_reply(self, context: DisambiguationContext | dict, reply: str) -> ActionResponse:
        """Answer a pending question and, once resolved, apply its action."""
        if not isinstance(context, DisambiguationContext):
            try:
                context = DisambiguationContext.from_dict(context)
            except ContextError as e:
                return _failed(str(e))

        answer = disambiguation.handle_reply(context, reply)
        if answer.state == ReplyState.INVALID:
            return ActionResponse(OperationResult(False, answer.message), context=answer.context)
        if answer.state == ReplyState.CANCELLED:
            logger.info("disambiguation_cancelled", action=str(context.action), query=context.query)
            return _failed(answer.message)

        chosen = answer.candidate
        try:
            # Act on the record as it is now, not as it was when asked
            current = self.store.get(chosen.kind, chosen.id)
        except RecordNotFoundError:
            return _failed(f'"{chosen.text}" no longer exists')
        except StoreError as e:
            return self._store_failure(context.action, e)

        result = self._dispatch(context.action, current, context.payload, context.steps)
        if context.kind == ContextKind.CONFIRMATION and result.success:
            result.message = f"Confirmed: {result.message}"
        return ActionResponse(result)

    # --- direct operations ---

    def add_record(
        self,
        text: str,
        kind: RecordKind | str = RecordKind.PERSONAL,
        items: Sequence[str] = (),
    ) -> ActionResponse:
        """Create a task, or a list when items are given."""
        if not self.can(Capability.LISTS if items else Capability.TASKS):
            return self._unsupported(Capability.LISTS if items else Capability.TASKS)
        text = (text or "").strip()
        if not text:
            return _failed("Task text is required")
        items = [i.strip() for i in items if i and i.strip()]
        try:
            record = self.store.create(kind, text, items)
        except StoreError as e:
            metrics.counter(STORE_ERRORS)
            return _failed(f"Failed to add task: {e}")
        if items:
            message = f"Created {record.text} with {len(items)} items"
        else:
            message = f'Added "{record.text}" to your {record.kind} tasks'
        return ActionResponse(OperationResult(True, message, data=record))

    def show_list(self, query: str, kind: Optional[RecordKind | str] = None) -> ActionResponse:
        return self.handle_action(Action.SHOW_LIST, query, kind=kind)

    def list_records(self, kind: Optional[RecordKind | str] = None) -> ActionResponse:
        try:
            records = self.candidates(kind)
        except StoreError as e:
            metrics.counter(STORE_ERRORS)
            return _failed(f"Failed to fetch tasks: {e}")
        message = f"Your {kind} tasks:" if kind else "All your tasks:"
        return ActionResponse(OperationResult(True, message, data=records))

    def status(self) -> ActionResponse:
        """Per-kind completion counts."""
        try:
            with metrics.timer(SNAPSHOT_TIMER):
                snapshot = self.store.fetch_all()
        except StoreError as e:
            metrics.counter(STORE_ERRORS)
            return _failed(f"Failed to get task status: {e}")

        counts = {}
        for kind in RecordKind:
            records = snapshot.get(kind, [])
            counts[kind.value] = {
                "total": len(records),
                "completed": sum(1 for r in records if r.completed),
            }
        parts = ", ".join(
            f"{kind.capitalize()} ({c['completed']}/{c['total']} completed)" for kind, c in counts.items()
        )
        return ActionResponse(OperationResult(True, f"Task Status: {parts}", data=counts))

    # --- capabilities ---

    def can(self, capability: Capability | str) -> bool:
        return Capability(capability) in self.capabilities

    def describe_capabilities(self) -> ActionResponse:
        can = [_CAPABILITY_LABELS[c] for c in Capability if c in self.capabilities]
        cannot = [_CAPABILITY_LABELS[c] for c in Capability if c not in self.capabilities]
        lines = ["I can: " + "; ".join(can) if can else "I can't change anything in this setup."]
        if cannot:
            lines.append("I can't: " + "; ".join(cannot))
        data = {c.value: c in self.capabilities for c in Capability}
        return ActionResponse(OperationResult(True, "\n".join(lines), data=data))

    # --- internals ---

    def _respond(
        self,
        outcome: ResolutionOutcome,
        action: Action,
        query: str,
        payload: Optional[str],
        steps: Sequence[OperationStep] = (),
    ) -> ActionResponse:
        if isinstance(outcome, NotFound):
            noun = "list" if action in LIST_ACTIONS else "task"
            return ActionResponse(
                OperationResult(
                    False,
                    f'Could not find any {noun} matching "{query}". '
                    f"Please check the {noun} text and try again.",
                ),
                outcome=outcome,
            )
        if isinstance(outcome, AutoResolved):
            result = self._dispatch(action, outcome.candidate, payload, steps, score=outcome.score)
            return ActionResponse(result, outcome=outcome)

        prompt = open_session(outcome, action, payload=payload, steps=list(steps), query=query)
        return ActionResponse(OperationResult(False, prompt.message), outcome=outcome, context=prompt.context)

    def _dispatch(
        self,
        action: Action,
        record: CandidateRecord,
        payload: Optional[str],
        steps: Sequence[OperationStep] = (),
        score: Optional[int] = None,
    ) -> OperationResult | CompoundResult:
        suffix = f" ({score}% confidence)" if score is not None else ""
        try:
            if action == Action.COMPLETE:
                updated = self.store.mutate(record.kind, record.id, {"completed": not record.completed})
                state = "completed" if updated.completed else "incomplete"
                return OperationResult(True, f'Marked "{updated.text}" as {state}{suffix}', data=updated)

            if action == Action.DELETE:
                deleted = self.store.delete(record.kind, record.id)
                return OperationResult(True, f'Deleted task: "{deleted.text}"{suffix}', data=deleted)

            if action == Action.EDIT:
                if not payload:
                    return OperationResult(False, "New text is required for edit operation")
                updated = self.store.mutate(record.kind, record.id, {"text": payload})
                return OperationResult(True, f'Updated task from "{record.text}" to "{updated.text}"{suffix}', data=updated)

            if action in ITEM_ACTIONS:
                if not payload:
                    return OperationResult(False, "Item text is required for list operations")
                step = OperationStep(action=StepAction(action.value), target_text=payload)
                _, result = self.editor.apply(record, step)
                return result

            if action == Action.MODIFY_LIST:
                return self.compound.execute(record, steps)

            if action == Action.SHOW_LIST:
                return _render_list(record)
        except StoreError as e:
            return self._store_failure(action, e).result

        return OperationResult(False, f"Unknown action: {action}")

    def _store_failure(self, action: Action, error: Exception) -> ActionResponse:
        metrics.counter(STORE_ERRORS)
        logger.warning("action_failed", action=str(action), error=str(error))
        verb = str(action).replace("_", " ")
        return _failed(f"Failed to {verb} task: {error}")

    def _unsupported(self, capability: Capability) -> ActionResponse:
        return _failed(f"I can't {_CAPABILITY_LABELS[capability]} in this setup.")


def _failed(message: str) -> ActionResponse:
    return ActionResponse(OperationResult(False, message))


def _render_list(record: CandidateRecord) -> OperationResult:
    pending = [i.text for i in record.sub_items if not i.completed]
    done = [i.text for i in record.sub_items if i.completed]
    data = {"list": record, "pending": pending, "completed": done}
    if not record.sub_items:
        return OperationResult(True, f"{record.text} is empty", data=data)

    lines = [f"{record.text}:"]
    if pending:
        lines += ["", "Pending:"] + [f"• {t}" for t in pending]
    if done:
        lines += ["", "Completed:"] + [f"• {t}" for t in done]
    return OperationResult(True, "\n".join(lines), data=data)
