"""Sub-item edits on a single resolved list container."""

import uuid
from datetime import datetime

import structlog

from matching.disambiguation import option_letter
from matching.models import CandidateRecord, MatchResult, OperationStep, SubItem
from matching.scorer import rank
from observability import STORE_ERRORS, metrics
from shared_types import StepAction
from store.base import RecordStore, StoreError

from .results import OperationResult

logger = structlog.get_logger()

DEFAULT_ITEM_FLOOR = 50


class ItemLookupError(Exception):
    """Step target did not resolve to exactly one sub-item."""


class ListEditor:
    """Applies one step at a time to a container's sub-items.

    Each step is a read-modify-write of the whole sub-item list through
    store.mutate. A failed step returns the container unchanged.
    """

    def __init__(self, store: RecordStore, item_floor: int = DEFAULT_ITEM_FLOOR):
        self.store = store
        self.item_floor = item_floor
        self._handlers = {
            StepAction.ADD_ITEM: self._add,
            StepAction.REMOVE_ITEM: self._remove,
            StepAction.DELETE: self._remove,
            StepAction.TOGGLE_ITEM: self._toggle,
            StepAction.COMPLETE: self._complete,
            StepAction.EDIT: self._edit,
        }

    def apply(
        self, container: CandidateRecord, step: OperationStep
    ) -> tuple[CandidateRecord, OperationResult]:
        """Run one step against container.

        Returns:
            (container after the step, result of the step)
        """
        handler = self._handlers[step.action]
        try:
            return handler(container, step)
        except ItemLookupError as e:
            return container, OperationResult(False, str(e))
        except StoreError as e:
            metrics.counter(STORE_ERRORS)
            logger.warning(
                "item_step_failed",
                action=str(step.action),
                container=container.id,
                error=str(e),
            )
            verb = step.action.replace("_", " ")
            return container, OperationResult(False, f'Failed to {verb} "{step.target_text}": {e}')

    def find_item(self, container: CandidateRecord, text: str) -> SubItem:
        """Resolve text to one sub-item of container.

        Raises:
            ItemLookupError: nothing above the item floor, or a tie at the top
        """
        if not container.sub_items:
            raise ItemLookupError(f"No items found in {container.text}")

        matches = [m for m in rank(text, container.sub_items) if m.score >= self.item_floor]
        if not matches:
            raise ItemLookupError(f'Item "{text}" not found in {container.text}')

        tied = _top_ties(matches)
        if len(tied) > 1:
            options = ", ".join(f"{option_letter(i)}. {m.text}" for i, m in enumerate(tied))
            raise ItemLookupError(f'Multiple items match "{text}" ({options})')
        return matches[0].candidate

    def _write(self, container: CandidateRecord, items: list[SubItem]) -> CandidateRecord:
        return self.store.mutate(container.kind, container.id, {"sub_items": items})

    def _add(self, container, step):
        item = SubItem(
            id=uuid.uuid4().hex,
            text=step.target_text,
            added_at=datetime.now().isoformat(),
        )
        updated = self._write(container, [*container.sub_items, item])
        return updated, OperationResult(True, f'Added "{item.text}" to {container.text}', data=item)

    def _remove(self, container, step):
        item = self.find_item(container, step.target_text)
        remaining = [i for i in container.sub_items if i.id != item.id]
        updated = self._write(container, remaining)
        return updated, OperationResult(True, f'Removed "{item.text}" from {container.text}', data=item)

    def _set_completed(self, container, step, completed: bool | None):
        item = self.find_item(container, step.target_text)
        changed = item.model_copy(
            update={"completed": (not item.completed) if completed is None else completed}
        )
        items = [changed if i.id == item.id else i for i in container.sub_items]
        updated = self._write(container, items)
        state = "completed" if changed.completed else "incomplete"
        return updated, OperationResult(True, f'Marked "{changed.text}" as {state}', data=changed)

    def _toggle(self, container, step):
        return self._set_completed(container, step, None)

    def _complete(self, container, step):
        return self._set_completed(container, step, True)

    def _edit(self, container, step):
        if not (step.payload and step.payload.strip()):
            return container, OperationResult(False, f'No new text given for "{step.target_text}"')
        item = self.find_item(container, step.target_text)
        renamed = item.model_copy(update={"text": step.payload.strip()})
        items = [renamed if i.id == item.id else i for i in container.sub_items]
        updated = self._write(container, items)
        return updated, OperationResult(True, f'Renamed "{item.text}" to "{renamed.text}"', data=renamed)


def _top_ties(matches: list[MatchResult]) -> list[MatchResult]:
    top = matches[0].score
    seen: set[str] = set()
    tied = []
    for m in matches:
        if m.score != top:
            break
        if m.candidate.id not in seen:
            seen.add(m.candidate.id)
            tied.append(m)
    return tied
