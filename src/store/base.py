"""Record store interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence, TypedDict

from matching.models import CandidateRecord, SubItem
from shared_types import RecordKind


class StoreError(Exception):
    """Store unreachable or rejected the request."""


class RecordNotFoundError(StoreError):
    """No record with the given kind and id."""


class RecordPatch(TypedDict, total=False):
    text: str
    sub_items: list[SubItem]
    completed: bool


class RecordStore(ABC):
    """Create/read/update/delete of task records, keyed by kind and id."""

    @abstractmethod
    def fetch_all(self) -> dict[RecordKind, list[CandidateRecord]]:
        """Snapshot of every record, grouped by kind."""

    @abstractmethod
    def create(
        self,
        kind: RecordKind | str,
        text: str,
        sub_items: Sequence[str] = (),
    ) -> CandidateRecord:
        """Create a record, optionally with sub-item texts."""

    @abstractmethod
    def mutate(self, kind: RecordKind | str, record_id: str, patch: RecordPatch) -> CandidateRecord:
        """Apply patch to a record and return the updated record."""

    @abstractmethod
    def delete(self, kind: RecordKind | str, record_id: str) -> CandidateRecord:
        """Delete a record and return it."""

    def close(self) -> None:
        """Release connections held by the store."""

    def records(self, kind: Optional[RecordKind | str] = None) -> list[CandidateRecord]:
        """Flattened snapshot, work before personal."""
        snapshot = self.fetch_all()
        kinds = [check_kind(kind)] if kind else list(RecordKind)
        return [record for k in kinds for record in snapshot.get(k, [])]

    def get(self, kind: RecordKind | str, record_id: str) -> CandidateRecord:
        for record in self.fetch_all().get(check_kind(kind), []):
            if record.id == record_id:
                return record
        raise RecordNotFoundError(f"No {kind} record with id {record_id}")


def check_kind(kind: Any) -> RecordKind:
    try:
        return RecordKind(kind)
    except ValueError as e:
        valid = ", ".join(k.value for k in RecordKind)
        raise StoreError(f'Invalid record kind "{kind}". Use one of: {valid}') from e


def patch_to_store(patch: RecordPatch) -> dict:
    """Patch in the store's wire shape (camelCase, plain dicts)."""
    body: dict = {}
    if "text" in patch:
        body["text"] = patch["text"]
    if "completed" in patch:
        body["completed"] = patch["completed"]
    if "sub_items" in patch:
        body["subItems"] = [
            item.model_dump(mode="json", by_alias=True, exclude_none=True)
            for item in patch["sub_items"]
        ]
    return body
