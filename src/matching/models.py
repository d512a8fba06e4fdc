"""Record shapes, operation steps and match results."""

from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shared_types import RecordKind, StepAction

from .errors import RecordValidationError


def _coerce_id(v: Any) -> str:
    # Older stores hand out numeric timestamps as ids
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(int(v))
    return v


def _require_text(v: str) -> str:
    if not v.strip():
        raise ValueError("text must be a non-empty string")
    return v.strip()


class SubItem(BaseModel):
    """Entry nested one level inside a list-type record."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    text: str
    completed: bool = False
    added_at: Optional[str] = Field(default=None, alias="addedAt")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return _coerce_id(v)

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _require_text(v)


class CandidateRecord(BaseModel):
    """Task or list container eligible for matching."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    text: str
    kind: RecordKind = RecordKind.PERSONAL
    completed: bool = False
    sub_items: list[SubItem] = Field(default_factory=list, alias="subItems")
    created: Optional[str] = None
    last_modified: Optional[str] = Field(default=None, alias="lastModified")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return _coerce_id(v)

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _require_text(v)

    @field_validator("sub_items", mode="before")
    @classmethod
    def default_sub_items(cls, v):
        return [] if v is None else v

    @property
    def is_list(self) -> bool:
        return bool(self.sub_items)

    def to_store(self) -> dict:
        """Serialize in the store's on-disk shape (camelCase, no kind)."""
        return self.model_dump(mode="json", by_alias=True, exclude={"kind"}, exclude_none=True)


class OperationStep(BaseModel):
    """One sub-operation of a compound list command."""

    model_config = ConfigDict(populate_by_name=True)

    action: StepAction
    target_text: str = Field(alias="targetText")
    payload: Optional[str] = None

    @field_validator("target_text")
    @classmethod
    def validate_target(cls, v: str) -> str:
        return _require_text(v)


def parse_record(data: Any, kind: RecordKind | str) -> CandidateRecord:
    """Validate one raw store record, attaching its kind."""
    if not isinstance(data, dict):
        raise RecordValidationError(f"Record must be an object, got {type(data).__name__}")
    try:
        return CandidateRecord.model_validate({**data, "kind": kind})
    except ValidationError as e:
        raise RecordValidationError(f"Invalid {kind} record {data.get('id')!r}: {e}") from e


def parse_snapshot(data: Any) -> dict[RecordKind, list[CandidateRecord]]:
    """Validate a whole {kind: [records]} snapshot. Unknown keys are ignored."""
    if not isinstance(data, dict):
        raise RecordValidationError("Snapshot must be an object keyed by record kind")
    snapshot: dict[RecordKind, list[CandidateRecord]] = {}
    for kind in RecordKind:
        raw = data.get(kind.value) or []
        if not isinstance(raw, list):
            raise RecordValidationError(f"Snapshot field '{kind}' must be a list")
        snapshot[kind] = [parse_record(item, kind) for item in raw]
    return snapshot


@dataclass
class MatchResult:
    """Score of one candidate against a query, with the reasons behind it."""

    candidate: CandidateRecord | SubItem
    score: int
    reasons: set[str] = field(default_factory=set)

    @property
    def text(self) -> str:
        return self.candidate.text
