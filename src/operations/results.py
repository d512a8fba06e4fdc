"""Structured results handed back to the caller."""

from dataclasses import dataclass, field
from typing import Any, Optional

from matching.disambiguation import DisambiguationContext
from matching.models import CandidateRecord
from matching.tiers import ResolutionOutcome


@dataclass
class OperationResult:
    success: bool
    message: str
    data: Optional[Any] = None


@dataclass
class CompoundResult:
    """Aggregate of an ordered list of sub-item steps on one container."""

    success: bool
    message: str
    operations: list[OperationResult] = field(default_factory=list)
    container: Optional[CandidateRecord] = None

    @property
    def succeeded(self) -> list[OperationResult]:
        return [op for op in self.operations if op.success]

    @property
    def failed(self) -> list[OperationResult]:
        return [op for op in self.operations if not op.success]


@dataclass
class ActionResponse:
    """What the engine returns for every user turn.

    context is set when the engine is waiting on an answer; the caller must
    persist it and echo it back with the next reply.
    """

    result: OperationResult | CompoundResult
    outcome: Optional[ResolutionOutcome] = None
    context: Optional[DisambiguationContext] = None

    @property
    def success(self) -> bool:
        return self.result.success

    @property
    def message(self) -> str:
        return self.result.message

    @property
    def needs_reply(self) -> bool:
        return self.context is not None
