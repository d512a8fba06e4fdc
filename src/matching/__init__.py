"""Fuzzy reference resolution: scoring, confidence tiers and disambiguation."""

from .disambiguation import DisambiguationContext, Prompt, ReplyOutcome, handle_reply, open_session
from .errors import ContextError, RecordValidationError, ResolutionError
from .models import CandidateRecord, MatchResult, OperationStep, SubItem
from .scorer import rank, score
from .tiers import (
    AutoResolved,
    NeedsClarification,
    NeedsConfirmation,
    NotFound,
    ResolutionOutcome,
    TierThresholds,
    classify,
)

__all__ = [
    "AutoResolved",
    "CandidateRecord",
    "ContextError",
    "DisambiguationContext",
    "MatchResult",
    "NeedsClarification",
    "NeedsConfirmation",
    "NotFound",
    "OperationStep",
    "Prompt",
    "RecordValidationError",
    "ReplyOutcome",
    "ResolutionError",
    "ResolutionOutcome",
    "SubItem",
    "TierThresholds",
    "classify",
    "handle_reply",
    "open_session",
    "rank",
    "score",
]
