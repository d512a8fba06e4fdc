"""Actions on resolved records: single edits, compound list edits, the engine."""

from .compound import CompoundExecutor, summarize
from .engine import ResolutionEngine
from .items import ListEditor
from .results import ActionResponse, CompoundResult, OperationResult

__all__ = [
    "ActionResponse",
    "CompoundExecutor",
    "CompoundResult",
    "ListEditor",
    "OperationResult",
    "ResolutionEngine",
    "summarize",
]
