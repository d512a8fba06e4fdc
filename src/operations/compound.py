"""Ordered multi-step edits on one list container."""

from typing import Sequence

import structlog

from matching.models import CandidateRecord, OperationStep
from observability import STEPS_FAILED, STEPS_OK, metrics

from .items import ListEditor
from .results import CompoundResult, OperationResult

logger = structlog.get_logger()


class CompoundExecutor:
    """Runs steps in order, never aborting on a failed one."""

    def __init__(self, editor: ListEditor):
        self.editor = editor

    def execute(self, container: CandidateRecord, steps: Sequence[OperationStep]) -> CompoundResult:
        """Apply steps to container in order.

        Each step sees the container as left by the previous step. The result
        succeeds if at least one step did.
        """
        if not steps:
            return CompoundResult(False, "No operations specified for list modification", container=container)

        results: list[OperationResult] = []
        for step in steps:
            container, result = self.editor.apply(container, step)
            metrics.counter(STEPS_OK if result.success else STEPS_FAILED)
            results.append(result)

        compound = summarize(results)
        compound.container = container
        logger.info(
            "compound_executed",
            container=container.id,
            steps=len(results),
            ok=len(compound.succeeded),
            failed=len(compound.failed),
        )
        return compound


def summarize(results: list[OperationResult]) -> CompoundResult:
    """Fold per-step results into one message.

    "Successfully: a, b. Issues: c" on partial success, "Failed: c" when
    nothing went through.
    """
    ok = [r.message for r in results if r.success]
    bad = [r.message for r in results if not r.success]

    message = ""
    if ok:
        message = f"Successfully: {', '.join(ok)}"
    if bad:
        if message:
            message += f". Issues: {', '.join(bad)}"
        else:
            message = f"Failed: {', '.join(bad)}"
    return CompoundResult(success=bool(ok), message=message, operations=list(results))
