"""Confidence tiers for a ranked match list."""

from dataclasses import dataclass
from typing import Union

import structlog

from .models import CandidateRecord, MatchResult

logger = structlog.get_logger()


@dataclass(frozen=True)
class TierThresholds:
    """Score lines between tiers.

    auto: a single match at or above this acts without confirmation.
    floor: matches below this are never offered.
    max_options: cap on lettered clarification options.
    """

    auto: int = 90
    floor: int = 70
    max_options: int = 5

    def __post_init__(self):
        if not 0 <= self.floor <= self.auto <= 100:
            raise ValueError(f"Need 0 <= floor <= auto <= 100, got floor={self.floor} auto={self.auto}")
        if self.max_options < 2:
            raise ValueError(f"max_options must be at least 2, got {self.max_options}")


DEFAULT_THRESHOLDS = TierThresholds()


@dataclass(frozen=True)
class AutoResolved:
    match: MatchResult
    tier = "auto"

    @property
    def candidate(self) -> CandidateRecord:
        return self.match.candidate

    @property
    def score(self) -> int:
        return self.match.score


@dataclass(frozen=True)
class NeedsConfirmation:
    match: MatchResult
    tier = "confirm"

    @property
    def candidate(self) -> CandidateRecord:
        return self.match.candidate

    @property
    def score(self) -> int:
        return self.match.score


@dataclass(frozen=True)
class NeedsClarification:
    matches: tuple[MatchResult, ...]
    tier = "clarify"

    def __post_init__(self):
        if len(self.matches) < 2:
            raise ValueError("Clarification needs at least two candidates")

    @property
    def candidates(self) -> list[CandidateRecord]:
        return [m.candidate for m in self.matches]


@dataclass(frozen=True)
class NotFound:
    query: str = ""
    tier = "not_found"


ResolutionOutcome = Union[AutoResolved, NeedsConfirmation, NeedsClarification, NotFound]


def classify(
    results: list[MatchResult],
    thresholds: TierThresholds = DEFAULT_THRESHOLDS,
    query: str = "",
) -> ResolutionOutcome:
    """Reduce a ranked match list to one outcome.

    Args:
        results: Matches sorted by descending score (see scorer.rank)
        thresholds: Tier lines
        query: Original reference text, kept on NotFound for messages

    Returns:
        AutoResolved, NeedsConfirmation, NeedsClarification or NotFound
    """
    if not results:
        return NotFound(query)

    top = results[0]
    contenders = [r for r in results if r.score >= thresholds.floor]

    if top.score >= thresholds.auto and len(contenders) == 1:
        outcome: ResolutionOutcome = AutoResolved(top)
    elif len(contenders) > 1:
        outcome = NeedsClarification(tuple(contenders[: thresholds.max_options]))
    elif thresholds.floor <= top.score < thresholds.auto:
        outcome = NeedsConfirmation(top)
    else:
        outcome = NotFound(query)

    logger.debug(
        "matches_classified",
        query=query,
        tier=outcome.tier,
        top_score=top.score,
        contenders=len(contenders),
    )
    return outcome
