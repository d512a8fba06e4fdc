"""Fuzzy scoring of free-text references against candidate records.

Scores are 0-100 integers. The checks run in priority order and the first
three short-circuit:

1. exact match (100)
2. exact substring (95)
3. substring once punctuation and extra whitespace are dropped (90)
4. keyword overlap, with bonuses for word order and shared topic patterns
"""

import re
from typing import Iterable, Protocol

import structlog

from .models import MatchResult

logger = structlog.get_logger()

PARTIAL_WEIGHT = 0.7
ORDER_BONUS = 10
LENGTH_RATIO_FLOOR = 0.3
LENGTH_PENALTY = 0.8

STOP_WORDS = frozenset({
    "the", "and", "but", "for", "with", "are", "was", "were", "been", "being",
    "have", "has", "had", "does", "did", "will", "would", "could", "should",
    "may", "might", "must", "can", "not", "from", "into", "onto", "off",
    "this", "that", "these", "those", "its", "our", "your", "my", "all",
    # Two-letter words, also dropped by length
    "to", "of", "in", "on", "at", "by", "is", "be", "do", "or", "an", "a",
})

# Command verbs the intent layer tends to leave inside the reference text
# ("completed review of client portfolios").
COMMAND_WORDS = frozenset({
    "add", "added", "complete", "completed", "finish", "finished", "done",
    "mark", "marked", "delete", "deleted", "remove", "removed", "please",
    "tick", "ticked",
})

# (group name, pattern, boost). A group counts when both texts hit it.
PATTERN_GROUPS = (
    ("meeting", re.compile(r"\b(?:meetings?|calls?|appointments?)\b"), 10),
    ("review", re.compile(r"\b(?:review\w*|analy[sz]\w*|check\w*)\b"), 10),
    ("complete", re.compile(r"\b(?:complet\w*|finish\w*|done)\b"), 15),
    ("buy", re.compile(r"\b(?:buy\w*|purchas\w*|get)\b"), 10),
    ("study", re.compile(r"\b(?:stud(?:y|ies|ying)|learn\w*|read|reading)\b"), 10),
)

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


class HasText(Protocol):
    text: str


def normalize(text: str) -> str:
    return text.lower().strip()


def strip_punctuation(text: str) -> str:
    """Drop punctuation and collapse runs of whitespace."""
    return _WHITESPACE.sub(" ", _PUNCTUATION.sub("", text)).strip()


def keywords(text: str) -> list[str]:
    """Meaningful words of text, in order, without duplicates."""
    words = strip_punctuation(normalize(text)).split()
    kept = [
        w for w in words
        if len(w) > 2 and w not in STOP_WORDS and w not in COMMAND_WORDS
    ]
    return list(dict.fromkeys(kept))


def score(query: str, candidate: str) -> tuple[int, set[str]]:
    """Score how well query identifies candidate.

    Returns:
        (score in 0..100, set of reason tags)
    """
    q = normalize(query)
    c = normalize(candidate)

    if q == c:
        return 100, {"exact_match"}
    if not q:
        return 0, set()
    if q in c:
        return 95, {"exact_substring"}

    q_plain = strip_punctuation(q)
    if q_plain and q_plain in strip_punctuation(c):
        return 90, {"substring_with_variations"}

    return _keyword_score(q, c)


def _keyword_score(query: str, candidate: str) -> tuple[int, set[str]]:
    query_words = keywords(query)
    if not query_words:
        return 0, set()
    candidate_words = keywords(candidate)
    candidate_set = set(candidate_words)

    exact = 0
    partial = 0
    matched: list[str] = []
    for word in query_words:
        if word in candidate_set:
            exact += 1
            matched.append(word)
        elif any(word in cw or cw in word for cw in candidate_words):
            partial += 1
            matched.append(word)

    ratio = (exact + PARTIAL_WEIGHT * partial) / len(query_words)
    reasons: set[str] = set()

    if exact == len(query_words):
        base = 85
        reasons.add("all_keywords")
    elif ratio >= 0.8:
        base = 70
    elif ratio >= 0.6:
        base = 50
    elif ratio >= 0.4:
        base = 30
    elif ratio > 0:
        base = 15
    else:
        return 0, set()

    if "all_keywords" not in reasons:
        reasons.add("partial_keywords")

    value = float(base)
    if _order_preserved(matched, candidate_words):
        value += ORDER_BONUS
        reasons.add("order_preserved")

    if _length_ratio(query, candidate) < LENGTH_RATIO_FLOOR:
        value *= LENGTH_PENALTY
        reasons.add("length_penalty")

    result = _clamp(int(value + 0.5))

    # Topic boost only sharpens an existing lexical match
    for name, pattern, boost in PATTERN_GROUPS:
        if pattern.search(query) and pattern.search(candidate):
            result += boost
            reasons.add(f"pattern:{name}")

    return _clamp(result), reasons


def _order_preserved(matched: list[str], candidate_words: list[str]) -> bool:
    """True if matched query words occur in candidate_words in query order."""
    if not matched:
        return False
    idx = 0
    for cw in candidate_words:
        if idx < len(matched):
            word = matched[idx]
            if cw == word or word in cw or cw in word:
                idx += 1
    return idx == len(matched)


def _length_ratio(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return min(len(a), len(b)) / longest


def _clamp(value: int) -> int:
    return max(0, min(100, value))


def rank(query: str, candidates: Iterable[HasText]) -> list[MatchResult]:
    """Score every candidate and rank the non-zero ones.

    Sorted by descending score; equal scores keep the input order, which is
    the order clarification options are lettered in.
    """
    results = []
    for candidate in candidates:
        value, reasons = score(query, candidate.text)
        logger.debug("candidate_scored", query=query, candidate=candidate.text, score=value)
        if value > 0:
            results.append(MatchResult(candidate=candidate, score=value, reasons=reasons))
    results.sort(key=lambda r: r.score, reverse=True)
    return results
