"""Confidence scoring as a fold over named adjustment rules.

Each rule inspects the text and the detected work type and returns a
signed delta. The deltas are summed onto ``BASE_CONFIDENCE`` and the total
is clamped exactly once, so no caller ever sees a score outside
``[MIN_CONFIDENCE, MAX_CONFIDENCE]``.
"""

import re
from dataclasses import dataclass
from typing import Callable

from deva.ai.matcher import CONFIRMATION_PATTERNS
from deva.schemas import WorkType

BASE_CONFIDENCE = 50
MIN_CONFIDENCE = 30
MAX_CONFIDENCE = 95

DETAILED_LENGTH = 50
MIN_DETAIL_LENGTH = 12

INTERROGATIVES = re.compile(r"\b(when|where|what|how|why)\b", re.I)
DIAGNOSTICS = re.compile(r"error\s+message|stack\s+trace|steps\s+to", re.I)


@dataclass(frozen=True)
class ScoringRule:
    name: str
    delta: Callable[[str, WorkType], int]


def _keyword_confirmation(text: str, work_type: WorkType) -> int:
    return 20 if CONFIRMATION_PATTERNS[work_type].search(text) else 0


def _detailed_description(text: str, work_type: WorkType) -> int:
    return 10 if len(text.strip()) > DETAILED_LENGTH else 0


def _too_short(text: str, work_type: WorkType) -> int:
    return -40 if len(text.strip()) < MIN_DETAIL_LENGTH else 0


def _interrogatives(text: str, work_type: WorkType) -> int:
    return 10 if INTERROGATIVES.search(text) else 0


def _diagnostics(text: str, work_type: WorkType) -> int:
    if work_type != WorkType.BUG:
        return 0
    return 15 if DIAGNOSTICS.search(text) else 0


SCORING_RULES: tuple[ScoringRule, ...] = (
    ScoringRule("keyword_confirmation", _keyword_confirmation),
    ScoringRule("detailed_description", _detailed_description),
    ScoringRule("too_short", _too_short),
    ScoringRule("interrogatives", _interrogatives),
    ScoringRule("diagnostics", _diagnostics),
)


def clamp_confidence(value: float) -> int:
    return int(max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, round(value))))


def score_breakdown(text: str, work_type: WorkType) -> dict[str, int]:
    """Contribution of every rule, keyed by rule name."""
    text = text or ""
    return {rule.name: rule.delta(text, work_type) for rule in SCORING_RULES}


def calculate_confidence(text: str, work_type: WorkType) -> int:
    """Score how confidently ``text`` describes a ``work_type`` item."""
    total = BASE_CONFIDENCE + sum(score_breakdown(text, work_type).values())
    return clamp_confidence(total)
