"""Keyword matcher mapping free text to a work type.

Patterns are evaluated in a fixed order and the first hit wins; anything
that matches none of them is a feature.
"""

import re

from deva.schemas import WorkType

# Evaluation order matters: a crash report that mentions tests is a bug.
WORK_TYPE_PATTERNS: tuple[tuple[WorkType, re.Pattern], ...] = (
    (WorkType.BUG, re.compile(r"bug|crash|error|broken|\bfix|\bissues?\b|fail|exception", re.I)),
    (WorkType.DOCUMENTATION, re.compile(r"\bdoc(?!ker)|readme|guide|manual|tutorial|changelog", re.I)),
    (WorkType.TESTING, re.compile(r"\btest|\bspecs?\b|coverage|\be2e\b|\bunit\b|\bqa\b", re.I)),
    (
        WorkType.INFRASTRUCTURE,
        re.compile(
            r"deploy|\bci\b|\bcd\b|ci/cd|docker|kubernetes|\bk8s\b|infrastructure|terraform|pipeline",
            re.I,
        ),
    ),
    (WorkType.RESEARCH, re.compile(r"research|investigat|explor|analy[sz]|study|spike", re.I)),
)

DEFAULT_WORK_TYPE = WorkType.FEATURE

# Second-pass confirmation patterns used by the scorer. Feature has one even
# though the matcher never tests for it, so default classifications can still
# earn the keyword bonus.
CONFIRMATION_PATTERNS: dict[WorkType, re.Pattern] = {
    **dict(WORK_TYPE_PATTERNS),
    WorkType.FEATURE: re.compile(
        r"feature|\badd|\bnew\b|implement|create|build|support|allow|enable", re.I
    ),
}


def detect_work_type(text: str) -> WorkType:
    """Return the first work type whose pattern matches ``text``."""
    if not text or not text.strip():
        return DEFAULT_WORK_TYPE

    for work_type, pattern in WORK_TYPE_PATTERNS:
        if pattern.search(text):
            return work_type

    return DEFAULT_WORK_TYPE


def matching_work_types(text: str) -> list[WorkType]:
    """Every work type whose confirmation pattern matches, in matcher order."""
    if not text:
        return []
    ordered = [wt for wt, _ in WORK_TYPE_PATTERNS] + [DEFAULT_WORK_TYPE]
    return [wt for wt in ordered if CONFIRMATION_PATTERNS[wt].search(text)]


def keyword_hits(text: str, work_type: WorkType) -> list[str]:
    """Distinct keywords for ``work_type`` found in ``text``, lower-cased."""
    if not text:
        return []
    hits: list[str] = []
    for match in CONFIRMATION_PATTERNS[work_type].finditer(text):
        word = match.group(0).lower()
        if word not in hits:
            hits.append(word)
    return hits
