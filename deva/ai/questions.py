"""Clarifying questions for details the text does not already cover."""

import re

from deva.schemas import WorkType

MAX_QUESTIONS = 3
CONFIDENT_ENOUGH = 85

# (question, pattern that shows the text already answers it)
QUESTION_BANK: dict[WorkType, tuple[tuple[str, re.Pattern], ...]] = {
    WorkType.BUG: (
        ("What are the steps to reproduce the problem?", re.compile(r"steps\s+to|reproduc|\b1\.", re.I)),
        ("What did you expect to happen, and what happened instead?", re.compile(r"expect|instead|should", re.I)),
        ("Is there an error message or stack trace?", re.compile(r"error\s+message|stack\s+trace|traceback|log", re.I)),
        ("Which environment, browser or version is affected?", re.compile(r"browser|version|environment|prod|staging|chrome|safari|firefox|\bv\d", re.I)),
    ),
    WorkType.FEATURE: (
        ("Who is this feature for, and what problem does it solve?", re.compile(r"\busers?\b|customer|so that|because|problem", re.I)),
        ("What are the acceptance criteria?", re.compile(r"acceptance|criteria|should|must|done when", re.I)),
        ("Are there technical constraints or dependencies?", re.compile(r"constraint|depend|require|api|integrat", re.I)),
    ),
    WorkType.DOCUMENTATION: (
        ("Which page or section needs to change?", re.compile(r"page|section|readme|guide|chapter", re.I)),
        ("Who is the intended audience?", re.compile(r"audience|developer|user|admin|onboard", re.I)),
    ),
    WorkType.TESTING: (
        ("Which module or flow should be covered?", re.compile(r"module|flow|component|endpoint|service|page", re.I)),
        ("Unit, integration or end-to-end tests?", re.compile(r"unit|integration|e2e|end-to-end", re.I)),
        ("Is there a coverage target?", re.compile(r"coverage|\d+\s*%", re.I)),
    ),
    WorkType.INFRASTRUCTURE: (
        ("Which environment is affected?", re.compile(r"prod|staging|dev\b|environment|cluster", re.I)),
        ("Is there downtime or a rollback plan to consider?", re.compile(r"downtime|rollback|migrat|maintenance", re.I)),
        ("Which services or pipelines depend on this change?", re.compile(r"service|pipeline|depend", re.I)),
    ),
    WorkType.RESEARCH: (
        ("What question should the research answer?", re.compile(r"\?|whether|question|decide", re.I)),
        ("What is the time box for this investigation?", re.compile(r"\bdays?\b|\bweeks?\b|hours?|time.?box|sprint", re.I)),
        ("What does a successful outcome look like?", re.compile(r"outcome|deliverable|recommend|report|success", re.I)),
    ),
}


def generate_questions(work_type: WorkType, text: str, confidence: int) -> list[str]:
    """Up to ``MAX_QUESTIONS`` questions whose answers are missing from ``text``."""
    if confidence >= CONFIDENT_ENOUGH:
        return []

    questions = [
        question
        for question, answered in QUESTION_BANK[work_type]
        if not answered.search(text or "")
    ]
    return questions[:MAX_QUESTIONS]
