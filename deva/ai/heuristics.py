"""Priority and label detection shared by every work type."""

import re

from deva.schemas import Priority, WorkType, unique_labels

# Precedence: critical beats high beats low; nothing matching means medium.
PRIORITY_PATTERNS: tuple[tuple[Priority, re.Pattern], ...] = (
    (
        Priority.CRITICAL,
        re.compile(r"critical|urgent|asap|immediately|emergency|outage|blocker|production down", re.I),
    ),
    (Priority.HIGH, re.compile(r"\bhigh\b|important|\bsoon\b|quickly|major", re.I)),
    (Priority.LOW, re.compile(r"\blow\b|minor|nice.to.have|eventually|someday|trivial|cosmetic", re.I)),
)

DEFAULT_PRIORITY = Priority.MEDIUM

DOMAIN_LABEL_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    (
        "frontend",
        re.compile(r"\b(ui|ux|frontend|front-end|css|button|modal|form|page|react|layout|screen)\b", re.I),
    ),
    (
        "backend",
        re.compile(r"\b(api|backend|back-end|endpoint|database|server|sql|query|graphql)\b", re.I),
    ),
    ("performance", re.compile(r"slow|performance|optimi[sz]|latency|\blag\b|memory leak|timeout", re.I)),
    (
        "security",
        re.compile(r"security|vulnerab|\bauth(?:n|z|enticat\w*|ori[sz]\w*)?\b|xss|csrf|injection|permission|password|encrypt", re.I),
    ),
    ("mobile", re.compile(r"mobile|\bios\b|android|iphone|tablet|responsive", re.I)),
)


def detect_priority(text: str) -> Priority:
    for priority, pattern in PRIORITY_PATTERNS:
        if pattern.search(text or ""):
            return priority
    return DEFAULT_PRIORITY


def explicit_priority(text: str) -> bool:
    """True when an urgency word decided the priority rather than the default."""
    return any(pattern.search(text or "") for _, pattern in PRIORITY_PATTERNS)


def priority_factors(text: str) -> list[str]:
    """Urgency words found in ``text``, tagged with the level they signal."""
    factors = []
    for priority, pattern in PRIORITY_PATTERNS:
        for match in pattern.finditer(text or ""):
            factor = f'"{match.group(0).lower()}" suggests {priority.value} priority'
            if factor not in factors:
                factors.append(factor)
    return factors


def domain_labels(text: str) -> list[str]:
    return [label for label, pattern in DOMAIN_LABEL_PATTERNS if pattern.search(text or "")]


def detect_labels(text: str, work_type: WorkType) -> list[str]:
    """Work type label first, then any matching domain labels, no duplicates."""
    return list(unique_labels([work_type.value, *domain_labels(text)]))


def label_sources(text: str, work_type: WorkType) -> list[str]:
    """Human-readable origin of each suggested label."""
    sources = [f"{work_type.value}: detected work type"]
    for label, pattern in DOMAIN_LABEL_PATTERNS:
        match = pattern.search(text or "")
        if match and label != work_type.value:
            sources.append(f'{label}: keyword "{match.group(0).lower()}"')
    return sources
