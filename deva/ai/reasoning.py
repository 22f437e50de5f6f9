"""Explanation layer for a classification.

Everything here is derived from the matcher, scorer and heuristics. No
function in this module makes a classification decision: given the same
text and the same upstream results the output is always identical.
"""

from deva.ai.heuristics import domain_labels, explicit_priority, label_sources, priority_factors
from deva.ai.matcher import keyword_hits, matching_work_types
from deva.ai.scoring import MAX_CONFIDENCE, calculate_confidence, clamp_confidence
from deva.schemas import (
    AIReasoningData,
    AlternativeWorkType,
    ConfidenceBreakdown,
    ConfidenceMetrics,
    LabelReasoning,
    Priority,
    PriorityReasoning,
    QuestionsReasoning,
    WorkType,
    WorkTypeReasoning,
)

MAX_ALTERNATIVES = 2
QUESTION_IMPACT = 5
SUGGESTION_THRESHOLD = 60

IMPROVEMENT_SUGGESTIONS = {
    "work_type": "Say what kind of work this is: a bug, a feature, docs, tests, infrastructure or research.",
    "priority": "Say how urgent this is, for example urgent, soon or nice to have.",
    "title": "Add a one-line summary of the outcome you want.",
    "description": "Describe the context, the expected behaviour and any constraints in more detail.",
    "labels": "Name the affected area, for example frontend, backend, API or mobile.",
}


def _description_score(length: int) -> int:
    if length < 20:
        return 35
    if length < 50:
        return 55
    if length < 150:
        return 75
    return 90


def field_breakdown(text: str, work_type: WorkType) -> ConfidenceBreakdown:
    """Per-field confidence from keyword density and text length."""
    text = text or ""
    words = len(text.split())
    return ConfidenceBreakdown(
        work_type=clamp_confidence(40 + 15 * len(keyword_hits(text, work_type))),
        priority=85 if explicit_priority(text) else 60,
        title=clamp_confidence(35 + 5 * words),
        description=clamp_confidence(_description_score(len(text.strip()))),
        labels=clamp_confidence(55 + 10 * len(domain_labels(text))),
    )


def _alternatives(text: str, work_type: WorkType) -> list[AlternativeWorkType]:
    others = [wt for wt in matching_work_types(text) if wt != work_type]
    return [
        AlternativeWorkType(
            type=alt,
            confidence=clamp_confidence(calculate_confidence(text, alt) - 10 * (rank + 1)),
        )
        for rank, alt in enumerate(others[:MAX_ALTERNATIVES])
    ]


def build_metrics(text: str, work_type: WorkType, confidence: int) -> ConfidenceMetrics:
    breakdown = field_breakdown(text, work_type)
    suggestions = [
        IMPROVEMENT_SUGGESTIONS[name]
        for name, value in breakdown.model_dump().items()
        if value < SUGGESTION_THRESHOLD
    ]
    return ConfidenceMetrics(
        overall=confidence,
        breakdown=breakdown,
        improvement_suggestions=suggestions,
    )


def build_reasoning(
    work_type: WorkType,
    priority: Priority,
    labels: list[str],
    questions: list[str],
    text: str,
    confidence: int,
) -> AIReasoningData:
    """Assemble the human-readable justification for a classification."""
    text = text or ""
    breakdown = field_breakdown(text, work_type)

    hits = keyword_hits(text, work_type)
    if hits:
        quoted = ", ".join(f'"{hit}"' for hit in hits)
        work_type_text = f"Matched {work_type.value} keywords: {quoted}."
    else:
        work_type_text = f"No strong keywords found, so this defaults to {work_type.value}."

    factors = priority_factors(text)
    if factors:
        priority_text = f"Priority set to {priority.value} from urgency words in the request."
    else:
        priority_text = f"No urgency indicators found; using the default {priority.value} priority."

    domain_count = len(labels) - 1
    label_text = (
        f"{len(labels)} label(s): the work type plus {domain_count} matched domain keyword group(s)."
    )

    if questions:
        questions_text = "Answering these would fill in details the request leaves out."
    else:
        questions_text = "The request already covers the key details."

    return AIReasoningData(
        work_type_reasoning=WorkTypeReasoning(
            detected=work_type,
            confidence=breakdown.work_type,
            reasoning=work_type_text,
            alternatives=_alternatives(text, work_type),
        ),
        priority_reasoning=PriorityReasoning(
            detected=priority,
            confidence=breakdown.priority,
            reasoning=priority_text,
            factors=factors,
        ),
        label_reasoning=LabelReasoning(
            suggested=list(labels),
            confidence=breakdown.labels,
            reasoning=label_text,
            sources=label_sources(text, work_type),
        ),
        questions_reasoning=QuestionsReasoning(
            questions=list(questions),
            reasoning=questions_text,
            confidence_impact=max(0, min(QUESTION_IMPACT * len(questions), MAX_CONFIDENCE - confidence)),
        ),
    )
