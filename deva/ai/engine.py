"""Classification pipeline: heuristics, optional LLM stage, explanation."""

import asyncio
import logging
import re
from typing import Optional, Sequence

from pydantic import Field

from deva.ai.heuristics import detect_labels, detect_priority, domain_labels, explicit_priority
from deva.ai.matcher import detect_work_type
from deva.ai.questions import generate_questions
from deva.ai.reasoning import build_metrics, build_reasoning
from deva.ai.scoring import calculate_confidence
from deva.editing import EditableIssueData
from deva.llm_service import DEFAULT_LLM_TIMEOUT, LLMService
from deva.schemas import (
    AIReasoningData,
    CamelModel,
    ConfidenceMetrics,
    ContextMessage,
    IssueData,
    MessageRole,
    Priority,
    UXPattern,
    WorkType,
    unique_labels,
)
from deva.utils import truncate

logger = logging.getLogger(__name__)

QUICK_CREATE_TYPES = frozenset({WorkType.BUG, WorkType.DOCUMENTATION, WorkType.TESTING})
QUICK_CREATE_THRESHOLD = 70

TITLE_MAX_LENGTH = 80

TITLE_PREFIXES = {
    WorkType.BUG: "Fix: ",
    WorkType.DOCUMENTATION: "Docs: ",
    WorkType.TESTING: "Test: ",
    WorkType.FEATURE: "Feature: ",
    WorkType.INFRASTRUCTURE: "Infra: ",
    WorkType.RESEARCH: "Research: ",
}

LEADING_TYPE_WORDS = (
    re.compile(r"^(bug|fix|issue|problem|error)\b:?\s*", re.I),
    re.compile(r"^(documentation|document|docs?)\b:?\s*", re.I),
    re.compile(r"^(testing|test|spec)\b:?\s*", re.I),
    re.compile(r"^(feature|add|implement|create)\b:?\s*", re.I),
)


class ClassificationResult(CamelModel):
    work_type: WorkType
    priority: Priority
    issue_data: IssueData
    confidence: int = Field(ge=30, le=95)
    suggested_labels: list[str]
    questions: list[str] = Field(default_factory=list, max_length=3)
    reasoning: AIReasoningData
    metrics: ConfidenceMetrics
    editable_issue: EditableIssueData
    creation_mode: UXPattern
    source: str = "heuristic"


def determine_pattern(work_type: WorkType, confidence: float) -> UXPattern:
    """Quick-create only for confident bug, documentation and testing items."""
    if work_type in QUICK_CREATE_TYPES and confidence > QUICK_CREATE_THRESHOLD:
        return UXPattern.QUICK_CREATE
    return UXPattern.CONVERSATIONAL


def generate_title(text: str, work_type: WorkType) -> str:
    clean = (text or "").strip()
    for pattern in LEADING_TYPE_WORDS:
        clean = pattern.sub("", clean)
    clean = clean.strip().splitlines()[0] if clean.strip() else "New work item"
    clean = clean[0].upper() + clean[1:]
    return truncate(TITLE_PREFIXES[work_type] + clean, TITLE_MAX_LENGTH)


def _user_turns(context: Optional[Sequence[ContextMessage]]) -> list[str]:
    return [m.content for m in context or () if m.role == MessageRole.USER and m.content.strip()]


class AIEngine:
    """
    Turns free text into a classified work item.

    The heuristic path (``analyze``) is pure and synchronous. ``classify``
    optionally consults an LLM first and falls back to the heuristic path on
    any failure, so it never raises for bad model output or network errors.
    """

    def __init__(self, llm_service: Optional[LLMService] = None, timeout: Optional[float] = None):
        self.llm_service = llm_service
        if timeout is None:
            timeout = llm_service.timeout if llm_service else DEFAULT_LLM_TIMEOUT
        self.timeout = timeout

    def analyze(
        self, text: str, context: Optional[Sequence[ContextMessage]] = None
    ) -> ClassificationResult:
        analysis_text = self._analysis_text(text, context)
        work_type = detect_work_type(analysis_text)
        return self._build_result(
            text,
            context,
            work_type=work_type,
            priority=detect_priority(analysis_text),
            labels=detect_labels(analysis_text, work_type),
        )

    async def classify(
        self, text: str, context: Optional[Sequence[ContextMessage]] = None
    ) -> ClassificationResult:
        if self.llm_service is None:
            return self.analyze(text, context)

        analysis_text = self._analysis_text(text, context)
        try:
            llm_result = await asyncio.wait_for(
                self.llm_service.classify(analysis_text), timeout=self.timeout
            )
        except Exception as e:
            logger.warning(
                f"LLM classification failed, using heuristics: {str(e) or type(e).__name__}",
                extra={"error_type": type(e).__name__},
            )
            return self.analyze(text, context)

        labels = [llm_result.work_type.value, *(label.lower() for label in llm_result.labels)]
        logger.info(
            "LLM classification succeeded",
            extra={"work_type": llm_result.work_type.value, "priority": llm_result.priority.value},
        )
        return self._build_result(
            text,
            context,
            work_type=llm_result.work_type,
            priority=llm_result.priority,
            labels=list(unique_labels(labels)),
            title=llm_result.title,
            source="llm",
        )

    def refine_issue(self, issue: IssueData, refinement: str) -> IssueData:
        """Fold a follow-up answer into ``issue`` and return the new value."""
        refinement = refinement.strip()
        if not refinement:
            return issue

        description = f"{issue.description}\n\n{refinement}".strip()
        updates = {
            "description": description,
            "labels": unique_labels([*issue.labels, *domain_labels(refinement)]),
            "confidence": max(issue.confidence, calculate_confidence(description, issue.work_type)),
        }
        if explicit_priority(refinement):
            updates["priority"] = detect_priority(refinement)
        return IssueData.model_validate({**issue.model_dump(), **updates})

    @staticmethod
    def _analysis_text(text: str, context: Optional[Sequence[ContextMessage]]) -> str:
        return "\n".join([*_user_turns(context), text or ""]).strip()

    def _build_result(
        self,
        text: str,
        context: Optional[Sequence[ContextMessage]],
        work_type: WorkType,
        priority: Priority,
        labels: list[str],
        title: Optional[str] = None,
        source: str = "heuristic",
    ) -> ClassificationResult:
        analysis_text = self._analysis_text(text, context)
        turns = _user_turns(context)

        confidence = calculate_confidence(analysis_text, work_type)
        questions = generate_questions(work_type, analysis_text, confidence)
        reasoning = build_reasoning(work_type, priority, labels, questions, analysis_text, confidence)
        metrics = build_metrics(analysis_text, work_type, confidence)

        issue = IssueData(
            title=title or generate_title(turns[0] if turns else text, work_type),
            description="\n\n".join([*turns, (text or "").strip()]).strip(),
            work_type=work_type,
            priority=priority,
            labels=labels,
            confidence=confidence,
        )

        return ClassificationResult(
            work_type=work_type,
            priority=priority,
            issue_data=issue,
            confidence=confidence,
            suggested_labels=list(issue.labels),
            questions=questions,
            reasoning=reasoning,
            metrics=metrics,
            editable_issue=EditableIssueData.from_issue(issue, reasoning, metrics),
            creation_mode=determine_pattern(work_type, confidence),
            source=source,
        )
