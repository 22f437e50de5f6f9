import logging
from typing import Optional

from fastapi import APIRouter, Depends

from deva.ai import AIEngine, ClassificationResult
from deva.dependencies import get_ai_engine
from deva.editing import EditableIssueData
from deva.schemas import (
    AIReasoningData,
    CamelModel,
    ConfidenceMetrics,
    IssuePreview,
    ProcessRequest,
    RefineRequest,
    RefineResponse,
    UXPattern,
    WorkType,
)
from deva.session import Session, require_session
from deva.utils import PRIORITY_ICONS, WORK_TYPE_ICONS, confidence_level

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/process", tags=["process"])

PREVIEW_THRESHOLD = 70


class ProcessResponse(CamelModel):
    response: str
    issue_preview: Optional[IssuePreview] = None
    work_type: WorkType
    pattern: UXPattern
    confidence: int
    suggested_labels: list[str]
    questions: list[str]
    reasoning: AIReasoningData
    metrics: ConfidenceMetrics
    editable_issue: EditableIssueData
    creation_mode: UXPattern


def compose_reply(result: ClassificationResult) -> str:
    """Assistant message shown in the chat for a classification."""
    issue = result.issue_data
    if result.confidence > PREVIEW_THRESHOLD:
        return (
            "I've understood your request. Here's what I'll create:\n\n"
            f"**{issue.title}**\n\n"
            f"{issue.description}\n\n"
            f"Type: {WORK_TYPE_ICONS[issue.work_type]} {issue.work_type.value}\n"
            f"Priority: {PRIORITY_ICONS[issue.priority]} {issue.priority.value}\n"
            f"Confidence: {result.confidence}% ({confidence_level(result.confidence)})\n\n"
            "Would you like me to create this issue in Linear, or would you like to refine it further?"
        )

    questions = result.questions or [
        "What specific functionality you want to build?",
        "What problem does it solve?",
        "Any technical requirements or constraints?",
    ]
    bullets = "\n".join(f"- {question}" for question in questions)
    return f"I need more information to create a work item. Could you provide more details about:\n\n{bullets}"


@router.post("", response_model=ProcessResponse)
async def process_message(
    payload: ProcessRequest,
    session: Session = Depends(require_session),
    engine: AIEngine = Depends(get_ai_engine),
):
    """Classify a chat message into a work item preview."""
    result = await engine.classify(payload.message, payload.context)

    logger.info(
        "Processed message",
        extra={
            "work_type": result.work_type.value,
            "confidence": result.confidence,
            "pattern": result.creation_mode.value,
            "source": result.source,
        },
    )

    issue_preview = None
    if result.confidence > PREVIEW_THRESHOLD:
        issue = result.issue_data
        issue_preview = IssuePreview(
            title=issue.title,
            description=issue.description,
            work_type=issue.work_type,
            priority=issue.priority,
            confidence=issue.confidence,
            labels=list(issue.labels),
        )

    return ProcessResponse(
        response=compose_reply(result),
        issue_preview=issue_preview,
        work_type=result.work_type,
        pattern=result.creation_mode,
        confidence=result.confidence,
        suggested_labels=result.suggested_labels,
        questions=result.questions,
        reasoning=result.reasoning,
        metrics=result.metrics,
        editable_issue=result.editable_issue,
        creation_mode=result.creation_mode,
    )


@router.post("/refine", response_model=RefineResponse)
async def refine_issue(
    payload: RefineRequest,
    session: Session = Depends(require_session),
    engine: AIEngine = Depends(get_ai_engine),
):
    """Fold a follow-up answer into an existing preview."""
    return RefineResponse(issue_data=engine.refine_issue(payload.issue_data, payload.refinement))
