from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exposing camelCase JSON names for snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WorkType(str, Enum):
    BUG = "bug"
    DOCUMENTATION = "documentation"
    TESTING = "testing"
    FEATURE = "feature"
    INFRASTRUCTURE = "infrastructure"
    RESEARCH = "research"


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class UXPattern(str, Enum):
    QUICK_CREATE = "quick-create"
    CONVERSATIONAL = "conversational"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ConversationStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    def can_transition_to(self, target: "ConversationStatus") -> bool:
        """Statuses only move forward: active -> completed | abandoned."""
        if target == self:
            return True
        return self == ConversationStatus.ACTIVE


def unique_labels(labels) -> tuple[str, ...]:
    """Drop duplicate labels, keeping first-seen order."""
    seen: dict[str, None] = {}
    for label in labels:
        label = str(label).strip()
        if label and label not in seen:
            seen[label] = None
    return tuple(seen)


class IssueData(CamelModel):
    """A fully classified work item. Edits produce a new value."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    title: str
    description: str
    work_type: WorkType
    priority: Priority = Priority.MEDIUM
    labels: tuple[str, ...] = ()
    linked_issues: tuple[str, ...] = ()
    confidence: float = Field(default=50, ge=0, le=100)
    team: Optional[str] = None
    assignee: Optional[str] = None

    @field_validator("labels", mode="before")
    @classmethod
    def dedupe_labels(cls, v):
        return unique_labels(v or ())


class IssueDraft(CamelModel):
    """Partial issue as submitted by a client before validation."""

    title: Optional[str] = None
    description: Optional[str] = None
    work_type: WorkType = WorkType.FEATURE
    priority: Priority = Priority.MEDIUM
    labels: list[str] = Field(default_factory=list)
    linked_issues: list[str] = Field(default_factory=list)
    confidence: float = Field(default=50, ge=0, le=100)
    team: Optional[str] = None
    assignee: Optional[str] = None


class IssueUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    priority: Optional[Priority] = None
    labels: Optional[list[str]] = None
    assignee: Optional[str] = None
    state_id: Optional[str] = None


class IssuePreview(CamelModel):
    title: str
    description: str
    work_type: WorkType
    priority: Priority
    confidence: float
    labels: Optional[list[str]] = None


# -----------------------------------------------------------------------------
# Explanation layer
# -----------------------------------------------------------------------------


class AlternativeWorkType(CamelModel):
    type: WorkType
    confidence: int


class WorkTypeReasoning(CamelModel):
    detected: WorkType
    confidence: int
    reasoning: str
    alternatives: list[AlternativeWorkType] = Field(default_factory=list)


class PriorityReasoning(CamelModel):
    detected: Priority
    confidence: int
    reasoning: str
    factors: list[str] = Field(default_factory=list)


class LabelReasoning(CamelModel):
    suggested: list[str]
    confidence: int
    reasoning: str
    sources: list[str] = Field(default_factory=list)


class QuestionsReasoning(CamelModel):
    questions: list[str] = Field(default_factory=list)
    reasoning: str
    confidence_impact: int = 0


class AIReasoningData(CamelModel):
    work_type_reasoning: WorkTypeReasoning
    priority_reasoning: PriorityReasoning
    label_reasoning: LabelReasoning
    questions_reasoning: QuestionsReasoning


class ConfidenceBreakdown(CamelModel):
    work_type: int
    priority: int
    title: int
    description: int
    labels: int


class ConfidenceMetrics(CamelModel):
    overall: int
    breakdown: ConfidenceBreakdown
    improvement_suggestions: list[str] = Field(default_factory=list)


# -----------------------------------------------------------------------------
# Conversations
# -----------------------------------------------------------------------------


class Message(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: str
    role: MessageRole
    content: str
    timestamp: datetime
    issue_preview: Optional[IssuePreview] = None


class ContextMessage(CamelModel):
    """Prior chat turn supplied by a client for classification context."""

    role: MessageRole
    content: str
    id: Optional[str] = None
    timestamp: Optional[datetime] = None


class ConversationCreate(CamelModel):
    user_id: str
    first_message: str = Field(min_length=1)


class MessageCreate(CamelModel):
    role: MessageRole
    content: str = Field(min_length=1)
    issue_preview: Optional[IssuePreview] = None


class ConversationStatusUpdate(CamelModel):
    status: ConversationStatus


class ConversationResponse(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: str
    user_id: str
    status: ConversationStatus
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# -----------------------------------------------------------------------------
# Users and issue history
# -----------------------------------------------------------------------------


class UserPreferences(CamelModel):
    default_team: Optional[str] = None
    default_priority: Priority = Priority.MEDIUM
    default_labels: list[str] = Field(default_factory=list)


class UserCreate(CamelModel):
    email: str = Field(min_length=3, max_length=320)
    name: Optional[str] = None


class LinearAuthUpdate(CamelModel):
    linear_user_id: str = Field(min_length=1)


class UserResponse(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    linear_user_id: Optional[str] = None
    preferences: UserPreferences
    created_at: datetime
    updated_at: datetime


class UserCorrection(CamelModel):
    field: str
    original_value: str
    corrected_value: str
    timestamp: datetime


class FinalIssue(CamelModel):
    title: str
    description: str
    priority: Priority
    team: Optional[str] = None
    assignee: Optional[str] = None
    labels: list[str] = Field(default_factory=list)
    linear_issue_id: Optional[str] = None
    linear_issue_url: Optional[str] = None


class IssueHistoryCreate(CamelModel):
    user_id: str
    original_input: str
    work_type: WorkType
    final_issue: FinalIssue
    corrections: list[UserCorrection] = Field(default_factory=list)
    confidence: float = Field(ge=0, le=100)


class IssueHistoryResponse(IssueHistoryCreate):
    id: str
    created_at: datetime


# -----------------------------------------------------------------------------
# Request / response bodies
# -----------------------------------------------------------------------------


class ProcessRequest(CamelModel):
    message: str
    context: Optional[list[ContextMessage]] = None


class RefineRequest(CamelModel):
    issue_data: IssueData
    refinement: str = Field(min_length=1)


class RefineResponse(CamelModel):
    issue_data: IssueData


class CreateIssueOptions(CamelModel):
    assignee_id: Optional[str] = None
    state_id: Optional[str] = None
    label_ids: Optional[list[str]] = None
    parent_id: Optional[str] = None


class CreateIssueRequest(CamelModel):
    issue_data: IssueDraft
    team_id: Optional[str] = None
    options: Optional[CreateIssueOptions] = None


class CreatedIssue(CamelModel):
    id: str
    identifier: str
    title: str
    url: str


class CreateIssueResponse(CamelModel):
    success: bool
    issue: Optional[CreatedIssue] = None
