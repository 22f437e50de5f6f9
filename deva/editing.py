"""Editable view of a classified issue.

Every user-facing field is wrapped in an :class:`EditableField`. Fields
are immutable; ``start_editing``, ``save`` and ``cancel`` return new
instances, and ``has_changes`` is recomputed from ``value`` and
``original_value`` on every transition instead of being carried over.
"""

from typing import Any, Callable, Optional

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from deva.schemas import (
    AIReasoningData,
    CamelModel,
    ConfidenceMetrics,
    IssueData,
    Priority,
    WorkType,
    unique_labels,
)

TITLE_MAX_LENGTH = 255

Validator = Callable[[Any], Optional[str]]


def _validate_title(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return "Title is required"
    if len(value) > TITLE_MAX_LENGTH:
        return f"Title must be at most {TITLE_MAX_LENGTH} characters"
    return None


def _validate_description(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return "Description is required"
    return None


def _enum_validator(enum_cls) -> Validator:
    allowed = {member.value for member in enum_cls}

    def validate(value: Any) -> Optional[str]:
        raw = value.value if isinstance(value, enum_cls) else value
        if raw not in allowed:
            return f"Must be one of: {', '.join(sorted(allowed))}"
        return None

    return validate


def _validate_labels(value: Any) -> Optional[str]:
    if not isinstance(value, (list, tuple)):
        return "Labels must be a list"
    if len(unique_labels(value)) != len(value):
        return "Labels must not contain duplicates"
    return None


FIELD_VALIDATORS: dict[str, Validator] = {
    "title": _validate_title,
    "description": _validate_description,
    "work_type": _enum_validator(WorkType),
    "priority": _enum_validator(Priority),
    "labels": _validate_labels,
}


class EditableField(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    value: Any
    is_editing: bool = False
    has_changes: bool = False
    original_value: Any
    validation_error: Optional[str] = None

    @classmethod
    def of(cls, value: Any) -> "EditableField":
        return cls(value=value, original_value=value)

    def start_editing(self) -> "EditableField":
        return self.model_copy(update={"is_editing": True, "validation_error": None})

    def save(self, new_value: Any, validator: Optional[Validator] = None) -> "EditableField":
        """Commit ``new_value`` unless ``validator`` rejects it."""
        error = validator(new_value) if validator else None
        if error:
            return self.model_copy(update={"is_editing": True, "validation_error": error})
        return self.model_copy(
            update={
                "value": new_value,
                "is_editing": False,
                "has_changes": new_value != self.original_value,
                "validation_error": None,
            }
        )

    def cancel(self) -> "EditableField":
        return self.model_copy(
            update={
                "value": self.original_value,
                "is_editing": False,
                "has_changes": False,
                "validation_error": None,
            }
        )


EDITABLE_FIELDS = ("title", "description", "work_type", "priority", "labels")


class EditableIssueData(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    title: EditableField
    description: EditableField
    work_type: EditableField
    priority: EditableField
    labels: EditableField
    confidence: float = Field(ge=0, le=100)
    reasoning: Optional[AIReasoningData] = None
    metrics: Optional[ConfidenceMetrics] = None

    @classmethod
    def from_issue(
        cls,
        issue: IssueData,
        reasoning: Optional[AIReasoningData] = None,
        metrics: Optional[ConfidenceMetrics] = None,
    ) -> "EditableIssueData":
        return cls(
            title=EditableField.of(issue.title),
            description=EditableField.of(issue.description),
            work_type=EditableField.of(issue.work_type.value),
            priority=EditableField.of(issue.priority.value),
            labels=EditableField.of(list(issue.labels)),
            confidence=issue.confidence,
            reasoning=reasoning,
            metrics=metrics,
        )

    @property
    def has_changes(self) -> bool:
        return any(getattr(self, name).has_changes for name in EDITABLE_FIELDS)

    def update_field(self, name: str, field: EditableField) -> "EditableIssueData":
        if name not in EDITABLE_FIELDS:
            raise KeyError(f"{name} is not an editable field")
        return self.model_copy(update={name: field})

    def save_field(self, name: str, new_value: Any) -> "EditableIssueData":
        """Save ``new_value`` into field ``name`` using its validator."""
        current: EditableField = getattr(self, name)
        return self.update_field(name, current.save(new_value, FIELD_VALIDATORS[name]))

    def cancel_field(self, name: str) -> "EditableIssueData":
        current: EditableField = getattr(self, name)
        return self.update_field(name, current.cancel())

    def to_issue_data(self, **extra: Any) -> IssueData:
        return IssueData(
            title=self.title.value,
            description=self.description.value,
            work_type=WorkType(self.work_type.value),
            priority=Priority(self.priority.value),
            labels=self.labels.value,
            confidence=self.confidence,
            **extra,
        )
