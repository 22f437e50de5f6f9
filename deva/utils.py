"""Formatting helpers for chat responses."""

from deva.schemas import Priority, WorkType

WORK_TYPE_ICONS = {
    WorkType.BUG: "🐛",
    WorkType.DOCUMENTATION: "📖",
    WorkType.TESTING: "🧪",
    WorkType.FEATURE: "✨",
    WorkType.INFRASTRUCTURE: "🏗️",
    WorkType.RESEARCH: "🔬",
}

PRIORITY_ICONS = {
    Priority.CRITICAL: "🚨",
    Priority.HIGH: "⚠️",
    Priority.MEDIUM: "📌",
    Priority.LOW: "📎",
}


def truncate(value: str, max_length: int) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


def confidence_level(confidence: float) -> str:
    if confidence >= 80:
        return "high"
    if confidence >= 50:
        return "medium"
    return "low"
