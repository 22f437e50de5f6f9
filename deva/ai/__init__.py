"""Rule-based work-item classifier with an optional LLM stage."""

from deva.ai.engine import AIEngine, ClassificationResult, determine_pattern, generate_title
from deva.ai.heuristics import detect_labels, detect_priority
from deva.ai.matcher import detect_work_type
from deva.ai.scoring import calculate_confidence

__all__ = [
    "AIEngine",
    "ClassificationResult",
    "calculate_confidence",
    "detect_labels",
    "detect_priority",
    "detect_work_type",
    "determine_pattern",
    "generate_title",
]
