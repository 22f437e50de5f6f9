import asyncio
from unittest.mock import AsyncMock

import pytest
from hypothesis import given, settings, strategies as st

from deva.ai import AIEngine, determine_pattern, generate_title
from deva.llm_service import LLMClassification, LLMServiceError
from deva.schemas import ContextMessage, IssueData, MessageRole, Priority, UXPattern, WorkType


def run_async(coro):
    return asyncio.run(coro)


@pytest.fixture
def engine():
    return AIEngine()


def test_urgent_crash_is_a_critical_bug(engine):
    result = engine.analyze("App crashes on login, urgent!")

    assert result.work_type == WorkType.BUG
    assert result.priority == Priority.CRITICAL
    assert result.confidence >= 60
    assert "bug" in result.suggested_labels
    assert result.issue_data.title.startswith("Fix: ")
    assert result.source == "heuristic"


def test_single_word_is_low_confidence_documentation(engine):
    result = engine.analyze("doc")

    assert result.work_type == WorkType.DOCUMENTATION
    assert result.confidence == 30
    assert result.creation_mode == UXPattern.CONVERSATIONAL
    assert 0 < len(result.questions) <= 3


def test_detailed_bug_is_quick_create(engine):
    result = engine.analyze(
        "The login button is broken and throws an error message when clicked on Safari"
    )
    assert result.confidence == 95
    assert result.creation_mode == UXPattern.QUICK_CREATE
    assert result.questions == []


def test_result_agrees_with_reasoning_and_editable_view(engine):
    result = engine.analyze("Add CSV export to the reports page, important for finance")

    assert result.reasoning.work_type_reasoning.detected == result.work_type
    assert result.reasoning.priority_reasoning.detected == result.priority
    assert result.metrics.overall == result.confidence
    assert result.editable_issue.title.value == result.issue_data.title
    assert not result.editable_issue.has_changes


def test_context_turns_feed_the_description(engine):
    context = [
        ContextMessage(role=MessageRole.USER, content="Checkout crashes for guests"),
        ContextMessage(role=MessageRole.ASSISTANT, content="What are the steps to reproduce?"),
    ]
    result = engine.analyze("Add an item to the cart, then pay without logging in", context)

    assert result.work_type == WorkType.BUG
    assert result.issue_data.title == "Fix: Checkout crashes for guests"
    assert "Checkout crashes for guests" in result.issue_data.description
    assert "What are the steps" not in result.issue_data.description


@settings(max_examples=50)
@given(st.text(max_size=300))
def test_analyze_invariants(text):
    result = AIEngine().analyze(text)

    assert 30 <= result.confidence <= 95
    assert result.work_type.value in result.suggested_labels
    assert len(result.suggested_labels) == len(set(result.suggested_labels))
    assert len(result.questions) <= 3


@given(st.sampled_from(list(WorkType)), st.integers(min_value=0, max_value=100))
def test_determine_pattern(work_type, confidence):
    expected = (
        UXPattern.QUICK_CREATE
        if work_type in (WorkType.BUG, WorkType.DOCUMENTATION, WorkType.TESTING) and confidence > 70
        else UXPattern.CONVERSATIONAL
    )
    assert determine_pattern(work_type, confidence) == expected


def test_generate_title_strips_type_words_and_truncates():
    assert generate_title("bug: login fails", WorkType.BUG) == "Fix: Login fails"
    assert generate_title("documentation for the API", WorkType.DOCUMENTATION) == "Docs: For the API"
    assert generate_title("", WorkType.FEATURE) == "Feature: New work item"
    assert len(generate_title("x" * 200, WorkType.RESEARCH)) == 80


def test_llm_result_is_used_when_valid():
    llm = AsyncMock()
    llm.classify.return_value = LLMClassification(
        work_type="infrastructure", priority="high", labels=["Backend"], title="Move CI to GitHub Actions"
    )
    engine = AIEngine(llm_service=llm, timeout=1)

    result = run_async(engine.classify("our builds are slow, move them somewhere else"))

    assert result.source == "llm"
    assert result.work_type == WorkType.INFRASTRUCTURE
    assert result.priority == Priority.HIGH
    assert result.suggested_labels == ["infrastructure", "backend"]
    assert result.issue_data.title == "Move CI to GitHub Actions"


def test_llm_failure_falls_back_to_heuristics():
    llm = AsyncMock()
    llm.classify.side_effect = LLMServiceError("Invalid JSON response from LLM")
    engine = AIEngine(llm_service=llm, timeout=1)

    result = run_async(engine.classify("App crashes on login, urgent!"))

    assert result.source == "heuristic"
    assert result.work_type == WorkType.BUG
    assert result.priority == Priority.CRITICAL


def test_llm_timeout_falls_back_to_heuristics():
    async def slow_classify(text):
        await asyncio.sleep(5)

    llm = AsyncMock()
    llm.classify.side_effect = slow_classify
    engine = AIEngine(llm_service=llm, timeout=0.01)

    result = run_async(engine.classify("Write unit tests for the billing service"))

    assert result.source == "heuristic"
    assert result.work_type == WorkType.TESTING


def test_refine_returns_a_new_issue(engine):
    issue = IssueData(
        title="Feature: Export",
        description="Add CSV export",
        work_type=WorkType.FEATURE,
        labels=["feature"],
        confidence=50,
    )

    refined = engine.refine_issue(issue, "It is urgent and the API must stream large files")

    assert refined is not issue
    assert issue.description == "Add CSV export"
    assert refined.description == "Add CSV export\n\nIt is urgent and the API must stream large files"
    assert refined.priority == Priority.CRITICAL
    assert refined.labels == ("feature", "backend")
    assert refined.confidence >= issue.confidence


def test_refine_with_blank_text_is_a_no_op(engine):
    issue = IssueData(title="T", description="D", work_type=WorkType.BUG)
    assert engine.refine_issue(issue, "   ") is issue
