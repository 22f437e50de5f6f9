from hypothesis import given, strategies as st

from deva.ai.scoring import (
    MAX_CONFIDENCE,
    MIN_CONFIDENCE,
    calculate_confidence,
    clamp_confidence,
    score_breakdown,
)
from deva.schemas import WorkType


@given(st.text(), st.sampled_from(list(WorkType)))
def test_confidence_always_within_bounds(text, work_type):
    confidence = calculate_confidence(text, work_type)
    assert MIN_CONFIDENCE <= confidence <= MAX_CONFIDENCE


@given(st.floats(allow_nan=False, allow_infinity=False, min_value=-1e6, max_value=1e6))
def test_clamp_is_idempotent(value):
    once = clamp_confidence(value)
    assert clamp_confidence(once) == once


def test_short_text_hits_the_floor():
    assert calculate_confidence("doc", WorkType.DOCUMENTATION) == 30


def test_keyword_confirmation_adds_twenty():
    # 37 characters: no detail bonus and no short-text penalty.
    assert calculate_confidence("Add dark mode toggle to settings page", WorkType.FEATURE) == 70


def test_detailed_bug_report_hits_the_ceiling():
    text = "The login button is broken and throws an error message when clicked on Safari"
    assert calculate_confidence(text, WorkType.BUG) == 95


def test_diagnostics_only_count_for_bugs():
    text = "Stack trace explorer for the research notebook"
    assert score_breakdown(text, WorkType.RESEARCH)["diagnostics"] == 0
    assert score_breakdown(text, WorkType.BUG)["diagnostics"] == 15


def test_breakdown_names_every_rule():
    assert set(score_breakdown("anything", WorkType.FEATURE)) == {
        "keyword_confirmation",
        "detailed_description",
        "too_short",
        "interrogatives",
        "diagnostics",
    }
