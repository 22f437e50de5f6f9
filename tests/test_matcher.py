import pytest

from deva.ai.matcher import detect_work_type, keyword_hits, matching_work_types
from deva.schemas import WorkType


@pytest.mark.parametrize(
    "text,expected",
    [
        ("App crashes on login, urgent!", WorkType.BUG),
        ("Update the README with setup steps", WorkType.DOCUMENTATION),
        ("doc", WorkType.DOCUMENTATION),
        ("Write unit tests for the billing service", WorkType.TESTING),
        ("Set up Kubernetes deploy for staging", WorkType.INFRASTRUCTURE),
        ("Investigate options for search indexing", WorkType.RESEARCH),
        ("Add dark mode toggle to settings page", WorkType.FEATURE),
        ("", WorkType.FEATURE),
        ("   ", WorkType.FEATURE),
    ],
)
def test_detect_work_type(text, expected):
    assert detect_work_type(text) == expected


def test_bug_wins_over_later_patterns():
    # Mentions tests and docs, but the crash is checked first.
    assert detect_work_type("Test suite crashes while building docs") == WorkType.BUG


def test_docker_is_not_documentation():
    assert detect_work_type("Move the worker into a docker image") == WorkType.INFRASTRUCTURE


def test_latest_is_not_testing():
    assert detect_work_type("Show the latest invoices first") == WorkType.FEATURE


def test_matching_work_types_keeps_matcher_order():
    matches = matching_work_types("Fix the failing e2e test and add a new helper")
    assert matches[0] == WorkType.BUG
    assert WorkType.TESTING in matches
    assert matches[-1] == WorkType.FEATURE


def test_keyword_hits_are_distinct_and_lowercase():
    assert keyword_hits("Crash! Another CRASH and an error", WorkType.BUG) == ["crash", "error"]
    assert keyword_hits("", WorkType.BUG) == []


@pytest.mark.parametrize("text", ["Add a prefix option to invoice numbers", "Support suffix and prefix filters"])
def test_fix_inside_a_word_is_not_a_bug(text):
    assert detect_work_type(text) == WorkType.FEATURE


def test_fix_variants_are_bugs():
    assert detect_work_type("Fixing the header alignment") == WorkType.BUG
    assert detect_work_type("Two issues with the export") == WorkType.BUG
