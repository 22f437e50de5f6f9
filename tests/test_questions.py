from deva.ai.questions import MAX_QUESTIONS, generate_questions
from deva.schemas import WorkType


def test_no_questions_when_confident():
    assert generate_questions(WorkType.BUG, "crash", 85) == []


def test_at_most_three_questions():
    for work_type in WorkType:
        assert len(generate_questions(work_type, "", 30)) <= MAX_QUESTIONS


def test_answered_details_are_not_asked():
    text = "Checkout crashes on Safari; steps to reproduce: open cart, click pay"
    questions = generate_questions(WorkType.BUG, text, 70)
    assert "What are the steps to reproduce the problem?" not in questions
    assert "Which environment, browser or version is affected?" not in questions
    assert "Is there an error message or stack trace?" in questions
