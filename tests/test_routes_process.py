from unittest.mock import AsyncMock

from deva.ai import AIEngine
from deva.dependencies import get_ai_engine
from deva.llm_service import LLMServiceError
from main import app


def test_process_requires_a_session(client):
    response = client.post("/api/process", json={"message": "App crashes on login, urgent!"})

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated with Linear"}


def test_confident_message_gets_a_preview(auth_client):
    response = auth_client.post(
        "/api/process",
        json={"message": "The login button is broken and throws an error message when clicked on Safari"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["workType"] == "bug"
    assert body["confidence"] == 95
    assert body["pattern"] == "quick-create"
    assert body["creationMode"] == "quick-create"
    assert body["issuePreview"]["title"].startswith("Fix: ")
    assert body["editableIssue"]["title"]["hasChanges"] is False
    assert body["metrics"]["overall"] == 95
    assert "Would you like me to create this issue" in body["response"]


def test_vague_message_asks_questions(auth_client):
    response = auth_client.post("/api/process", json={"message": "doc"})

    body = response.json()
    assert body["workType"] == "documentation"
    assert body["confidence"] == 30
    assert body["issuePreview"] is None
    assert body["pattern"] == "conversational"
    assert body["questions"]
    assert body["questions"][0] in body["response"]


def test_context_is_used(auth_client):
    response = auth_client.post(
        "/api/process",
        json={
            "message": "it happens every time on Chrome",
            "context": [{"role": "user", "content": "Checkout crashes for guests"}],
        },
    )
    assert response.json()["workType"] == "bug"


def test_llm_failure_still_classifies(auth_client):
    llm = AsyncMock()
    llm.classify.side_effect = LLMServiceError("boom")
    app.dependency_overrides[get_ai_engine] = lambda: AIEngine(llm_service=llm, timeout=1)

    response = auth_client.post("/api/process", json={"message": "App crashes on login, urgent!"})

    assert response.status_code == 200
    assert response.json()["workType"] == "bug"


def test_refine(auth_client):
    issue = {
        "title": "Feature: Export",
        "description": "Add CSV export",
        "workType": "feature",
        "priority": "medium",
        "labels": ["feature"],
        "confidence": 50,
    }
    response = auth_client.post(
        "/api/process/refine", json={"issueData": issue, "refinement": "Urgent, the API needs it"}
    )

    assert response.status_code == 200
    refined = response.json()["issueData"]
    assert refined["priority"] == "critical"
    assert refined["labels"] == ["feature", "backend"]
    assert refined["description"].endswith("Urgent, the API needs it")
