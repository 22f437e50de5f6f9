"""Shared fixtures for API and client tests.

The app runs against an in-memory SQLite database. Entering ``TestClient``
as a context manager runs the lifespan, which creates the tables, and
leaving it disposes the engine, which drops the database again.
"""

import asyncio
import json
import os
from collections.abc import Generator

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SESSION_SECRET"] = "test-secret-that-is-long-enough-for-sessions"
os.environ.pop("LLM_PROVIDER", None)

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from deva.ai import AIEngine  # noqa: E402
from deva.dependencies import get_ai_engine, get_linear_factory, get_linear_oauth  # noqa: E402
from deva.linear import LinearService  # noqa: E402
from deva.oauth import LinearOAuth, OAuthSettings  # noqa: E402
from deva.session import SESSION_COOKIE_NAME, SessionData, encode_session  # noqa: E402
from main import app  # noqa: E402


def run_async(coro):
    return asyncio.run(coro)


class FakeLinear:
    """Answers Linear GraphQL requests and records every operation sent."""

    def __init__(self, teams=None, labels=None, states=None):
        self.teams = [{"id": "team-1", "name": "Core", "key": "CORE"}] if teams is None else teams
        self.labels = labels if labels is not None else [{"id": "label-bug", "name": "bug", "color": "#eb5757"}]
        self.states = states if states is not None else [
            {"id": "state-backlog", "name": "Backlog", "type": "backlog", "position": 0},
            {"id": "state-todo", "name": "Todo", "type": "unstarted", "position": 1},
        ]
        self.requests: list[dict] = []

    def mutations(self) -> list[dict]:
        return [request for request in self.requests if request["query"].lstrip().startswith("mutation")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        query = body["query"]
        variables = body.get("variables") or {}

        if "viewer" in query:
            data = {
                "viewer": {
                    "id": "user-1",
                    "name": "Ada",
                    "email": "ada@example.com",
                    "teams": {"nodes": self.teams},
                }
            }
        elif "issueLabelCreate" in query:
            label = {"id": f"label-{variables['input']['name']}", **variables["input"]}
            label.pop("teamId")
            self.labels.append(label)
            data = {"issueLabelCreate": {"success": True, "issueLabel": label}}
        elif "issueCreate" in query:
            issue_input = variables["input"]
            data = {
                "issueCreate": {
                    "success": True,
                    "issue": {
                        "id": "issue-1",
                        "identifier": "CORE-1",
                        "title": issue_input["title"],
                        "url": "https://linear.app/acme/issue/CORE-1",
                    },
                }
            }
        elif "issueUpdate" in query:
            data = {
                "issueUpdate": {
                    "success": True,
                    "issue": {
                        "id": variables["id"],
                        "identifier": "CORE-1",
                        "title": variables["input"].get("title", "Existing"),
                        "url": "https://linear.app/acme/issue/CORE-1",
                    },
                }
            }
        elif "organization" in query:
            data = {"organization": {"id": "org-1", "name": "Acme", "urlKey": "acme"}}
        elif "IssueTeam" in query:
            data = {"issue": {"team": {"id": "team-1"}}}
        elif "states" in query:
            data = {"team": {"states": {"nodes": self.states}}}
        elif "TeamLabels" in query:
            data = {"team": {"labels": {"nodes": self.labels}}}
        elif "issueLabels" in query:
            data = {"issueLabels": {"nodes": self.labels}}
        elif "teams" in query:
            data = {"teams": {"nodes": self.teams}}
        elif "users" in query:
            data = {
                "users": {
                    "nodes": [
                        {"id": "user-1", "name": "Ada", "email": "ada@example.com", "displayName": "ada"}
                    ]
                }
            }
        elif "searchIssues" in query:
            data = {
                "searchIssues": {
                    "nodes": [
                        {
                            "id": "issue-9",
                            "identifier": "CORE-9",
                            "title": "Login fails",
                            "url": "https://linear.app/acme/issue/CORE-9",
                        }
                    ]
                }
            }
        else:
            return httpx.Response(200, json={"errors": [{"message": "Unknown query"}]})

        return httpx.Response(200, json={"data": data})

    def factory(self, access_token: str) -> LinearService:
        return LinearService(access_token, transport=httpx.MockTransport(self.handler))


class FakeOAuth(LinearOAuth):
    def __init__(self, configured: bool = True, token: str = "linear-token"):
        settings = OAuthSettings(
            client_id="client-id" if configured else None,
            client_secret="client-secret",
            redirect_uri="http://testserver/api/auth/linear/callback",
        )
        super().__init__(settings)
        self.token = token
        self.codes: list[str] = []

    async def exchange_code(self, code: str) -> str:
        self.codes.append(code)
        return self.token


@pytest.fixture
def fake_linear() -> FakeLinear:
    return FakeLinear()


@pytest.fixture
def fake_oauth() -> FakeOAuth:
    return FakeOAuth()


@pytest.fixture
def client(fake_linear: FakeLinear, fake_oauth: FakeOAuth) -> Generator[TestClient, None, None]:
    """TestClient with Linear, OAuth and the classifier swapped for local fakes."""
    app.dependency_overrides[get_linear_factory] = lambda: fake_linear.factory
    app.dependency_overrides[get_linear_oauth] = lambda: fake_oauth
    app.dependency_overrides[get_ai_engine] = lambda: AIEngine()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def login(client: TestClient, access_token: str = "linear-token") -> None:
    data = SessionData(
        access_token=access_token, user_id="user-1", user_email="ada@example.com", is_logged_in=True
    )
    client.cookies.set(SESSION_COOKIE_NAME, encode_session(data))


@pytest.fixture
def auth_client(client: TestClient) -> TestClient:
    login(client)
    return client
