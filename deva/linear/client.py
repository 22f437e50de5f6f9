import hashlib
import logging
import os
from typing import Any, Optional, Union

import httpx

from deva.errors import AuthenticationError, LinearAPIError, NoTeamFound, UpstreamUnavailable
from deva.linear.models import (
    LinearIssue,
    LinearLabel,
    LinearOrganization,
    LinearTeam,
    LinearUser,
    LinearViewer,
    LinearWorkflowState,
)
from deva.schemas import IssueData, IssueUpdate, Priority, WorkType

logger = logging.getLogger(__name__)

LINEAR_API_URL = "https://api.linear.app/graphql"
DEFAULT_TIMEOUT = 30.0

# Linear priorities: 0 none, 1 urgent, 2 high, 3 medium, 4 low
PRIORITY_MAP = {
    Priority.CRITICAL: 1,
    Priority.HIGH: 2,
    Priority.MEDIUM: 3,
    Priority.LOW: 4,
}

LABEL_PALETTE = (
    "#eb5757",
    "#f2994a",
    "#f2c94c",
    "#4cb782",
    "#26b5ce",
    "#5e6ad2",
    "#bb87fc",
    "#95a2b3",
)

# Workflow state names tried in order when no state is given.
STATE_PREFERENCES = {
    WorkType.BUG: ("Triage", "Todo", "Backlog"),
    WorkType.DOCUMENTATION: ("Todo", "Backlog"),
    WorkType.TESTING: ("Todo", "Backlog"),
    WorkType.FEATURE: ("Backlog", "Todo"),
    WorkType.INFRASTRUCTURE: ("Todo", "Backlog"),
    WorkType.RESEARCH: ("Backlog", "Todo"),
}

ISSUE_FIELDS = "id identifier title url"

VIEWER_QUERY = """
query Viewer {
  viewer { id name email teams { nodes { id name key } } }
}
"""

TEAMS_QUERY = "query Teams { teams(first: 100) { nodes { id name key } } }"

USERS_QUERY = "query Users { users(first: 250) { nodes { id name email displayName } } }"

LABELS_QUERY = "query Labels { issueLabels(first: 250) { nodes { id name color } } }"

TEAM_LABELS_QUERY = """
query TeamLabels($teamId: String!) {
  team(id: $teamId) { labels(first: 250) { nodes { id name color } } }
}
"""

TEAM_STATES_QUERY = """
query TeamStates($teamId: String!) {
  team(id: $teamId) { states { nodes { id name type position } } }
}
"""

ORGANIZATION_QUERY = "query Organization { organization { id name urlKey } }"

ISSUE_TEAM_QUERY = "query IssueTeam($id: String!) { issue(id: $id) { team { id } } }"

CREATE_LABEL_MUTATION = """
mutation CreateLabel($input: IssueLabelCreateInput!) {
  issueLabelCreate(input: $input) { success issueLabel { id name color } }
}
"""

CREATE_ISSUE_MUTATION = f"""
mutation CreateIssue($input: IssueCreateInput!) {{
  issueCreate(input: $input) {{ success issue {{ {ISSUE_FIELDS} }} }}
}}
"""

UPDATE_ISSUE_MUTATION = f"""
mutation UpdateIssue($id: String!, $input: IssueUpdateInput!) {{
  issueUpdate(id: $id, input: $input) {{ success issue {{ {ISSUE_FIELDS} }} }}
}}
"""

SEARCH_ISSUES_QUERY = f"""
query SearchIssues($term: String!, $first: Int, $filter: IssueFilter) {{
  searchIssues(term: $term, first: $first, filter: $filter) {{ nodes {{ {ISSUE_FIELDS} }} }}
}}
"""


def label_color(name: str) -> str:
    """Palette colour for a label; the same name always gets the same colour."""
    digest = hashlib.sha256(name.strip().lower().encode("utf-8")).digest()
    return LABEL_PALETTE[int.from_bytes(digest[:4], "big") % len(LABEL_PALETTE)]


def _is_auth_error(error: dict) -> bool:
    extensions = error.get("extensions") or {}
    kind = str(extensions.get("type") or extensions.get("code") or "").lower()
    return "authentication" in kind or "forbidden" in kind


def _issue(node: dict) -> LinearIssue:
    return LinearIssue(
        id=node["id"], identifier=node["identifier"], title=node["title"], url=node["url"]
    )


class LinearService:
    """
    Thin async client for the Linear GraphQL API.

    Authenticates with a user's OAuth access token. Every call is a single
    request with no retries; creating the same issue twice creates two issues.
    """

    def __init__(
        self,
        access_token: str,
        api_url: str = LINEAR_API_URL,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not access_token:
            raise AuthenticationError("Linear client not initialized. Please connect your Linear account.")
        if timeout is None:
            timeout = float(os.getenv("LINEAR_TIMEOUT_SECONDS", DEFAULT_TIMEOUT))
        self.api_url = api_url
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            },
        )

    async def __aenter__(self) -> "LinearService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict:
        try:
            response = await self._client.post(
                self.api_url, json={"query": query, "variables": variables or {}}
            )
        except httpx.TimeoutException as e:
            logger.error(f"Linear request timed out: {str(e)}")
            raise UpstreamUnavailable("Linear request timed out", cause=e)
        except httpx.HTTPError as e:
            logger.error(f"Linear request failed: {str(e)}")
            raise UpstreamUnavailable(f"Linear request failed: {str(e)}", cause=e)

        if response.status_code in (401, 403):
            raise AuthenticationError()

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        errors = payload.get("errors") or []
        if any(_is_auth_error(error) for error in errors):
            raise AuthenticationError()
        if errors:
            message = "; ".join(str(error.get("message", "unknown error")) for error in errors)
            logger.error(f"Linear GraphQL error: {message}")
            raise LinearAPIError(message)
        if response.status_code >= 400 or "data" not in payload:
            logger.error(f"Linear returned HTTP {response.status_code}")
            raise LinearAPIError(f"Linear returned HTTP {response.status_code}")

        return payload["data"]

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def get_my_user(self) -> LinearViewer:
        viewer = (await self._request(VIEWER_QUERY))["viewer"]
        teams = [LinearTeam(**team) for team in viewer.get("teams", {}).get("nodes", [])]
        return LinearViewer(
            id=viewer["id"], name=viewer.get("name", ""), email=viewer.get("email"), teams=teams
        )

    async def get_teams(self) -> list[LinearTeam]:
        data = await self._request(TEAMS_QUERY)
        return [LinearTeam(**team) for team in data["teams"]["nodes"]]

    async def get_users(self) -> list[LinearUser]:
        data = await self._request(USERS_QUERY)
        return [
            LinearUser(
                id=user["id"],
                name=user.get("name", ""),
                email=user.get("email"),
                display_name=user.get("displayName"),
            )
            for user in data["users"]["nodes"]
        ]

    async def get_labels(self, team_id: Optional[str] = None) -> list[LinearLabel]:
        if team_id:
            data = await self._request(TEAM_LABELS_QUERY, {"teamId": team_id})
            nodes = (data.get("team") or {}).get("labels", {}).get("nodes", [])
        else:
            nodes = (await self._request(LABELS_QUERY))["issueLabels"]["nodes"]
        return [LinearLabel(**label) for label in nodes]

    async def get_team_states(self, team_id: str) -> list[LinearWorkflowState]:
        data = await self._request(TEAM_STATES_QUERY, {"teamId": team_id})
        nodes = (data.get("team") or {}).get("states", {}).get("nodes", [])
        states = [
            LinearWorkflowState(
                id=state["id"],
                name=state["name"],
                type=state.get("type"),
                position=state.get("position") or 0,
            )
            for state in nodes
        ]
        return sorted(states, key=lambda state: state.position)

    async def get_workspace(self) -> LinearOrganization:
        org = (await self._request(ORGANIZATION_QUERY))["organization"]
        return LinearOrganization(id=org["id"], name=org["name"], url_key=org.get("urlKey"))

    # -------------------------------------------------------------------------
    # Default resolution
    # -------------------------------------------------------------------------

    async def resolve_team_id(self, team_id: Optional[str] = None) -> str:
        """Return ``team_id`` or the first team the viewer belongs to."""
        if team_id:
            return team_id
        viewer = await self.get_my_user()
        if not viewer.teams:
            raise NoTeamFound()
        return viewer.teams[0].id

    async def resolve_label_ids(self, team_id: str, names) -> list[str]:
        """Map label names to ids, creating labels the team does not have yet."""
        wanted = [name.strip() for name in names if name and name.strip()]
        if not wanted:
            return []

        existing = {label.name.lower(): label.id for label in await self.get_labels(team_id)}
        label_ids: list[str] = []
        for name in wanted:
            label_id = existing.get(name.lower())
            if label_id is None:
                label_id = (await self.create_label(team_id, name)).id
                existing[name.lower()] = label_id
            if label_id not in label_ids:
                label_ids.append(label_id)
        return label_ids

    async def resolve_state_id(self, team_id: str, work_type: WorkType) -> Optional[str]:
        """Preferred workflow state for ``work_type``, else the team's first state."""
        states = await self.get_team_states(team_id)
        if not states:
            return None
        by_name = {state.name.lower(): state.id for state in states}
        for name in STATE_PREFERENCES[work_type]:
            if name.lower() in by_name:
                return by_name[name.lower()]
        return states[0].id

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create_label(self, team_id: str, name: str) -> LinearLabel:
        data = await self._request(
            CREATE_LABEL_MUTATION,
            {"input": {"name": name, "color": label_color(name), "teamId": team_id}},
        )
        result = data["issueLabelCreate"]
        if not result.get("success") or not result.get("issueLabel"):
            raise LinearAPIError(f"Failed to create label {name}")
        logger.info("Created Linear label", extra={"label": name, "team_id": team_id})
        return LinearLabel(**result["issueLabel"])

    async def create_issue(
        self,
        issue: IssueData,
        team_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        state_id: Optional[str] = None,
        label_ids: Optional[list[str]] = None,
        parent_id: Optional[str] = None,
    ) -> LinearIssue:
        """
        Create ``issue`` in Linear.

        Args:
            issue: Classified issue to create
            team_id: Target team; defaults to the issue's team, then the viewer's first team
            assignee_id: Linear user id; defaults to the issue's assignee
            state_id: Workflow state; defaults to the preferred state for the work type
            label_ids: Label ids; defaults to the issue's label names, created if missing
            parent_id: Optional parent issue id

        Raises:
            NoTeamFound: The viewer belongs to no team (no issue is created)
        """
        team_id = await self.resolve_team_id(team_id or issue.team)
        if label_ids is None:
            label_ids = await self.resolve_label_ids(team_id, issue.labels)
        if state_id is None:
            state_id = await self.resolve_state_id(team_id, issue.work_type)

        issue_input = {
            "teamId": team_id,
            "title": issue.title,
            "description": issue.description,
            "priority": PRIORITY_MAP[issue.priority],
            "labelIds": label_ids,
            "stateId": state_id,
            "assigneeId": assignee_id or issue.assignee,
            "parentId": parent_id,
        }
        issue_input = {key: value for key, value in issue_input.items() if value is not None}

        data = await self._request(CREATE_ISSUE_MUTATION, {"input": issue_input})
        result = data["issueCreate"]
        if not result.get("success") or not result.get("issue"):
            raise LinearAPIError("Linear did not create the issue")

        created = _issue(result["issue"])
        logger.info(
            "Created Linear issue",
            extra={"issue_id": created.id, "identifier": created.identifier, "team_id": team_id},
        )
        return created

    async def update_issue(self, issue_id: str, updates: Union[IssueUpdate, dict]) -> LinearIssue:
        if isinstance(updates, dict):
            updates = IssueUpdate.model_validate(updates)

        issue_input: dict[str, Any] = {}
        if updates.title is not None:
            issue_input["title"] = updates.title
        if updates.description is not None:
            issue_input["description"] = updates.description
        if updates.priority is not None:
            issue_input["priority"] = PRIORITY_MAP[updates.priority]
        if updates.assignee is not None:
            issue_input["assigneeId"] = updates.assignee
        if updates.state_id is not None:
            issue_input["stateId"] = updates.state_id
        if updates.labels is not None:
            data = await self._request(ISSUE_TEAM_QUERY, {"id": issue_id})
            team = (data.get("issue") or {}).get("team")
            if not team:
                raise LinearAPIError(f"Issue {issue_id} has no team")
            issue_input["labelIds"] = await self.resolve_label_ids(team["id"], updates.labels)

        data = await self._request(UPDATE_ISSUE_MUTATION, {"id": issue_id, "input": issue_input})
        result = data["issueUpdate"]
        if not result.get("success") or not result.get("issue"):
            raise LinearAPIError(f"Linear did not update issue {issue_id}")
        logger.info("Updated Linear issue", extra={"issue_id": issue_id, "fields": list(issue_input)})
        return _issue(result["issue"])

    async def search_issues(
        self,
        query: str,
        team_id: Optional[str] = None,
        assignee_id: Optional[str] = None,
        limit: int = 25,
    ) -> list[LinearIssue]:
        issue_filter: dict[str, Any] = {}
        if team_id:
            issue_filter["team"] = {"id": {"eq": team_id}}
        if assignee_id:
            issue_filter["assignee"] = {"id": {"eq": assignee_id}}

        data = await self._request(
            SEARCH_ISSUES_QUERY,
            {"term": query, "first": limit, "filter": issue_filter or None},
        )
        return [_issue(node) for node in data["searchIssues"]["nodes"]]
