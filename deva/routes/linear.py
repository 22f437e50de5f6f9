import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from deva import errors
from deva.dependencies import get_linear_service
from deva.linear import LinearService
from deva.linear.models import LinearIssue
from deva.schemas import (
    CreatedIssue,
    CreateIssueOptions,
    CreateIssueRequest,
    CreateIssueResponse,
    IssueData,
    IssueUpdate,
)
from deva.session import Session, require_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/linear", tags=["linear"])


def _created(issue: LinearIssue) -> CreatedIssue:
    return CreatedIssue(id=issue.id, identifier=issue.identifier, title=issue.title, url=issue.url)


@router.post("/create", response_model=CreateIssueResponse)
async def create_linear_issue(
    payload: CreateIssueRequest,
    session: Session = Depends(require_session),
    linear: LinearService = Depends(get_linear_service),
):
    """Create a Linear issue from a (possibly edited) preview."""
    draft = payload.issue_data
    if not (draft.title or "").strip() or not (draft.description or "").strip():
        raise errors.ValidationError("Title and description are required")

    issue = IssueData.model_validate(draft.model_dump())
    logger.info(
        "Creating Linear issue",
        extra={"work_type": issue.work_type.value, "team_id": payload.team_id},
    )
    options = payload.options or CreateIssueOptions()

    created = await linear.create_issue(
        issue,
        team_id=payload.team_id,
        assignee_id=options.assignee_id,
        state_id=options.state_id,
        label_ids=options.label_ids,
        parent_id=options.parent_id,
    )
    return CreateIssueResponse(success=True, issue=_created(created))


@router.get("/create")
async def get_linear_metadata(
    session: Session = Depends(require_session),
    linear: LinearService = Depends(get_linear_service),
):
    """Teams, users and labels to populate the create form."""
    teams = await linear.get_teams()
    users = await linear.get_users()
    labels = await linear.get_labels()
    current_user = await linear.get_my_user()

    return {
        "teams": [{"id": team.id, "name": team.name, "key": team.key} for team in teams],
        "users": [
            {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "displayName": user.display_name,
            }
            for user in users
        ],
        "labels": [{"id": label.id, "name": label.name, "color": label.color} for label in labels],
        "currentUser": {
            "id": current_user.id,
            "name": current_user.name,
            "email": current_user.email,
        },
    }


@router.patch("/issues/{issue_id}", response_model=CreateIssueResponse)
async def update_linear_issue(
    issue_id: str,
    payload: IssueUpdate,
    session: Session = Depends(require_session),
    linear: LinearService = Depends(get_linear_service),
):
    updated = await linear.update_issue(issue_id, payload)
    return CreateIssueResponse(success=True, issue=_created(updated))


@router.get("/issues", response_model=list[CreatedIssue])
async def search_linear_issues(
    query: str = Query(min_length=1),
    team_id: Optional[str] = Query(None, alias="teamId"),
    assignee_id: Optional[str] = Query(None, alias="assigneeId"),
    limit: int = Query(25, ge=1, le=100),
    session: Session = Depends(require_session),
    linear: LinearService = Depends(get_linear_service),
):
    issues = await linear.search_issues(query, team_id=team_id, assignee_id=assignee_id, limit=limit)
    return [_created(issue) for issue in issues]
