import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deva.database import models
from deva.database.config import get_db
from deva.routes.users import get_user_or_404
from deva.schemas import IssueHistoryCreate, IssueHistoryResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["history"])


def history_response(entry: models.IssueHistory) -> IssueHistoryResponse:
    return IssueHistoryResponse.model_validate(
        {
            "id": entry.id,
            "user_id": entry.user_id,
            "original_input": entry.original_input,
            "work_type": entry.work_type,
            "final_issue": entry.final_issue,
            "corrections": entry.corrections or [],
            "confidence": entry.confidence,
            "created_at": entry.created_at,
        }
    )


@router.post(
    "/issues/history", response_model=IssueHistoryResponse, status_code=status.HTTP_201_CREATED
)
async def record_issue(payload: IssueHistoryCreate, db: AsyncSession = Depends(get_db)):
    """Record a created issue with the corrections made before submission"""
    await get_user_or_404(payload.user_id, db)

    entry = models.IssueHistory(
        user_id=payload.user_id,
        original_input=payload.original_input,
        work_type=payload.work_type.value,
        final_issue=payload.final_issue.model_dump(mode="json"),
        corrections=[c.model_dump(mode="json") for c in payload.corrections],
        confidence=payload.confidence,
        created_at=models.utcnow(),
    )
    db.add(entry)
    await db.commit()

    logger.info(
        "Issue history recorded",
        extra={"user_id": payload.user_id, "corrections": len(payload.corrections)},
    )
    return history_response(entry)


@router.get("/users/{user_id}/issues", response_model=list[IssueHistoryResponse])
async def list_user_issues(
    user_id: str,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    """A user's issue history, newest first"""
    result = await db.execute(
        select(models.IssueHistory)
        .where(models.IssueHistory.user_id == user_id)
        .order_by(models.IssueHistory.created_at.desc())
        .limit(limit)
    )
    return [history_response(entry) for entry in result.scalars().all()]


@router.get("/issues/recent", response_model=list[IssueHistoryResponse])
async def list_recent_issues(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Most recently recorded issues across all users"""
    result = await db.execute(
        select(models.IssueHistory).order_by(models.IssueHistory.created_at.desc()).limit(limit)
    )
    return [history_response(entry) for entry in result.scalars().all()]
