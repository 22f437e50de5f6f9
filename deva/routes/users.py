from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deva.database import models
from deva.database.config import get_db
from deva.schemas import (
    LinearAuthUpdate,
    UserCreate,
    UserPreferences,
    UserResponse,
    unique_labels,
)

router = APIRouter(prefix="/api/users", tags=["users"])


def user_response(user: models.User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        linear_user_id=user.linear_user_id,
        preferences=UserPreferences(
            default_team=user.default_team,
            default_priority=user.default_priority,
            default_labels=list(user.default_labels or []),
        ),
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


async def get_user_or_404(user_id: str, db: AsyncSession) -> models.User:
    result = await db.execute(select(models.User).where(models.User.id == user_id))
    user = result.scalars().first()

    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return user


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, response: Response, db: AsyncSession = Depends(get_db)):
    """Create a user, or return the existing one with the same email"""
    email = payload.email.strip().lower()
    result = await db.execute(select(models.User).where(models.User.email == email))
    existing = result.scalars().first()
    if existing:
        response.status_code = status.HTTP_200_OK
        return user_response(existing)

    user = models.User(email=email, name=payload.name, default_priority="medium", default_labels=[])
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user_response(user)


@router.get("", response_model=UserResponse)
async def get_user_by_email(email: str = Query(min_length=3), db: AsyncSession = Depends(get_db)):
    """Look up a user by email"""
    result = await db.execute(select(models.User).where(models.User.email == email.strip().lower()))
    user = result.scalars().first()

    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return user_response(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    """Get user by ID"""
    return user_response(await get_user_or_404(user_id, db))


@router.put("/{user_id}/preferences", response_model=UserResponse)
async def update_preferences(
    user_id: str, payload: UserPreferences, db: AsyncSession = Depends(get_db)
):
    """Replace a user's defaults"""
    user = await get_user_or_404(user_id, db)

    user.default_team = payload.default_team
    user.default_priority = payload.default_priority.value
    user.default_labels = list(unique_labels(payload.default_labels))
    user.updated_at = models.utcnow()

    await db.commit()
    await db.refresh(user)
    return user_response(user)


@router.put("/{user_id}/linear", response_model=UserResponse)
async def update_linear_auth(
    user_id: str, payload: LinearAuthUpdate, db: AsyncSession = Depends(get_db)
):
    """Link a user to their Linear account"""
    user = await get_user_or_404(user_id, db)

    user.linear_user_id = payload.linear_user_id
    user.updated_at = models.utcnow()

    await db.commit()
    await db.refresh(user)
    return user_response(user)
