"""
Activity feed and comments
"""

from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from api.dependencies import get_db
from core.exceptions import NotFoundError
from core.security import require_api_or_session
from models.activity import Activity, Comment
from models.project import Project
from schemas.projects import ActivityCreate, ActivityResponse, CommentCreate, CommentResponse
from services.filters import QueryFilter
from typing import Optional
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Activity"])


@router.get("/api/activity")
async def list_activity(
    project_id: Optional[int] = Query(None),
    since: Optional[datetime] = Query(None, description="ISO timestamp, inclusive"),
    until: Optional[datetime] = Query(None, description="ISO timestamp, inclusive"),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db)
):
    """Newest-first activity entries with the owning project's name."""
    filters = (
        QueryFilter(Activity)
        .equals(Activity.project_id, project_id)
        .since(Activity.created_at, since)
        .until(Activity.created_at, until)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(limit)
    )
    result = await db.execute(filters.apply(select(Activity).options(selectinload(Activity.project))))
    return {"activity": [ActivityResponse.model_validate(a) for a in result.scalars().all()]}


@router.post(
    "/api/activity",
    status_code=201,
    dependencies=[Depends(require_api_or_session)]
)
async def create_activity(body: ActivityCreate, db: AsyncSession = Depends(get_db)):
    if body.project_id is not None and await db.get(Project, body.project_id) is None:
        raise NotFoundError(f"Project {body.project_id} not found")

    entry = Activity(
        project_id=body.project_id,
        type=body.type,
        title=body.title,
        description=body.description,
        extra_metadata=body.metadata,
    )
    db.add(entry)
    await db.commit()

    result = await db.execute(
        select(Activity).options(selectinload(Activity.project)).where(Activity.id == entry.id)
    )
    return {"activity": ActivityResponse.model_validate(result.scalar_one())}


# ============================================================================
# Comments
# ============================================================================

@router.get("/api/comments")
async def list_comments(
    unread: bool = Query(False, description="Only unread comments"),
    target_type: Optional[str] = Query(None),
    target_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    filters = (
        QueryFilter(Comment)
        .equals(Comment.is_read, False if unread else None)
        .equals(Comment.target_type, target_type)
        .equals(Comment.target_id, target_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    result = await db.execute(filters.apply(select(Comment)))
    return {"comments": [CommentResponse.model_validate(c) for c in result.scalars().all()]}


@router.post(
    "/api/comments",
    status_code=201,
    dependencies=[Depends(require_api_or_session)]
)
async def create_comment(body: CommentCreate, db: AsyncSession = Depends(get_db)):
    comment = Comment(
        target_type=body.target_type,
        target_id=body.target_id,
        text=body.text,
        author=body.author or "Mr Z",
    )
    db.add(comment)
    await db.commit()
    await db.refresh(comment)

    logger.info(f"Comment {comment.id} added on {comment.target_type}:{comment.target_id}")
    return {"comment": CommentResponse.model_validate(comment)}


@router.post(
    "/api/comments/{comment_id}/read",
    dependencies=[Depends(require_api_or_session)]
)
async def mark_comment_read(comment_id: int, db: AsyncSession = Depends(get_db)):
    comment = await db.get(Comment, comment_id)
    if comment is None:
        raise NotFoundError(f"Comment {comment_id} not found")

    comment.is_read = True
    await db.commit()
    return {"ok": True}
