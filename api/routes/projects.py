"""
Projects, ideas and tasks
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from api.dependencies import get_db
from core.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from core.security import require_api_or_session
from models.activity import Activity
from models.base import IdeaStatus, ProjectPhase, ProjectStatus, TaskPriority, utcnow
from models.project import Project, Idea, Task
from schemas.projects import (
    ProjectResponse, ProjectUpsert, IdeaResponse, IdeaUpsert, IdeaPromoteRequest,
    TaskResponse, TaskUpsert
)
from services.filters import QueryFilter
from typing import Optional
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Projects"])


async def _commit_unique(db: AsyncSession, message: str) -> None:
    """Commit, mapping a unique-constraint violation to ConflictError."""
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(message, original_exception=e)


# ============================================================================
# Projects
# ============================================================================

@router.get("/api/projects")
async def list_projects(
    status: Optional[ProjectStatus] = Query(None),
    phase: Optional[ProjectPhase] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    filters = (
        QueryFilter(Project)
        .equals(Project.status, status)
        .equals(Project.phase, phase)
        .order_by(Project.updated_at.desc())
    )
    result = await db.execute(filters.apply(select(Project)))
    return {"projects": [ProjectResponse.model_validate(p) for p in result.scalars().all()]}


@router.post("/api/projects", dependencies=[Depends(require_api_or_session)])
async def upsert_project(body: ProjectUpsert, db: AsyncSession = Depends(get_db)):
    """
    Create a project, or update one when ``id`` is present.

    Phase changes belong to POST /api/phase; setting ``phase`` here only
    writes the column and does not instantiate checklists.
    """
    fields = body.model_dump(exclude_unset=True, exclude={"id"})

    if body.id:
        project = await db.get(Project, body.id)
        if project is None:
            raise NotFoundError(f"Project {body.id} not found")
        for name, value in fields.items():
            setattr(project, name, value)
        project.updated_at = utcnow()
        await _commit_unique(db, f"A project named {project.name!r} already exists")
        logger.info(f"Updated project {project.id}: {sorted(fields)}")
        return {"project": ProjectResponse.model_validate(project)}

    if not fields.get("name"):
        raise InvalidArgumentError("name is required")

    project = Project(**{k: v for k, v in fields.items() if v is not None})
    db.add(project)
    await _commit_unique(db, f"A project named {fields['name']!r} already exists")
    await db.refresh(project)

    logger.info(f"Created project {project.id} ({project.name})")
    return {"project": ProjectResponse.model_validate(project)}


# ============================================================================
# Ideas
# ============================================================================

@router.get("/api/ideas")
async def list_ideas(
    status: Optional[IdeaStatus] = Query(None),
    potential: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    filters = (
        QueryFilter(Idea)
        .equals(Idea.status, status)
        .equals(Idea.potential, potential)
        .order_by(Idea.created_at.desc(), Idea.id.desc())
    )
    result = await db.execute(filters.apply(select(Idea)))
    return {"ideas": [IdeaResponse.model_validate(i) for i in result.scalars().all()]}


@router.post("/api/ideas", dependencies=[Depends(require_api_or_session)])
async def upsert_idea(body: IdeaUpsert, db: AsyncSession = Depends(get_db)):
    fields = body.model_dump(exclude_unset=True, exclude={"id"})

    if body.id:
        idea = await db.get(Idea, body.id)
        if idea is None:
            raise NotFoundError(f"Idea {body.id} not found")
        for name, value in fields.items():
            setattr(idea, name, value)
        idea.updated_at = utcnow()
        await db.commit()
        return {"idea": IdeaResponse.model_validate(idea)}

    if not fields.get("title"):
        raise InvalidArgumentError("title is required")

    idea = Idea(**{k: v for k, v in fields.items() if v is not None})
    db.add(idea)
    await db.commit()
    await db.refresh(idea)
    logger.info(f"Created idea {idea.id}: {idea.title}")
    return {"idea": IdeaResponse.model_validate(idea)}


@router.post(
    "/api/ideas/promote",
    status_code=201,
    dependencies=[Depends(require_api_or_session)]
)
async def promote_idea(body: IdeaPromoteRequest, db: AsyncSession = Depends(get_db)):
    """
    Turn an idea into an in-progress project.

    404 for an unknown idea, 400 if it was already promoted.
    """
    idea = await db.get(Idea, body.idea_id)
    if idea is None:
        raise NotFoundError("Idea not found", context={"idea_id": body.idea_id})
    if idea.status == IdeaStatus.PROMOTED:
        raise InvalidArgumentError("Idea is already promoted", context={"idea_id": idea.id})

    project = Project(
        name=body.name or idea.title,
        description=body.description or idea.description or "",
        status=ProjectStatus.IN_PROGRESS,
        phase=body.phase or ProjectPhase.BUILD,
    )
    db.add(project)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(f"A project named {project.name!r} already exists", original_exception=e)

    idea.status = IdeaStatus.PROMOTED
    idea.promoted_to_project_id = project.id
    idea.updated_at = utcnow()

    db.add(Activity(
        project_id=project.id,
        type="promotion",
        title="Idea promoted to project",
        description=f'Promoted from idea: "{idea.title}"',
    ))
    await db.commit()
    await db.refresh(project)

    logger.info(f"Idea {idea.id} promoted to project {project.id}")
    return {
        "project": ProjectResponse.model_validate(project),
        "message": "Idea promoted to project successfully",
    }


# ============================================================================
# Tasks
# ============================================================================

PRIORITY_ORDER = case(
    {
        TaskPriority.CRITICAL.value: 0,
        TaskPriority.HIGH.value: 1,
        TaskPriority.MEDIUM.value: 2,
        TaskPriority.LOW.value: 3,
    },
    value=Task.priority,
    else_=4,
)


@router.get("/api/tasks")
async def list_tasks(
    project_id: Optional[int] = Query(None),
    status: Optional[ProjectStatus] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Tasks ordered by priority (critical first), then most recently updated."""
    filters = (
        QueryFilter(Task)
        .equals(Task.project_id, project_id)
        .equals(Task.status, status)
        .order_by(PRIORITY_ORDER, Task.updated_at.desc())
    )
    result = await db.execute(filters.apply(select(Task).options(selectinload(Task.project))))
    return {"tasks": [TaskResponse.model_validate(t) for t in result.scalars().all()]}


@router.post("/api/tasks", dependencies=[Depends(require_api_or_session)])
async def upsert_task(body: TaskUpsert, db: AsyncSession = Depends(get_db)):
    fields = body.model_dump(exclude_unset=True, exclude={"id"})

    if body.id:
        task = await db.get(Task, body.id)
        if task is None:
            raise NotFoundError(f"Task {body.id} not found")
        for name, value in fields.items():
            setattr(task, name, value)
        task.updated_at = utcnow()
        await db.commit()
        task_id = task.id
    else:
        if not fields.get("title"):
            raise InvalidArgumentError("title is required")
        if fields.get("project_id") is not None and await db.get(Project, fields["project_id"]) is None:
            raise NotFoundError(f"Project {fields['project_id']} not found")
        task = Task(**{k: v for k, v in fields.items() if v is not None})
        db.add(task)
        await db.commit()
        task_id = task.id
        logger.info(f"Created task {task_id}: {task.title}")

    result = await db.execute(
        select(Task).options(selectinload(Task.project)).where(Task.id == task_id)
        .execution_options(populate_existing=True)
    )
    return {"task": TaskResponse.model_validate(result.scalar_one())}
