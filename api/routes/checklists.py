"""
Phase checklists: templates and per-project progress
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from api.dependencies import get_db
from core.database import insert_ignore
from core.exceptions import InvalidArgumentError, NotFoundError
from core.security import require_api_or_session
from models.base import utcnow
from models.checklist import ChecklistTemplate, ChecklistProgress
from models.project import Project
from schemas.projects import ChecklistActionRequest, ChecklistItemResponse
from services.phases import parse_phase
from typing import Optional
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Checklists"])


@router.get("/api/checklists")
async def get_checklist(
    phase: Optional[str] = Query(None, description="build or live"),
    project_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """
    Checklist templates, optionally with one project's progress.

    With both ``phase`` and ``project_id`` each template row carries the
    project's completion state (null when not yet instantiated).
    """
    if phase is not None and project_id is not None:
        query = (
            select(
                ChecklistTemplate,
                ChecklistProgress.id,
                ChecklistProgress.completed,
                ChecklistProgress.completed_at,
                ChecklistProgress.notes,
            )
            .outerjoin(
                ChecklistProgress,
                and_(
                    ChecklistProgress.checklist_item_id == ChecklistTemplate.id,
                    ChecklistProgress.project_id == project_id,
                )
            )
            .where(ChecklistTemplate.phase == parse_phase(phase))
            .order_by(ChecklistTemplate.item_order, ChecklistTemplate.id)
        )
        result = await db.execute(query)

        items = []
        for template, progress_id, completed, completed_at, notes in result.all():
            item = ChecklistItemResponse.model_validate(template)
            item.progress_id = progress_id
            item.completed = completed
            item.completed_at = completed_at
            item.notes = notes
            items.append(item)
        return {"checklist": items}

    query = select(ChecklistTemplate)
    if phase is not None:
        query = query.where(ChecklistTemplate.phase == parse_phase(phase))
        query = query.order_by(ChecklistTemplate.item_order, ChecklistTemplate.id)
    else:
        query = query.order_by(ChecklistTemplate.phase, ChecklistTemplate.item_order, ChecklistTemplate.id)

    result = await db.execute(query)
    return {"checklist": [ChecklistItemResponse.model_validate(t) for t in result.scalars().all()]}


@router.post("/api/checklists", dependencies=[Depends(require_api_or_session)])
async def checklist_action(body: ChecklistActionRequest, db: AsyncSession = Depends(get_db)):
    """
    Dispatch on ``action``:

    - ``update_progress``: mark one item complete/incomplete for a project
    - ``init_progress``: instantiate a phase's templates for a project
    """
    if body.action == "update_progress":
        return await _update_progress(db, body)
    if body.action == "init_progress":
        return await _init_progress(db, body)
    raise InvalidArgumentError(f"Unknown action: {body.action}")


async def _update_progress(db: AsyncSession, body: ChecklistActionRequest):
    if body.project_id is None or body.checklist_item_id is None:
        raise InvalidArgumentError("project_id and checklist_item_id are required")

    result = await db.execute(
        select(ChecklistProgress).where(
            ChecklistProgress.project_id == body.project_id,
            ChecklistProgress.checklist_item_id == body.checklist_item_id,
        )
    )
    progress = result.scalar_one_or_none()

    if progress is None:
        if await db.get(ChecklistTemplate, body.checklist_item_id) is None:
            raise NotFoundError(f"Checklist item {body.checklist_item_id} not found")
        if await db.get(Project, body.project_id) is None:
            raise NotFoundError(f"Project {body.project_id} not found")
        progress = ChecklistProgress(
            project_id=body.project_id,
            checklist_item_id=body.checklist_item_id,
            notes="",
        )
        db.add(progress)

    completed = bool(body.completed)
    progress.completed = completed
    progress.completed_at = utcnow() if completed else None
    if body.notes is not None:
        progress.notes = body.notes

    await db.commit()
    logger.info(
        f"Checklist item {body.checklist_item_id} for project {body.project_id} "
        f"marked {'complete' if completed else 'incomplete'}"
    )
    return {"ok": True}


async def _init_progress(db: AsyncSession, body: ChecklistActionRequest):
    if body.project_id is None or not body.phase:
        raise InvalidArgumentError("project_id and phase are required")

    phase = parse_phase(body.phase)
    if await db.get(Project, body.project_id) is None:
        raise NotFoundError(f"Project {body.project_id} not found")

    result = await db.execute(
        select(ChecklistTemplate.id)
        .where(ChecklistTemplate.phase == phase, ChecklistTemplate.is_template.is_(True))
        .order_by(ChecklistTemplate.item_order, ChecklistTemplate.id)
    )

    created = 0
    for template_id in result.scalars().all():
        inserted = await insert_ignore(
            db,
            ChecklistProgress,
            {"project_id": body.project_id, "checklist_item_id": template_id, "completed": False, "notes": ""},
            ["project_id", "checklist_item_id"],
        )
        if inserted:
            created += 1

    await db.commit()
    logger.info(f"Initialized {created} {phase.value} checklist items for project {body.project_id}")
    return {"ok": True, "items_created": created}
