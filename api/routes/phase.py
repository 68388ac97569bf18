"""
Phase transition endpoint
"""

from dataclasses import asdict
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from api.dependencies import get_db
from core.security import require_api_or_session
from schemas.projects import PhaseChangeRequest, PhaseChangeResponse, ProjectResponse
from services.phases import PhaseWorkflow
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Phases"])


@router.post(
    "/api/phase",
    response_model=PhaseChangeResponse,
    dependencies=[Depends(require_api_or_session)]
)
async def change_phase(body: PhaseChangeRequest, db: AsyncSession = Depends(get_db)):
    """
    Move a project into a phase and instantiate that phase's checklist.

    Checklist insert failures do not block the phase change; they are
    reported in ``checklist_errors``.
    """
    result = await PhaseWorkflow(db).transition(body.project_id, body.phase)

    return PhaseChangeResponse(
        ok=result.primary_updated,
        project=ProjectResponse.model_validate(result.project),
        checklist_items_created=result.checklist_items_created,
        checklist_errors=[asdict(e) for e in result.checklist_errors],
    )
