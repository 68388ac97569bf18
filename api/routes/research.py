"""
Research job endpoints: request, poll, and agent progress reports
"""

from fastapi import APIRouter, Depends, Query
from api.dependencies import get_research_service, get_dispatcher
from core.security import require_api_key, require_api_or_session
from models.base import ResearchJobStatus
from schemas.research import (
    ResearchJobEnvelope, ResearchJobList, ResearchJobPatch, ResearchJobResponse,
    ResearchRequest, ResearchRequestResponse
)
from services.research_jobs import ResearchJobService, ResearchDispatcher
from typing import Optional
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Research"])


@router.get("/api/stocks/research")
async def list_research_jobs(
    jobId: Optional[str] = Query(None, description="Return this one job as {job}"),
    status: Optional[str] = Query(None, description="Filter by status"),
    active: bool = Query(False, description="Only pending/processing jobs"),
    limit: int = Query(50, ge=1, le=500),
    service: ResearchJobService = Depends(get_research_service)
):
    """Recent research jobs, newest first, or a single job when ``jobId`` is given."""
    if jobId:
        job = await service.get_job(jobId)
        return ResearchJobEnvelope(job=ResearchJobResponse.model_validate(job))

    if active:
        jobs = await service.list_active_jobs()
    else:
        jobs = await service.list_jobs(status=status, limit=limit)
    return ResearchJobList(jobs=[ResearchJobResponse.model_validate(j) for j in jobs])


@router.post(
    "/api/stocks/research",
    response_model=ResearchRequestResponse,
    dependencies=[Depends(require_api_or_session)]
)
async def request_research(
    body: ResearchRequest,
    service: ResearchJobService = Depends(get_research_service),
    dispatcher: ResearchDispatcher = Depends(get_dispatcher)
):
    """
    Queue research for a ticker.

    Returns the in-flight job when one already exists for the ticker;
    otherwise creates a job and hands it to the research gateway.
    """
    job, is_new = await service.request_research(body.ticker)

    if not is_new:
        return ResearchRequestResponse(
            jobId=job.id,
            ticker=job.ticker,
            status=ResearchJobStatus(job.status).value,
            message="Research already in progress for this ticker.",
        )

    await dispatcher.dispatch(job)

    return ResearchRequestResponse(
        jobId=job.id,
        ticker=job.ticker,
        status="queued",
        message="Research started. This typically takes 2-3 minutes.",
    )


@router.get("/api/stocks/research/{job_id}", response_model=ResearchJobEnvelope)
async def get_research_job(
    job_id: str,
    service: ResearchJobService = Depends(get_research_service)
):
    job = await service.get_job(job_id)
    return ResearchJobEnvelope(job=ResearchJobResponse.model_validate(job))


@router.patch(
    "/api/stocks/research/{job_id}",
    response_model=ResearchJobEnvelope,
    dependencies=[Depends(require_api_key)]
)
async def update_research_job(
    job_id: str,
    patch: ResearchJobPatch,
    service: ResearchJobService = Depends(get_research_service)
):
    """
    Progress report from a research agent (API key only).

    400 on an empty patch, 404 for an unknown job, 409 for an illegal
    status change.
    """
    job = await service.update_job(job_id, patch.model_dump(exclude_unset=True))
    return ResearchJobEnvelope(job=ResearchJobResponse.model_validate(job))


@router.delete(
    "/api/stocks/research/{job_id}",
    dependencies=[Depends(require_api_key)]
)
async def delete_research_job(
    job_id: str,
    service: ResearchJobService = Depends(get_research_service)
):
    await service.delete_job(job_id)
    return {"ok": True}
