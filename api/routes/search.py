"""
Global search and deployment health probes
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
import httpx
from api.dependencies import get_db, get_http_client
from core.security import require_api_or_session
from schemas.api import SearchResponse, IntegrationsHealthResponse, DeploymentCheck
from services.health_probe import probe_deployments
from services.search import search_everything
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Search"])


@router.get("/api/search", response_model=SearchResponse)
async def search(
    q: str = Query("", description="At least two characters"),
    db: AsyncSession = Depends(get_db)
):
    return SearchResponse(results=await search_everything(db, q))


@router.get(
    "/api/integrations/health",
    response_model=IntegrationsHealthResponse,
    dependencies=[Depends(require_api_or_session)]
)
async def integrations_health(
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client)
):
    """HEAD every project's deploy_url and record the results."""
    checks = await probe_deployments(db, client)
    return IntegrationsHealthResponse(checks=[DeploymentCheck(**c) for c in checks])
