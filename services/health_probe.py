"""
HEAD probes against project deployments
"""

from typing import Any, Dict, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import httpx
import logging
import time

from core.config import settings
from models.project import Project
from models.health_check import HealthCheck

logger = logging.getLogger(__name__)


async def probe_url(client: httpx.AsyncClient, url: str, timeout: float) -> int:
    """
    HEAD ``url`` following redirects.

    Returns:
        HTTP status code, or 0 when the connection failed or timed out
    """
    try:
        response = await client.head(url, timeout=timeout, follow_redirects=True)
        return response.status_code
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"Health probe {url} failed: {e}")
        return 0


async def probe_deployments(
    db: AsyncSession,
    client: httpx.AsyncClient,
    timeout: float = None
) -> List[Dict[str, Any]]:
    """
    Probe every project with a deploy_url and record one HealthCheck per probe.

    Failures are recorded as status 0, never raised.
    """
    timeout = timeout if timeout is not None else settings.HEALTH_CHECK_TIMEOUT_SECONDS

    result = await db.execute(
        select(Project.id, Project.name, Project.deploy_url)
        .where(Project.deploy_url.is_not(None), Project.deploy_url != "")
        .order_by(Project.id)
    )
    projects = result.all()

    checks = []
    for project_id, name, deploy_url in projects:
        start = time.perf_counter()
        status_code = await probe_url(client, deploy_url, timeout)
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        db.add(HealthCheck(
            project_id=project_id,
            url=deploy_url,
            status_code=status_code,
            response_time_ms=elapsed_ms,
        ))

        checks.append({
            "project_id": project_id,
            "project_name": name,
            "url": deploy_url,
            "status_code": status_code,
            "response_time_ms": elapsed_ms,
            "ok": 200 <= status_code < 400,
        })

    await db.commit()
    logger.info(f"Probed {len(checks)} deployments, {sum(1 for c in checks if not c['ok'])} unhealthy")
    return checks
