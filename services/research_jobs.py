# ============================================================================
# File: services/research_jobs.py
# Description: Research job lifecycle with an enforced state machine
# ============================================================================
"""
Research job lifecycle.

States::

    pending ──► processing ──► complete
       │             │
       └─────────────┴──────► failed

complete and failed are terminal. Agents report progress through
``update_job``; every status change is checked against the table above.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import httpx
import logging
import re
import time

from core.config import settings
from core.exceptions import InvalidArgumentError, NotFoundError, InvalidTransitionError
from models.base import ResearchJobStatus
from models.research import ResearchJob, StockReport

logger = logging.getLogger(__name__)

TICKER_PATTERN = re.compile(r"^[A-Z0-9.]{1,10}$")

ACTIVE_STATUSES = (ResearchJobStatus.PENDING, ResearchJobStatus.PROCESSING)
TERMINAL_STATUSES = (ResearchJobStatus.COMPLETE, ResearchJobStatus.FAILED)

ALLOWED_TRANSITIONS = {
    ResearchJobStatus.PENDING: {ResearchJobStatus.PROCESSING, ResearchJobStatus.FAILED},
    ResearchJobStatus.PROCESSING: {ResearchJobStatus.COMPLETE, ResearchJobStatus.FAILED},
    ResearchJobStatus.COMPLETE: set(),
    ResearchJobStatus.FAILED: set(),
}

# Entering one of these invalidates the cached research listing page
INVALIDATING_STATUSES = (
    ResearchJobStatus.PROCESSING,
    ResearchJobStatus.COMPLETE,
    ResearchJobStatus.FAILED,
)

PATCHABLE_FIELDS = ("status", "progress", "error_message", "report_id")

RESEARCH_LISTING_PATH = "/stocks/research"


def normalize_ticker(raw: Any) -> str:
    """
    Upper-case and strip a ticker and check its format.

    Raises:
        InvalidArgumentError: Missing ticker or not ``^[A-Z0-9.]{1,10}$``
    """
    if not raw or not isinstance(raw, str):
        raise InvalidArgumentError("Ticker is required")
    ticker = raw.strip().upper()
    if not TICKER_PATTERN.match(ticker):
        raise InvalidArgumentError("Invalid ticker format", context={"ticker": raw})
    return ticker


def is_transition_allowed(current: ResearchJobStatus, new: ResearchJobStatus) -> bool:
    """Same-status updates are allowed only while the job is still active."""
    if current in TERMINAL_STATUSES:
        return False
    if current == new:
        return True
    return new in ALLOWED_TRANSITIONS[current]


# ============================================================================
# Collaborators
# ============================================================================

class PageCacheInvalidator:
    """
    Asks the presentation layer to drop a cached page.

    Does nothing unless ``PAGE_REVALIDATE_URL`` is configured. Failures are
    logged and swallowed.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient,
        timeout: float = 5.0
    ):
        self.url = url if url is not None else settings.PAGE_REVALIDATE_URL
        self.client_factory = client_factory
        self.timeout = timeout

    async def invalidate(self, path: str) -> bool:
        if not self.url:
            logger.debug(f"No revalidation endpoint configured, skipping {path}")
            return False
        try:
            async with self.client_factory(timeout=self.timeout) as client:
                response = await client.post(self.url, json={"path": path})
                response.raise_for_status()
            logger.info(f"Invalidated cached page {path}")
            return True
        except Exception as e:
            logger.warning(f"Page revalidation for {path} failed: {e}")
            return False


class ResearchDispatcher:
    """
    Hands a new job to the research agent gateway.

    Best effort: without a token nothing is sent, and any failure leaves the
    job pending for polling agents to pick up.
    """

    def __init__(
        self,
        gateway_url: Optional[str] = None,
        token: Optional[str] = None,
        client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient,
        timeout: float = 10.0
    ):
        self.gateway_url = gateway_url or settings.RESEARCH_GATEWAY_URL
        self.token = token if token is not None else settings.RESEARCH_GATEWAY_TOKEN
        self.client_factory = client_factory
        self.timeout = timeout

    def build_task(self, job: ResearchJob) -> str:
        return (
            f"Generate a comprehensive investment research report for {job.ticker}.\n\n"
            f"JOB ID: {job.id}\n\n"
            f"1. PATCH /api/stocks/research/{job.id} with "
            f'{{"status": "processing", "progress": 10}}\n'
            f"2. Research {job.ticker} (an exchange suffix such as .HK or .AX names "
            f"that listing; no suffix means a US listing)\n"
            f"3. POST the report to /api/stocks/reports\n"
            f"4. PATCH /api/stocks/research/{job.id} with "
            f'{{"status": "complete", "progress": 100, "report_id": <id>}}'
        )

    async def dispatch(self, job: ResearchJob) -> bool:
        if not self.token:
            logger.info(f"No gateway token configured, {job.id} left for polling agents")
            return False

        payload = {
            "tool": "sessions_spawn",
            "args": {
                "task": self.build_task(job),
                "label": f"research-{job.ticker.lower()}",
                "cleanup": "delete",
                "runTimeoutSeconds": 600,
            },
        }
        try:
            async with self.client_factory(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.gateway_url}/tools/invoke",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.token}"},
                )
                response.raise_for_status()
            logger.info(f"Research agent spawned for {job.ticker} ({job.id})")
            return True
        except Exception as e:
            logger.error(f"Gateway spawn for {job.id} failed: {e}")
            return False


# ============================================================================
# Service
# ============================================================================

class ResearchJobService:
    """
    Create, query and advance research jobs.

    ``clock`` returns epoch seconds; it drives both the job id suffix and the
    timestamps, so tests can pin ordering without sleeping.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        clock: Callable[[], float] = time.time,
        invalidator: Optional[PageCacheInvalidator] = None
    ):
        self.db = db_session
        self.clock = clock
        self.invalidator = invalidator or PageCacheInvalidator()

    def _now(self) -> Tuple[int, datetime]:
        seconds = self.clock()
        return int(seconds * 1000), datetime.utcfromtimestamp(seconds)

    async def create_job(self, ticker: Any) -> ResearchJob:
        """
        Create a pending job.

        Raises:
            InvalidArgumentError: Invalid ticker (no row is created)
        """
        ticker = normalize_ticker(ticker)
        epoch_ms, now = self._now()

        job = ResearchJob(
            id=f"research-{ticker}-{epoch_ms}",
            ticker=ticker,
            status=ResearchJobStatus.PENDING,
            progress=0,
            created_at=now,
            updated_at=now,
        )
        self.db.add(job)
        await self.db.commit()

        logger.info(f"[Research Queue] Ticker: {ticker}, JobId: {job.id}")
        return job

    async def find_active_job(self, ticker: str) -> Optional[ResearchJob]:
        result = await self.db.execute(
            select(ResearchJob)
            .where(ResearchJob.ticker == ticker, ResearchJob.status.in_(ACTIVE_STATUSES))
            .order_by(ResearchJob.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def request_research(self, ticker: Any) -> Tuple[ResearchJob, bool]:
        """
        Return the in-flight job for a ticker, or create one.

        Returns:
            (job, is_new)
        """
        ticker = normalize_ticker(ticker)
        existing = await self.find_active_job(ticker)
        if existing is not None:
            logger.info(f"Research already in progress for {ticker}: {existing.id}")
            return existing, False
        return await self.create_job(ticker), True

    async def get_job(self, job_id: str) -> ResearchJob:
        job = await self.db.get(ResearchJob, job_id)
        if job is None:
            raise NotFoundError("Job not found", context={"job_id": job_id})
        return job

    async def list_active_jobs(self) -> List[ResearchJob]:
        """Pending and processing jobs, newest first."""
        result = await self.db.execute(
            select(ResearchJob)
            .where(ResearchJob.status.in_(ACTIVE_STATUSES))
            .order_by(ResearchJob.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_jobs(self, status: Optional[Any] = None, limit: int = 50) -> List[ResearchJob]:
        query = select(ResearchJob)
        if status is not None:
            query = query.where(ResearchJob.status == self._parse_status(status))
        query = query.order_by(ResearchJob.created_at.desc()).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_job(self, job_id: str, patch: Dict[str, Any]) -> ResearchJob:
        """
        Apply a partial update reported by an agent.

        Args:
            job_id: Research job id
            patch: Any subset of status, progress, error_message, report_id

        Raises:
            InvalidArgumentError: Empty patch, bad status/progress, unknown report
            NotFoundError: No such job
            InvalidTransitionError: Status change not allowed from the current state
        """
        fields = {k: v for k, v in patch.items() if k in PATCHABLE_FIELDS}
        if not fields:
            raise InvalidArgumentError("No fields to update")

        job = await self.get_job(job_id)
        current = ResearchJobStatus(job.status)

        new_status = current
        if "status" in fields:
            new_status = self._parse_status(fields["status"])

        if not is_transition_allowed(current, new_status):
            raise InvalidTransitionError(
                f"Cannot move research job from {current.value} to {new_status.value}",
                context={"job_id": job_id, "from_status": current.value, "to_status": new_status.value}
            )

        if "progress" in fields:
            progress = fields["progress"]
            if isinstance(progress, bool) or not isinstance(progress, int) or not 0 <= progress <= 100:
                raise InvalidArgumentError(
                    "progress must be an integer between 0 and 100",
                    context={"progress": progress}
                )

        report_id = fields.get("report_id")
        if report_id is not None and await self.db.get(StockReport, report_id) is None:
            raise InvalidArgumentError(
                f"Report {report_id} does not exist",
                context={"report_id": report_id}
            )

        # Validated; apply
        for name in ("progress", "report_id", "error_message"):
            if name in fields:
                setattr(job, name, fields[name])
        job.status = new_status
        _, job.updated_at = self._now()
        await self.db.commit()

        logger.info(f"Research job {job_id}: {current.value} -> {new_status.value} ({job.progress}%)")

        if new_status != current and new_status in INVALIDATING_STATUSES:
            await self.invalidator.invalidate(RESEARCH_LISTING_PATH)

        return job

    async def delete_job(self, job_id: str) -> None:
        job = await self.get_job(job_id)
        await self.db.delete(job)
        await self.db.commit()
        logger.info(f"Deleted research job {job_id}")

    @staticmethod
    def _parse_status(value: Any) -> ResearchJobStatus:
        try:
            return ResearchJobStatus(value)
        except ValueError:
            valid = ", ".join(s.value for s in ResearchJobStatus)
            raise InvalidArgumentError(
                f"Invalid status. Must be one of: {valid}",
                context={"status": value}
            )
