"""
Integration tests for the research job lifecycle
"""

import pytest
from core.exceptions import InvalidArgumentError, InvalidTransitionError, NotFoundError
from models import StockReport, ResearchJob
from models.base import ResearchJobStatus
from services.research_jobs import ResearchJobService, RESEARCH_LISTING_PATH


class StepClock:
    """Epoch-seconds clock that advances a fixed step on every read"""

    def __init__(self, start: float, step: float):
        self.now = start - step
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


@pytest.fixture
def clock():
    return StepClock(start=1_700_000_000.0, step=1.0)


@pytest.fixture
def recorder(invalidator):
    return invalidator


@pytest.fixture
def service(db_session, clock, recorder):
    return ResearchJobService(db_session, clock=clock, invalidator=recorder)


@pytest.mark.asyncio
async def test_create_job(service, db_session):
    job = await service.create_job(" aapl ")

    assert job.id == "research-AAPL-1700000000000"
    assert job.ticker == "AAPL"
    assert job.status == ResearchJobStatus.PENDING
    assert job.progress == 0
    assert job.created_at == job.updated_at
    assert await db_session.get(ResearchJob, job.id) is job


@pytest.mark.asyncio
async def test_invalid_ticker_creates_nothing(service):
    with pytest.raises(InvalidArgumentError, match="Invalid ticker format"):
        await service.create_job("NOT A TICKER")

    assert await service.list_jobs() == []


@pytest.mark.asyncio
async def test_request_research_reuses_active_job(service):
    job, is_new = await service.request_research("AAPL")
    again, again_new = await service.request_research("aapl")

    assert is_new is True
    assert again_new is False
    assert again.id == job.id


@pytest.mark.asyncio
async def test_request_research_after_completion_creates_new_job(service):
    job, _ = await service.request_research("AAPL")
    await service.update_job(job.id, {"status": "processing"})
    await service.update_job(job.id, {"status": "complete", "progress": 100})

    fresh, is_new = await service.request_research("AAPL")

    assert is_new is True
    assert fresh.id != job.id


@pytest.mark.asyncio
async def test_list_active_jobs_newest_first(service):
    a = await service.create_job("AAA")
    b = await service.create_job("BBB")
    c = await service.create_job("CCC")
    await service.update_job(b.id, {"status": "failed", "error_message": "no data"})

    active = await service.list_active_jobs()

    assert [j.id for j in active] == [c.id, a.id]


@pytest.mark.asyncio
async def test_list_jobs_by_status(service):
    a = await service.create_job("AAA")
    await service.create_job("BBB")
    await service.update_job(a.id, {"status": "processing"})

    assert [j.id for j in await service.list_jobs(status="processing")] == [a.id]
    with pytest.raises(InvalidArgumentError, match="Invalid status"):
        await service.list_jobs(status="queued")


@pytest.mark.asyncio
async def test_full_lifecycle(service, db_session, recorder):
    report = StockReport(ticker="AAPL", title="Apple deep dive", content="...")
    db_session.add(report)
    await db_session.commit()

    job = await service.create_job("AAPL")
    created_at = job.created_at

    job = await service.update_job(job.id, {"status": "processing", "progress": 10})
    assert job.status == ResearchJobStatus.PROCESSING
    assert job.progress == 10

    job = await service.update_job(job.id, {"progress": 60})
    assert job.status == ResearchJobStatus.PROCESSING

    job = await service.update_job(job.id, {"status": "complete", "progress": 100, "report_id": report.id})
    assert job.status == ResearchJobStatus.COMPLETE
    assert job.report_id == report.id
    assert job.created_at == created_at
    assert job.updated_at > created_at

    # processing and complete each invalidate once; the progress-only update does not
    assert recorder.paths == [RESEARCH_LISTING_PATH, RESEARCH_LISTING_PATH]


@pytest.mark.asyncio
async def test_empty_patch_rejected(service):
    job = await service.create_job("AAPL")

    with pytest.raises(InvalidArgumentError, match="No fields to update"):
        await service.update_job(job.id, {})
    with pytest.raises(InvalidArgumentError, match="No fields to update"):
        await service.update_job(job.id, {"ticker": "MSFT", "id": "hijack"})


@pytest.mark.asyncio
async def test_unknown_job(service):
    with pytest.raises(NotFoundError, match="Job not found"):
        await service.update_job("research-NOPE-1", {"progress": 5})
    with pytest.raises(NotFoundError):
        await service.get_job("research-NOPE-1")


@pytest.mark.asyncio
@pytest.mark.parametrize("terminal", ["complete", "failed"])
async def test_terminal_jobs_are_frozen(service, recorder, terminal):
    job = await service.create_job("AAPL")
    await service.update_job(job.id, {"status": "processing"})
    await service.update_job(job.id, {"status": terminal})
    calls_before = list(recorder.paths)

    with pytest.raises(InvalidTransitionError) as exc_info:
        await service.update_job(job.id, {"status": "processing"})
    with pytest.raises(InvalidTransitionError):
        await service.update_job(job.id, {"progress": 50})

    assert exc_info.value.context["from_status"] == terminal
    assert exc_info.value.context["to_status"] == "processing"
    assert (await service.get_job(job.id)).status == ResearchJobStatus(terminal)
    assert recorder.paths == calls_before


@pytest.mark.asyncio
async def test_pending_cannot_skip_to_complete(service):
    job = await service.create_job("AAPL")

    with pytest.raises(InvalidTransitionError):
        await service.update_job(job.id, {"status": "complete"})


@pytest.mark.asyncio
@pytest.mark.parametrize("progress", [-1, 101, "50", 12.5, True])
async def test_progress_out_of_range(service, progress):
    job = await service.create_job("AAPL")

    with pytest.raises(InvalidArgumentError, match="progress"):
        await service.update_job(job.id, {"progress": progress})

    assert (await service.get_job(job.id)).progress == 0


@pytest.mark.asyncio
async def test_unknown_report_rejected_without_side_effects(service, recorder):
    job = await service.create_job("AAPL")

    with pytest.raises(InvalidArgumentError, match="Report 404 does not exist"):
        await service.update_job(job.id, {"status": "processing", "report_id": 404})

    assert (await service.get_job(job.id)).status == ResearchJobStatus.PENDING
    assert recorder.paths == []


@pytest.mark.asyncio
async def test_delete_job(service):
    job = await service.create_job("AAPL")

    await service.delete_job(job.id)

    with pytest.raises(NotFoundError):
        await service.get_job(job.id)
