"""
API tests for the phase, research job, auth and health endpoints
"""

import pytest
from sqlalchemy import select, func
from api import dependencies
from core.config import settings
from models import ChecklistTemplate, Project, ResearchJob, StockReport
from models.base import ProjectPhase
from services.research_jobs import RESEARCH_LISTING_PATH


# ============================================================================
# Phase transitions
# ============================================================================

@pytest.mark.asyncio
async def test_phase_change_end_to_end(client, db_session, api_headers):
    """Project 7 in build with two live templates moves to live with two checklist rows"""
    db_session.add(Project(id=7, name="Mission Control", phase=ProjectPhase.BUILD))
    db_session.add_all([
        ChecklistTemplate(phase=ProjectPhase.LIVE, item_order=1, title="Configure monitoring"),
        ChecklistTemplate(phase=ProjectPhase.LIVE, item_order=2, title="Announce launch"),
    ])
    await db_session.commit()

    response = await client.post("/api/phase", json={"project_id": 7, "phase": "live"}, headers=api_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["checklist_items_created"] == 2
    assert data["checklist_errors"] == []
    assert data["project"]["id"] == 7
    assert data["project"]["phase"] == "live"

    projects = (await client.get("/api/projects")).json()["projects"]
    assert projects[0]["phase"] == "live"


@pytest.mark.asyncio
async def test_phase_change_requires_auth(client, build_project):
    response = await client.post("/api/phase", json={"project_id": build_project.id, "phase": "live"})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized", "code": "UNAUTHORIZED"}


@pytest.mark.asyncio
async def test_unauthenticated_check_precedes_validation(client):
    response = await client.post("/api/phase", json={})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_phase_change_accepts_session_cookie(client, build_project, session_headers):
    response = await client.post(
        "/api/phase", json={"project_id": build_project.id, "phase": "live"}, headers=session_headers
    )

    assert response.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {},
    {"project_id": 1},
    {"phase": "live"},
    {"project_id": 1, "phase": "launch"},
    {"project_id": 0, "phase": "live"},
])
async def test_phase_change_bad_input(client, build_project, api_headers, body):
    response = await client.post("/api/phase", json=body, headers=api_headers)

    assert response.status_code == 400
    assert response.json()["code"] == "BAD_REQUEST"


@pytest.mark.asyncio
async def test_phase_change_unknown_project(client, api_headers):
    response = await client.post("/api/phase", json={"project_id": 999, "phase": "live"}, headers=api_headers)

    assert response.status_code == 404


# ============================================================================
# Research jobs
# ============================================================================

@pytest.mark.asyncio
async def test_request_research_queues_job(client, db_session, api_headers, dispatcher):
    response = await client.post("/api/stocks/research", json={"ticker": "aapl"}, headers=api_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["ticker"] == "AAPL"
    assert data["status"] == "queued"
    assert data["jobId"].startswith("research-AAPL-")
    assert dispatcher.job_ids == [data["jobId"]]

    job = await db_session.get(ResearchJob, data["jobId"])
    assert job.status.value == "pending"


@pytest.mark.asyncio
async def test_request_research_returns_in_flight_job(client, api_headers, dispatcher):
    first = (await client.post("/api/stocks/research", json={"ticker": "MSFT"}, headers=api_headers)).json()
    second = await client.post("/api/stocks/research", json={"ticker": "msft"}, headers=api_headers)

    data = second.json()
    assert data["jobId"] == first["jobId"]
    assert data["status"] == "pending"
    assert data["message"] == "Research already in progress for this ticker."
    assert len(dispatcher.job_ids) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("body,message", [
    ({}, "Ticker is required"),
    ({"ticker": ""}, "Ticker is required"),
    ({"ticker": "NOT VALID"}, "Invalid ticker format"),
    ({"ticker": "ABCDEFGHIJK"}, "Invalid ticker format"),
])
async def test_request_research_invalid_ticker(client, db_session, api_headers, body, message):
    response = await client.post("/api/stocks/research", json=body, headers=api_headers)

    assert response.status_code == 400
    assert response.json()["error"] == message
    assert await db_session.scalar(select(func.count()).select_from(ResearchJob)) == 0


@pytest.mark.asyncio
async def test_request_research_requires_auth(client):
    response = await client.post("/api/stocks/research", json={"ticker": "AAPL"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_research_job(client, api_headers):
    job_id = (await client.post("/api/stocks/research", json={"ticker": "NVDA"}, headers=api_headers)).json()["jobId"]

    response = await client.get(f"/api/stocks/research/{job_id}")

    assert response.status_code == 200
    job = response.json()["job"]
    assert job["id"] == job_id
    assert job["status"] == "pending"
    assert job["progress"] == 0

    missing = await client.get("/api/stocks/research/research-NOPE-1")
    assert missing.status_code == 404
    assert missing.json()["error"] == "Job not found"


@pytest.mark.asyncio
async def test_patch_research_job_lifecycle(client, db_session, api_headers, invalidator):
    job_id = (await client.post("/api/stocks/research", json={"ticker": "AMD"}, headers=api_headers)).json()["jobId"]
    report = StockReport(ticker="AMD", title="AMD report", content="...")
    db_session.add(report)
    await db_session.commit()

    processing = await client.patch(
        f"/api/stocks/research/{job_id}", json={"status": "processing", "progress": 10}, headers=api_headers
    )
    assert processing.status_code == 200
    assert processing.json()["job"]["status"] == "processing"

    complete = await client.patch(
        f"/api/stocks/research/{job_id}",
        json={"status": "complete", "progress": 100, "report_id": report.id},
        headers=api_headers
    )
    assert complete.status_code == 200
    job = complete.json()["job"]
    assert job["status"] == "complete"
    assert job["report_id"] == report.id

    assert invalidator.paths == [RESEARCH_LISTING_PATH, RESEARCH_LISTING_PATH]

    reopened = await client.patch(
        f"/api/stocks/research/{job_id}", json={"status": "processing"}, headers=api_headers
    )
    assert reopened.status_code == 409
    assert reopened.json()["code"] == "INVALID_TRANSITION"


@pytest.mark.asyncio
async def test_patch_research_job_errors(client, api_headers, session_headers):
    job_id = (await client.post("/api/stocks/research", json={"ticker": "TSLA"}, headers=api_headers)).json()["jobId"]

    empty = await client.patch(f"/api/stocks/research/{job_id}", json={}, headers=api_headers)
    assert empty.status_code == 400
    assert empty.json()["error"] == "No fields to update"

    unauthenticated = await client.patch(f"/api/stocks/research/{job_id}", json={"progress": 5})
    assert unauthenticated.status_code == 401

    # Agents only: a dashboard session is not enough
    session_only = await client.patch(
        f"/api/stocks/research/{job_id}", json={"progress": 5}, headers=session_headers
    )
    assert session_only.status_code == 401

    missing = await client.patch("/api/stocks/research/research-NOPE-1", json={"progress": 5}, headers=api_headers)
    assert missing.status_code == 404

    out_of_range = await client.patch(f"/api/stocks/research/{job_id}", json={"progress": 150}, headers=api_headers)
    assert out_of_range.status_code == 400


@pytest.mark.asyncio
async def test_list_research_jobs(client, api_headers):
    for ticker in ("AAA", "BBB"):
        await client.post("/api/stocks/research", json={"ticker": ticker}, headers=api_headers)

    jobs = (await client.get("/api/stocks/research?active=true")).json()["jobs"]
    assert {j["ticker"] for j in jobs} == {"AAA", "BBB"}

    assert (await client.get("/api/stocks/research?status=complete")).json()["jobs"] == []
    assert (await client.get("/api/stocks/research?status=bogus")).status_code == 400


@pytest.mark.asyncio
async def test_poll_single_job_by_query(client, api_headers):
    job_id = (await client.post("/api/stocks/research", json={"ticker": "ORCL"}, headers=api_headers)).json()["jobId"]

    polled = await client.get(f"/api/stocks/research?jobId={job_id}")

    assert polled.status_code == 200
    assert polled.json()["job"]["id"] == job_id
    assert polled.json()["job"]["status"] == "pending"

    missing = await client.get("/api/stocks/research?jobId=research-NOPE-1")
    assert missing.status_code == 404
    assert missing.json()["error"] == "Job not found"


@pytest.mark.asyncio
async def test_delete_research_job(client, api_headers):
    job_id = (await client.post("/api/stocks/research", json={"ticker": "IBM"}, headers=api_headers)).json()["jobId"]

    assert (await client.delete(f"/api/stocks/research/{job_id}")).status_code == 401
    assert (await client.delete(f"/api/stocks/research/{job_id}", headers=api_headers)).json() == {"ok": True}
    assert (await client.get(f"/api/stocks/research/{job_id}")).status_code == 404


# ============================================================================
# Auth
# ============================================================================

@pytest.mark.asyncio
async def test_login_sets_session_cookie(client, build_project):
    response = await client.post("/auth", json={"password": settings.DASHBOARD_PASSWORD})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{settings.SESSION_COOKIE_NAME}=")
    assert "HttpOnly" in set_cookie
    assert "samesite=lax" in set_cookie.lower()

    token = response.cookies[settings.SESSION_COOKIE_NAME]
    phase = await client.post(
        "/api/phase",
        json={"project_id": build_project.id, "phase": "live"},
        headers={"cookie": f"{settings.SESSION_COOKIE_NAME}={token}"}
    )
    assert phase.status_code == 200


@pytest.mark.asyncio
async def test_login_wrong_password(client):
    response = await client.post("/auth", json={"password": "wrong"})

    assert response.status_code == 401
    assert response.json()["error"] == "Invalid password"
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
async def test_login_rate_limited(client, monkeypatch):
    monkeypatch.setattr(dependencies.login_rate_limiter, "limit", 3)

    statuses = [(await client.post("/auth", json={"password": "wrong"})).status_code for _ in range(4)]

    assert statuses == [401, 401, 401, 429]
    blocked = await client.post("/auth", json={"password": settings.DASHBOARD_PASSWORD})
    assert blocked.status_code == 429
    assert blocked.headers["retry-after"] == str(settings.RATE_LIMIT_WINDOW_SECONDS)

    other_client = await client.post(
        "/auth", json={"password": settings.DASHBOARD_PASSWORD}, headers={"x-forwarded-for": "10.0.0.9"}
    )
    assert other_client.status_code == 200


# ============================================================================
# Health
# ============================================================================

@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database_connected"] is True
    assert response.headers["x-request-id"]


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/", headers={"x-request-id": "abc-123"})

    assert response.headers["x-request-id"] == "abc-123"
    assert response.json()["message"] == "Mission Control API"
