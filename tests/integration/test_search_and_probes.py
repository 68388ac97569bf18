"""
Integration tests for global search and deployment health probes
"""

import httpx
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock
from sqlalchemy import select
from models import Activity, Comment, HealthCheck, Project, StockReport, Task
from services.health_probe import probe_deployments
from services.search import search_everything


@pytest_asyncio.fixture
async def searchable(db_session):
    project = Project(name="Rocket Dashboard", description="Tracks launches")
    other = Project(name="Garden Planner", description="Seeds and soil")
    db_session.add_all([project, other])
    await db_session.flush()

    db_session.add_all([
        Task(project_id=project.id, title="Wire rocket telemetry"),
        Activity(project_id=project.id, type="general", title="Rocket build passed"),
        Comment(target_type="project", target_id=project.id, text="Rocket copy needs work"),
        StockReport(ticker="RKLB", title="Rocket Lab report", content="..."),
    ])
    await db_session.commit()
    return project


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", " ", "r", " x "])
async def test_short_query_returns_empty(db_session, query):
    assert await search_everything(db_session, query) == {}


@pytest.mark.asyncio
async def test_search_hits_every_category(db_session, searchable):
    results = await search_everything(db_session, "rocket")

    assert [p["name"] for p in results["projects"]] == ["Rocket Dashboard"]
    assert results["tasks"][0]["title"] == "Wire rocket telemetry"
    assert results["tasks"][0]["project_name"] == "Rocket Dashboard"
    assert results["activity"][0]["project_name"] == "Rocket Dashboard"
    assert results["comments"][0]["text"] == "Rocket copy needs work"
    assert results["reports"][0]["ticker"] == "RKLB"


@pytest.mark.asyncio
async def test_search_caps_each_category(db_session):
    db_session.add_all([Project(name=f"Alpha {i}") for i in range(8)])
    await db_session.commit()

    results = await search_everything(db_session, "alpha")

    assert len(results["projects"]) == 5
    assert results["tasks"] == []


@pytest.mark.asyncio
async def test_search_treats_input_as_data(db_session, searchable):
    results = await search_everything(db_session, "'; DROP TABLE projects; --")

    assert all(rows == [] for rows in results.values())
    assert (await db_session.execute(select(Project))).scalars().first() is not None


def _head_responses(mapping):
    async def head(url, timeout, follow_redirects):
        outcome = mapping[url]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, request=httpx.Request("HEAD", url))
    return head


@pytest.mark.asyncio
async def test_probe_deployments_records_results(db_session):
    db_session.add_all([
        Project(name="Up", deploy_url="https://up.example.com"),
        Project(name="Down", deploy_url="https://down.example.com"),
        Project(name="Broken", deploy_url="https://broken.example.com"),
        Project(name="Undeployed", deploy_url=""),
    ])
    await db_session.commit()

    client = AsyncMock()
    client.head.side_effect = _head_responses({
        "https://up.example.com": 200,
        "https://down.example.com": httpx.ConnectTimeout("timed out"),
        "https://broken.example.com": 503,
    })

    checks = await probe_deployments(db_session, client, timeout=1.0)

    by_name = {c["project_name"]: c for c in checks}
    assert set(by_name) == {"Up", "Down", "Broken"}
    assert by_name["Up"]["ok"] is True
    assert by_name["Down"]["status_code"] == 0
    assert by_name["Down"]["ok"] is False
    assert by_name["Broken"]["status_code"] == 503
    assert by_name["Broken"]["ok"] is False

    stored = (await db_session.execute(select(HealthCheck))).scalars().all()
    assert sorted(h.status_code for h in stored) == [0, 200, 503]


@pytest.mark.asyncio
async def test_probe_deployments_survives_malformed_url(db_session):
    db_session.add_all([
        Project(name="Malformed", deploy_url="http://[::1"),
        Project(name="Healthy", deploy_url="https://ok.example/"),
    ])
    await db_session.commit()

    transport = httpx.MockTransport(lambda request: httpx.Response(200))
    async with httpx.AsyncClient(transport=transport) as client:
        checks = await probe_deployments(db_session, client, timeout=1.0)

    assert [c["status_code"] for c in checks] == [0, 200]
    assert [c["ok"] for c in checks] == [False, True]

    stored = (await db_session.execute(select(HealthCheck).order_by(HealthCheck.id))).scalars().all()
    assert [h.status_code for h in stored] == [0, 200]
