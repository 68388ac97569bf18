"""
Integration test for the offline phase normalization script
"""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from core.config import settings
from core.database import create_engine_for
from models.base import normalize_legacy_phase, ProjectPhase
from scripts.migrate_phases import migrate_phases

LEGACY_SCHEMA = """
CREATE TABLE projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name VARCHAR(200) NOT NULL UNIQUE,
    description TEXT DEFAULT '',
    status VARCHAR(32) NOT NULL DEFAULT 'backlog',
    phase VARCHAR(32) NOT NULL DEFAULT 'build',
    repo_url VARCHAR(2048) DEFAULT '',
    deploy_url VARCHAR(2048) DEFAULT '',
    test_count INTEGER DEFAULT 0,
    build_status VARCHAR(32) NOT NULL DEFAULT 'unknown',
    last_deploy_time VARCHAR(64) DEFAULT '',
    target_audience TEXT DEFAULT '',
    action_plan TEXT DEFAULT '',
    created_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""

LEGACY_PHASES = {
    "Alpha": "research",
    "Bravo": "launch",
    "Charlie": "grow",
    "Delta": "iterate",
    "Echo": "maintain",
    "Foxtrot": "build",
    "Golf": "live",
}


@pytest.mark.parametrize("legacy,expected", [
    ("launch", ProjectPhase.LIVE),
    ("grow", ProjectPhase.LIVE),
    ("iterate", ProjectPhase.LIVE),
    ("maintain", ProjectPhase.LIVE),
    ("live", ProjectPhase.LIVE),
    ("build", ProjectPhase.BUILD),
    ("research", ProjectPhase.BUILD),
    (None, ProjectPhase.BUILD),
])
def test_normalize_legacy_phase(legacy, expected):
    assert normalize_legacy_phase(legacy) == expected


@pytest.mark.asyncio
async def test_migrate_phases_rebuilds_projects(tmp_path, monkeypatch):
    url = f"sqlite+aiosqlite:///{tmp_path / 'legacy.db'}"
    monkeypatch.setattr(settings, "DATABASE_URL", url)

    engine = create_engine_for(url)
    async with engine.begin() as conn:
        await conn.execute(text(LEGACY_SCHEMA))
        await conn.execute(text(
            "CREATE TABLE tasks (id INTEGER PRIMARY KEY, project_id INTEGER REFERENCES projects(id), title TEXT)"
        ))
        for name, phase in LEGACY_PHASES.items():
            await conn.execute(
                text("INSERT INTO projects (name, phase) VALUES (:name, :phase)"),
                {"name": name, "phase": phase}
            )
        await conn.execute(text("INSERT INTO tasks (project_id, title) VALUES (2, 'Ship it')"))

    await migrate_phases()

    async with engine.connect() as conn:
        phases = dict((await conn.execute(text("SELECT name, phase FROM projects"))).all())
        task_project = (await conn.execute(
            text("SELECT p.name FROM tasks t JOIN projects p ON p.id = t.project_id")
        )).scalar_one()

    assert phases == {name: normalize_legacy_phase(p).value for name, p in LEGACY_PHASES.items()}
    assert task_project == "Bravo"

    with pytest.raises(IntegrityError):
        async with engine.begin() as conn:
            await conn.execute(text("UPDATE projects SET phase = 'grow' WHERE name = 'Alpha'"))

    await engine.dispose()
