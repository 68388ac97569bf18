"""
Aggregate search across projects, tasks, activity, comments and stock reports
"""

from typing import Any, Dict, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from models.project import Project, Task
from models.activity import Activity, Comment
from models.research import StockReport
from services.filters import QueryFilter

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
RESULTS_PER_CATEGORY = 5


async def _rows(db: AsyncSession, query) -> List[Dict[str, Any]]:
    result = await db.execute(query)
    return [dict(row) for row in result.mappings().all()]


async def search_everything(db: AsyncSession, q: str) -> Dict[str, List[Dict[str, Any]]]:
    """
    LIKE-match ``q`` in a fixed set of columns per entity.

    Returns:
        {} when the stripped query is shorter than two characters, otherwise
        a dict of category -> up to five rows
    """
    term = (q or "").strip()
    if len(term) < MIN_QUERY_LENGTH:
        return {}

    projects = QueryFilter().contains([Project.name, Project.description], term).limit(RESULTS_PER_CATEGORY)
    tasks = QueryFilter().contains([Task.title, Task.description], term).limit(RESULTS_PER_CATEGORY)
    activity = QueryFilter().contains([Activity.title, Activity.description], term).limit(RESULTS_PER_CATEGORY)
    comments = QueryFilter().contains(Comment.text, term).limit(RESULTS_PER_CATEGORY)
    reports = QueryFilter().contains([StockReport.ticker, StockReport.title], term).limit(RESULTS_PER_CATEGORY)

    results = {
        "projects": await _rows(db, projects.apply(
            select(Project.id, Project.name, Project.description, Project.status)
        )),
        "tasks": await _rows(db, tasks.apply(
            select(Task.id, Task.title, Task.status, Task.priority, Project.name.label("project_name"))
            .outerjoin(Project, Task.project_id == Project.id)
        )),
        "activity": await _rows(db, activity.apply(
            select(
                Activity.id, Activity.title, Activity.type, Activity.created_at,
                Project.name.label("project_name")
            )
            .outerjoin(Project, Activity.project_id == Project.id)
        )),
        "comments": await _rows(db, comments.apply(
            select(
                Comment.id, Comment.text, Comment.target_type, Comment.target_id,
                Comment.author, Comment.created_at
            )
        )),
        "reports": await _rows(db, reports.apply(
            select(StockReport.id, StockReport.ticker, StockReport.title, StockReport.created_at)
            .order_by(StockReport.created_at.desc())
        )),
    }

    logger.debug(f"Search '{term}': " + ", ".join(f"{k}={len(v)}" for k, v in results.items()))
    return results
