"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums (ProjectPhase, ResearchJobStatus, ...)
    project: Project, Idea, Task
    checklist: ChecklistTemplate (phase_checklists), ChecklistProgress
    activity: Activity (append-only audit trail), Comment
    research: ResearchJob, StockReport
    portfolio: WatchlistItem, PortfolioHolding, PortfolioReport, Theme, ThemeStock
    analyst: Analyst, AnalystCall, MacroInsight
    health_check: HealthCheck

Importing this package registers every table on ``Base.metadata``, which
``Base.metadata.create_all`` and alembic autogenerate rely on.

Usage:
    from models import Project, ResearchJob
    from models.base import ProjectPhase, ResearchJobStatus

Relationships:
    - Project → Task (one-to-many)
    - Project → ChecklistProgress ← ChecklistTemplate
    - ResearchJob → StockReport (report_id, optional)
    - Theme → ThemeStock (one-to-many, cascade delete)
    - Analyst → AnalystCall (one-to-many)
"""

from models.base import Base
from models.project import Project, Idea, Task
from models.checklist import ChecklistTemplate, ChecklistProgress
from models.activity import Activity, Comment
from models.research import ResearchJob, StockReport
from models.portfolio import WatchlistItem, PortfolioHolding, PortfolioReport, Theme, ThemeStock
from models.analyst import Analyst, AnalystCall, MacroInsight
from models.health_check import HealthCheck

__all__ = [
    "Base",
    "Project",
    "Idea",
    "Task",
    "ChecklistTemplate",
    "ChecklistProgress",
    "Activity",
    "Comment",
    "ResearchJob",
    "StockReport",
    "WatchlistItem",
    "PortfolioHolding",
    "PortfolioReport",
    "Theme",
    "ThemeStock",
    "Analyst",
    "AnalystCall",
    "MacroInsight",
    "HealthCheck",
]
