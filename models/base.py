from datetime import datetime
from sqlalchemy import Enum
from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.utcnow()


def value_enum(enum_cls, name: str) -> Enum:
    """
    Store a str-enum by value in a VARCHAR column guarded by a CHECK constraint.

    The constraint is what keeps e.g. ``projects.phase`` two-valued at the
    database level, not just in application code.
    """
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        length=32,
        values_callable=lambda members: [m.value for m in members],
    )


# ============================================================================
# ENUMS
# ============================================================================

class ProjectStatus(str, enum.Enum):
    """Kanban column of a project"""
    BACKLOG = "backlog"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    DONE = "done"


class ProjectPhase(str, enum.Enum):
    """Coarse lifecycle bucket; drives checklist instantiation"""
    BUILD = "build"
    LIVE = "live"


# Phases from before the two-bucket model, mapped during migration
LEGACY_LIVE_PHASES = ("launch", "grow", "iterate", "maintain")


def normalize_legacy_phase(phase) -> ProjectPhase:
    """Map any historical phase value onto build/live."""
    if phase in LEGACY_LIVE_PHASES or phase == ProjectPhase.LIVE.value:
        return ProjectPhase.LIVE
    return ProjectPhase.BUILD


class BuildStatus(str, enum.Enum):
    PASS = "pass"
    FAIL = "fail"
    UNKNOWN = "unknown"


class IdeaStatus(str, enum.Enum):
    NEW = "new"
    RESEARCHING = "researching"
    VALIDATED = "validated"
    PROMOTED = "promoted"
    REJECTED = "rejected"


class TaskPriority(str, enum.Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ResearchJobStatus(str, enum.Enum):
    """Research job lifecycle status"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    FAILED = "failed"


class WatchlistStatus(str, enum.Enum):
    WATCHING = "watching"
    ACCUMULATING = "accumulating"
    GRADUATED = "graduated"


class ThemeStockStatus(str, enum.Enum):
    WATCHING = "watching"
    ACCUMULATING = "accumulating"
    HOLDING = "holding"


class AnalystCallAction(str, enum.Enum):
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"
    UPGRADE = "upgrade"
    DOWNGRADE = "downgrade"


class AnalystCallOutcome(str, enum.Enum):
    HIT = "hit"
    MISS = "miss"
    PENDING = "pending"
