from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, Index
from models.base import Base, value_enum, ProjectPhase


class ChecklistTemplate(Base):
    """
    Reusable, phase-scoped checklist item.

    Template rows are seeded once; a phase may have many items. Entering a
    phase copies every template of that phase into ChecklistProgress.
    """
    __tablename__ = "phase_checklists"

    id = Column(Integer, primary_key=True, autoincrement=True)
    phase = Column(value_enum(ProjectPhase, "checklist_phase"), nullable=False)
    item_order = Column(Integer, nullable=False, default=0)
    title = Column(String(500), nullable=False)
    description = Column(Text, default="")
    is_template = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index("idx_checklist_phase_template", "phase", "is_template"),
    )


class ChecklistProgress(Base):
    """
    One row per (project, template item).

    The composite unique constraint is what makes re-entering a phase
    idempotent: the insert-or-ignore silently drops duplicates.
    """
    __tablename__ = "project_checklist_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    checklist_item_id = Column(Integer, ForeignKey("phase_checklists.id"), nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)
    notes = Column(Text, default="")

    __table_args__ = (
        UniqueConstraint("project_id", "checklist_item_id", name="uq_checklist_progress_item"),
    )
