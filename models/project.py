from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from models.base import (
    Base, utcnow, value_enum,
    ProjectStatus, ProjectPhase, BuildStatus, IdeaStatus, TaskPriority
)


class Project(Base):
    """
    Root aggregate of the dashboard.

    Design:
    - name is unique (onboarding creates one row per product)
    - phase is two-valued (build/live); changing it instantiates checklist
      templates, see services.phases
    - never hard-deleted
    """
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, unique=True)
    description = Column(Text, default="")

    status = Column(value_enum(ProjectStatus, "project_status"), nullable=False, default=ProjectStatus.BACKLOG)
    phase = Column(value_enum(ProjectPhase, "project_phase"), nullable=False, default=ProjectPhase.BUILD)

    # Delivery
    repo_url = Column(String(2048), default="")
    deploy_url = Column(String(2048), default="")
    test_count = Column(Integer, default=0)
    build_status = Column(value_enum(BuildStatus, "build_status"), nullable=False, default=BuildStatus.UNKNOWN)
    last_deploy_time = Column(String(64), default="")

    # Planning
    target_audience = Column(Text, default="")
    action_plan = Column(Text, default="")

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    tasks = relationship("Task", back_populates="project")


class Idea(Base):
    """Pipeline of product ideas; a validated idea is promoted into a Project."""
    __tablename__ = "ideas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, default="")
    source = Column(String(500), default="")
    market_notes = Column(Text, default="")
    effort_estimate = Column(String(32), default="unknown")  # tiny..huge, unknown
    potential = Column(String(32), default="unknown")  # low..moonshot, unknown
    status = Column(value_enum(IdeaStatus, "idea_status"), nullable=False, default=IdeaStatus.NEW)
    promoted_to_project_id = Column(Integer, ForeignKey("projects.id"), nullable=True)
    tags = Column(JSON, default=list)

    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    title = Column(String(500), nullable=False, default="")
    description = Column(Text, default="")
    status = Column(value_enum(ProjectStatus, "task_status"), nullable=False, default=ProjectStatus.BACKLOG)
    priority = Column(value_enum(TaskPriority, "task_priority"), nullable=False, default=TaskPriority.MEDIUM)
    category = Column(String(100), default="")
    blocker_reason = Column(Text, default="")

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    project = relationship("Project", back_populates="tasks")

    @property
    def project_name(self):
        return self.project.name if self.project is not None else None

    __table_args__ = (
        Index("idx_task_project_status", "project_id", "status"),
    )
