from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from models.base import Base, utcnow


class Activity(Base):
    """
    Append-only audit trail.

    Rows are written by workflows (phase changes, promotions) and by agents
    via POST /api/activity. Nothing updates or deletes them.
    """
    __tablename__ = "activity"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    type = Column(String(50), nullable=False, default="general")
    title = Column(String(500), nullable=False, default="")
    description = Column(Text, default="")
    extra_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    project = relationship("Project")

    @property
    def project_name(self):
        return self.project.name if self.project is not None else None

    __table_args__ = (
        Index("idx_activity_project_created", "project_id", "created_at"),
    )


class Comment(Base):
    """Free-text note attached to any entity (target_type, target_id)."""
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    target_type = Column(String(50), nullable=False)
    target_id = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)
    author = Column(String(100), nullable=False, default="Mr Z")
    is_read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_comment_target", "target_type", "target_id"),
    )
