from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from models.base import Base, utcnow


class HealthCheck(Base):
    """
    One HEAD probe against a project's deploy_url.

    status_code 0 means the connection failed or timed out.
    """
    __tablename__ = "health_checks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    url = Column(String(2048), nullable=False)
    status_code = Column(Integer, nullable=False, default=0)
    response_time_ms = Column(Integer, nullable=False, default=0)
    checked_at = Column(DateTime, nullable=False, default=utcnow)
