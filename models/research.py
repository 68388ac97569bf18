from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship
from models.base import Base, utcnow, value_enum, ResearchJobStatus


class StockReport(Base):
    """Long-form research output for a ticker, written by research agents."""
    __tablename__ = "stock_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ticker = Column(String(16), nullable=False, index=True)
    title = Column(String(500), nullable=False, default="")
    content = Column(Text, nullable=False, default="")
    report_type = Column(String(50), nullable=False, default="sun-tzu")
    company_name = Column(String(200), default="")
    related_tickers = Column(String(500), default="")
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)


class ResearchJob(Base):
    """
    Asynchronous research request for one ticker.

    Design:
    - id is a human-readable string (research-{TICKER}-{epochMillis}),
      assigned once and never changed
    - pending/processing are "active"; complete/failed are terminal
    - report_id links the finished StockReport
    """
    __tablename__ = "research_jobs"

    id = Column(String(64), primary_key=True)
    ticker = Column(String(16), nullable=False, index=True)
    status = Column(
        value_enum(ResearchJobStatus, "research_job_status"),
        nullable=False,
        default=ResearchJobStatus.PENDING
    )
    progress = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    report_id = Column(Integer, ForeignKey("stock_reports.id"), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    report = relationship("StockReport")

    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_research_job_progress"),
        Index("idx_research_job_ticker_status", "ticker", "status"),
    )
