from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from models.base import Base, utcnow, value_enum, AnalystCallAction, AnalystCallOutcome


class Analyst(Base):
    """Tracked sell-side analyst and their hit rate."""
    __tablename__ = "analysts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    firm = Column(String(200), nullable=False)
    specialty = Column(String(200), nullable=True)
    success_rate = Column(Float, nullable=True)  # 0.88 == 88%
    avg_return = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    calls = relationship("AnalystCall", back_populates="analyst", passive_deletes=True)


class AnalystCall(Base):
    __tablename__ = "analyst_calls"

    id = Column(Integer, primary_key=True, autoincrement=True)
    analyst_id = Column(Integer, ForeignKey("analysts.id", ondelete="CASCADE"), nullable=True, index=True)
    ticker = Column(String(16), nullable=False, index=True)
    action = Column(value_enum(AnalystCallAction, "analyst_call_action"), nullable=False)
    price_target = Column(Float, nullable=True)
    price_at_call = Column(Float, nullable=True)
    current_price = Column(Float, nullable=True)
    call_date = Column(String(32), nullable=False)
    notes = Column(Text, nullable=True)
    outcome = Column(value_enum(AnalystCallOutcome, "analyst_call_outcome"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    analyst = relationship("Analyst", back_populates="calls")

    @property
    def analyst_name(self):
        return self.analyst.name if self.analyst is not None else None

    @property
    def analyst_firm(self):
        return self.analyst.firm if self.analyst is not None else None


class MacroInsight(Base):
    """Generated macro commentary plus the indicator values it was based on."""
    __tablename__ = "macro_insights"

    id = Column(Integer, primary_key=True, autoincrement=True)
    insights = Column(Text, nullable=False)
    indicator_snapshot = Column(JSON, nullable=True)
    generated_at = Column(DateTime, nullable=False, default=utcnow, index=True)
