"""
Pydantic schemas for analysts, analyst calls and macro insights
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from models.base import AnalystCallAction, AnalystCallOutcome


def _not_null(v):
    if v is None:
        raise ValueError("may not be null")
    return v


class AnalystCallResponse(BaseModel):
    id: int
    analyst_id: Optional[int] = None
    analyst_name: Optional[str] = None
    analyst_firm: Optional[str] = None
    ticker: str
    action: AnalystCallAction
    price_target: Optional[float] = None
    price_at_call: Optional[float] = None
    current_price: Optional[float] = None
    call_date: str
    notes: Optional[str] = None
    outcome: Optional[AnalystCallOutcome] = None
    created_at: datetime

    class Config:
        from_attributes = True
        use_enum_values = True


class AnalystResponse(BaseModel):
    id: int
    name: str
    firm: str
    specialty: Optional[str] = None
    success_rate: Optional[float] = None
    avg_return: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AnalystSummary(AnalystResponse):
    """Analyst with call count and the five most recent calls"""
    call_count: int = 0
    recent_calls: List[AnalystCallResponse] = Field(default_factory=list)


class AnalystCreate(BaseModel):
    name: str = Field(..., min_length=1)
    firm: str = Field(..., min_length=1)
    specialty: Optional[str] = None
    success_rate: Optional[float] = None
    avg_return: Optional[float] = None
    notes: Optional[str] = None


class AnalystUpdate(BaseModel):
    name: Optional[str] = None
    firm: Optional[str] = None
    specialty: Optional[str] = None
    success_rate: Optional[float] = None
    avg_return: Optional[float] = None
    notes: Optional[str] = None

    @validator("name", "firm", pre=True)
    def required_not_null(cls, v):
        return _not_null(v)


class AnalystCallCreate(BaseModel):
    analyst_id: int
    ticker: str = Field(..., min_length=1, max_length=16)
    action: AnalystCallAction
    price_target: Optional[float] = None
    price_at_call: Optional[float] = None
    current_price: Optional[float] = None
    call_date: str = Field(..., min_length=1)
    notes: Optional[str] = None
    outcome: AnalystCallOutcome = AnalystCallOutcome.PENDING

    @validator("ticker", pre=True)
    def normalize_ticker(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class AnalystCallUpdate(BaseModel):
    ticker: Optional[str] = None
    action: Optional[AnalystCallAction] = None
    price_target: Optional[float] = None
    price_at_call: Optional[float] = None
    current_price: Optional[float] = None
    call_date: Optional[str] = None
    notes: Optional[str] = None
    outcome: Optional[AnalystCallOutcome] = None

    @validator("ticker", pre=True)
    def normalize_ticker(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @validator("ticker", "action", "call_date", pre=True)
    def required_not_null(cls, v):
        return _not_null(v)


class MacroInsightResponse(BaseModel):
    """Latest insight; every field is null before the first one is stored"""
    insights: Optional[str] = None
    generated_at: Optional[datetime] = None
    indicator_snapshot: Optional[Dict[str, Any]] = None


class MacroInsightCreate(BaseModel):
    insights: str = Field(..., min_length=1)
    indicator_snapshot: Optional[Dict[str, Any]] = None
