"""
Pydantic schemas for research jobs, stock reports and prices
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from models.base import ResearchJobStatus


class ResearchJobResponse(BaseModel):
    id: str
    ticker: str
    status: ResearchJobStatus
    progress: int
    error_message: Optional[str] = None
    report_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
        use_enum_values = True


class ResearchJobEnvelope(BaseModel):
    job: ResearchJobResponse


class ResearchJobList(BaseModel):
    jobs: List[ResearchJobResponse]


class ResearchRequest(BaseModel):
    # Left optional so a missing ticker reports "Ticker is required"
    ticker: Optional[Any] = None


class ResearchRequestResponse(BaseModel):
    """``jobId`` keeps the casing agents already parse"""
    jobId: str
    ticker: str
    status: str
    message: str


class ResearchJobPatch(BaseModel):
    """
    Progress report from a research agent.

    Only fields present in the body are applied; callers build the patch
    with ``model_dump(exclude_unset=True)``.
    """
    status: Optional[str] = None
    progress: Optional[int] = None
    error_message: Optional[str] = None
    report_id: Optional[int] = None


class StockReportResponse(BaseModel):
    id: int
    ticker: str
    title: str
    content: str
    report_type: str
    company_name: Optional[str] = ""
    related_tickers: Optional[str] = ""
    created_at: datetime

    class Config:
        from_attributes = True


class StockReportCreate(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=16)
    title: str = Field(..., min_length=1)
    content: str = ""
    report_type: str = "analysis"
    company_name: str = ""
    related_tickers: str = ""

    @validator("ticker", pre=True)
    def normalize_ticker(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class ResearchStatus(BaseModel):
    lastResearchDate: datetime
    reportId: int


class ResearchStatusResponse(BaseModel):
    statuses: Dict[str, Optional[ResearchStatus]]


class PriceResponse(BaseModel):
    ticker: str
    price: float
    currency: Optional[str] = None
    market_state: Optional[str] = None
    cached: bool
