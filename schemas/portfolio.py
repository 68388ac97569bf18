"""
Pydantic schemas for watchlist, portfolio holdings/reports and themes
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime
from models.base import WatchlistStatus, ThemeStockStatus


def _upper(v):
    return v.strip().upper() if isinstance(v, str) else v


def _not_null(v):
    if v is None:
        raise ValueError("may not be null")
    return v


# ============================================================================
# Watchlist
# ============================================================================

class WatchlistItemResponse(BaseModel):
    id: int
    ticker: str
    target_price: Optional[float] = None
    notes: Optional[str] = None
    status: WatchlistStatus
    added_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
        use_enum_values = True


class WatchlistItemCreate(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=16)
    target_price: Optional[float] = None
    notes: Optional[str] = None
    status: WatchlistStatus = WatchlistStatus.WATCHING

    @validator("ticker", pre=True)
    def normalize_ticker(cls, v):
        return _upper(v)


class WatchlistItemUpdate(BaseModel):
    target_price: Optional[float] = None
    notes: Optional[str] = None
    status: Optional[WatchlistStatus] = None

    @validator("status", pre=True)
    def status_not_null(cls, v):
        return _not_null(v)


# ============================================================================
# Portfolio
# ============================================================================

class HoldingResponse(BaseModel):
    id: int
    ticker: str
    target_allocation: float
    cost_basis: Optional[float] = None
    shares: Optional[float] = None
    added_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class HoldingCreate(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=16)
    target_allocation: float = Field(..., ge=0)
    cost_basis: Optional[float] = None
    shares: Optional[float] = None

    @validator("ticker", pre=True)
    def normalize_ticker(cls, v):
        return _upper(v)


class HoldingUpdate(BaseModel):
    target_allocation: Optional[float] = Field(None, ge=0)
    cost_basis: Optional[float] = None
    shares: Optional[float] = None

    @validator("target_allocation", pre=True)
    def allocation_not_null(cls, v):
        return _not_null(v)


class PortfolioReportResponse(BaseModel):
    id: int
    content: str
    summary: Optional[str] = None
    total_tickers: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PortfolioReportCreate(BaseModel):
    content: str = Field(..., min_length=1)
    summary: Optional[str] = None
    total_tickers: Optional[int] = None


# ============================================================================
# Themes
# ============================================================================

class ThemeStockResponse(BaseModel):
    id: int
    theme_id: int
    ticker: str
    target_price: Optional[float] = None
    status: ThemeStockStatus
    notes: Optional[str] = None
    added_at: datetime

    class Config:
        from_attributes = True
        use_enum_values = True


class ThemeResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = ""
    created_at: datetime
    stocks: List[ThemeStockResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class ThemeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""

    @validator("name", "description", pre=True)
    def strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class ThemeStockCreate(BaseModel):
    ticker: str = Field(..., min_length=1, max_length=16)
    target_price: Optional[float] = None
    status: ThemeStockStatus = ThemeStockStatus.WATCHING
    notes: Optional[str] = None

    @validator("ticker", pre=True)
    def normalize_ticker(cls, v):
        return _upper(v)
