"""
Stock reports, research status per ticker, and cached price quotes
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from api.dependencies import get_db, get_price_service
from core.exceptions import InvalidArgumentError
from core.security import require_api_or_session
from models.research import StockReport
from schemas.research import (
    StockReportCreate, StockReportResponse, ResearchStatus, ResearchStatusResponse, PriceResponse
)
from services.filters import QueryFilter
from services.pricing import PriceService
from services.research_jobs import normalize_ticker
from typing import Optional
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Stocks"])


@router.get("/api/stocks/reports")
async def list_reports(
    ticker: Optional[str] = Query(None, description="Exact ticker"),
    limit: int = Query(10, ge=1, le=200),
    db: AsyncSession = Depends(get_db)
):
    filters = (
        QueryFilter(StockReport)
        .equals(StockReport.ticker, ticker.strip().upper() if ticker else None)
        .order_by(StockReport.created_at.desc(), StockReport.id.desc())
        .limit(limit)
    )
    result = await db.execute(filters.apply(select(StockReport)))
    return {"reports": [StockReportResponse.model_validate(r) for r in result.scalars().all()]}


@router.post(
    "/api/stocks/reports",
    status_code=201,
    dependencies=[Depends(require_api_or_session)]
)
async def create_report(body: StockReportCreate, db: AsyncSession = Depends(get_db)):
    """Store a finished report; the returned id is what agents send as report_id."""
    report = StockReport(**body.model_dump())
    db.add(report)
    await db.commit()
    await db.refresh(report)

    logger.info(f"Stored {report.report_type} report {report.id} for {report.ticker}")
    return {"ok": True, "report": StockReportResponse.model_validate(report)}


@router.get("/api/stocks/research-status", response_model=ResearchStatusResponse)
async def research_status(
    tickers: Optional[str] = Query(None, description="Comma-separated tickers"),
    db: AsyncSession = Depends(get_db)
):
    """Latest report per ticker, or null for tickers never researched."""
    if not tickers:
        raise InvalidArgumentError("tickers query param is required")

    wanted = [t.strip().upper() for t in tickers.split(",") if t.strip()]
    if not wanted:
        return ResearchStatusResponse(statuses={})

    result = await db.execute(
        select(StockReport.ticker, StockReport.id, StockReport.created_at)
        .where(func.upper(StockReport.ticker).in_(wanted))
        .order_by(StockReport.created_at.desc(), StockReport.id.desc())
    )

    latest = {}
    for ticker, report_id, created_at in result.all():
        latest.setdefault(ticker.upper(), ResearchStatus(lastResearchDate=created_at, reportId=report_id))

    return ResearchStatusResponse(statuses={t: latest.get(t) for t in wanted})


@router.get("/api/stocks/price/{ticker}", response_model=PriceResponse)
async def get_price(ticker: str, prices: PriceService = Depends(get_price_service)):
    """Latest price; served from the 5-minute cache when fresh."""
    quote = await prices.get_price(normalize_ticker(ticker))
    return PriceResponse(**quote)
