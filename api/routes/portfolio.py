"""
Watchlist, ideal-portfolio holdings and portfolio reports
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from api.dependencies import get_db
from core.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from core.security import require_api_or_session
from models.base import WatchlistStatus, utcnow
from models.portfolio import WatchlistItem, PortfolioHolding, PortfolioReport
from schemas.portfolio import (
    WatchlistItemCreate, WatchlistItemResponse, WatchlistItemUpdate,
    HoldingCreate, HoldingResponse, HoldingUpdate,
    PortfolioReportCreate, PortfolioReportResponse
)
from services.filters import QueryFilter
from typing import Optional
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Portfolio"])


async def _get_or_404(db: AsyncSession, model, item_id: int, label: str):
    obj = await db.get(model, item_id)
    if obj is None:
        raise NotFoundError(f"{label} {item_id} not found")
    return obj


# ============================================================================
# Watchlist
# ============================================================================

@router.get("/api/watchlist")
async def list_watchlist(
    status: Optional[WatchlistStatus] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    filters = (
        QueryFilter(WatchlistItem)
        .equals(WatchlistItem.status, status)
        .order_by(WatchlistItem.added_at.desc(), WatchlistItem.id.desc())
    )
    result = await db.execute(filters.apply(select(WatchlistItem)))
    return {"items": [WatchlistItemResponse.model_validate(i) for i in result.scalars().all()]}


@router.post(
    "/api/watchlist",
    status_code=201,
    dependencies=[Depends(require_api_or_session)]
)
async def add_to_watchlist(body: WatchlistItemCreate, db: AsyncSession = Depends(get_db)):
    item = WatchlistItem(**body.model_dump())
    db.add(item)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(f"{body.ticker} is already in watchlist", original_exception=e)
    await db.refresh(item)

    logger.info(f"Added {item.ticker} to watchlist")
    return {"item": WatchlistItemResponse.model_validate(item)}


@router.put("/api/watchlist/{item_id}", dependencies=[Depends(require_api_or_session)])
async def update_watchlist_item(
    item_id: int,
    body: WatchlistItemUpdate,
    db: AsyncSession = Depends(get_db)
):
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise InvalidArgumentError("No fields to update")

    item = await _get_or_404(db, WatchlistItem, item_id, "Watchlist item")
    for name, value in fields.items():
        setattr(item, name, value)
    item.updated_at = utcnow()
    await db.commit()
    return {"item": WatchlistItemResponse.model_validate(item)}


@router.delete("/api/watchlist/{item_id}", dependencies=[Depends(require_api_or_session)])
async def remove_from_watchlist(item_id: int, db: AsyncSession = Depends(get_db)):
    item = await _get_or_404(db, WatchlistItem, item_id, "Watchlist item")
    await db.delete(item)
    await db.commit()
    logger.info(f"Removed {item.ticker} from watchlist")
    return {"ok": True}


# ============================================================================
# Holdings
# ============================================================================

@router.get("/api/portfolio/holdings")
async def list_holdings(db: AsyncSession = Depends(get_db)):
    """Holdings by target allocation, largest first."""
    result = await db.execute(
        select(PortfolioHolding).order_by(
            PortfolioHolding.target_allocation.desc(), PortfolioHolding.ticker
        )
    )
    return {"holdings": [HoldingResponse.model_validate(h) for h in result.scalars().all()]}


@router.post(
    "/api/portfolio/holdings",
    status_code=201,
    dependencies=[Depends(require_api_or_session)]
)
async def add_holding(body: HoldingCreate, db: AsyncSession = Depends(get_db)):
    """
    Add a ticker to the ideal portfolio.

    A watchlist entry for the same ticker moves to ``graduated``.
    """
    holding = PortfolioHolding(**body.model_dump())
    db.add(holding)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(f"{body.ticker} is already in the portfolio", original_exception=e)

    watched = await db.scalar(select(WatchlistItem).where(WatchlistItem.ticker == body.ticker))
    if watched is not None:
        watched.status = WatchlistStatus.GRADUATED
        watched.updated_at = utcnow()

    await db.commit()
    await db.refresh(holding)

    logger.info(
        f"Added {holding.ticker} to portfolio at {holding.target_allocation}%"
        + (" (graduated from watchlist)" if watched is not None else "")
    )
    return {"holding": HoldingResponse.model_validate(holding)}


@router.put("/api/portfolio/holdings/{holding_id}", dependencies=[Depends(require_api_or_session)])
async def update_holding(
    holding_id: int,
    body: HoldingUpdate,
    db: AsyncSession = Depends(get_db)
):
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise InvalidArgumentError("No fields to update")

    holding = await _get_or_404(db, PortfolioHolding, holding_id, "Holding")
    for name, value in fields.items():
        setattr(holding, name, value)
    holding.updated_at = utcnow()
    await db.commit()
    return {"holding": HoldingResponse.model_validate(holding)}


@router.delete("/api/portfolio/holdings/{holding_id}", dependencies=[Depends(require_api_or_session)])
async def remove_holding(holding_id: int, db: AsyncSession = Depends(get_db)):
    holding = await _get_or_404(db, PortfolioHolding, holding_id, "Holding")
    await db.delete(holding)
    await db.commit()
    return {"ok": True}


# ============================================================================
# Reports
# ============================================================================

@router.get("/api/portfolio/reports")
async def list_portfolio_reports(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(PortfolioReport)
        .order_by(PortfolioReport.created_at.desc(), PortfolioReport.id.desc())
        .limit(limit)
    )
    return {"reports": [PortfolioReportResponse.model_validate(r) for r in result.scalars().all()]}


@router.post(
    "/api/portfolio/reports",
    status_code=201,
    dependencies=[Depends(require_api_or_session)]
)
async def create_portfolio_report(body: PortfolioReportCreate, db: AsyncSession = Depends(get_db)):
    report = PortfolioReport(**body.model_dump())
    db.add(report)
    await db.commit()
    await db.refresh(report)
    return {"report": PortfolioReportResponse.model_validate(report)}
