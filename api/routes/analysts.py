"""
Analyst tracker, analyst calls and macro insights
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from api.dependencies import get_db
from core.exceptions import InvalidArgumentError, NotFoundError
from core.security import require_api_or_session
from models.analyst import Analyst, AnalystCall, MacroInsight
from models.base import AnalystCallAction, utcnow
from schemas.analysts import (
    AnalystCallCreate, AnalystCallResponse, AnalystCallUpdate,
    AnalystCreate, AnalystResponse, AnalystSummary, AnalystUpdate,
    MacroInsightCreate, MacroInsightResponse
)
from services.filters import QueryFilter
from typing import Optional
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Analysts"])

RECENT_CALLS = 5


async def _load_call(db: AsyncSession, call_id: int) -> AnalystCall:
    result = await db.execute(
        select(AnalystCall)
        .options(selectinload(AnalystCall.analyst))
        .where(AnalystCall.id == call_id)
        .execution_options(populate_existing=True)
    )
    call = result.scalar_one_or_none()
    if call is None:
        raise NotFoundError("Analyst call not found", context={"call_id": call_id})
    return call


async def _get_analyst(db: AsyncSession, analyst_id: int) -> Analyst:
    analyst = await db.get(Analyst, analyst_id)
    if analyst is None:
        raise NotFoundError("Analyst not found", context={"analyst_id": analyst_id})
    return analyst


# ============================================================================
# Calls (registered before /api/analysts/{analyst_id})
# ============================================================================

@router.get("/api/analysts/calls")
async def list_calls(
    analyst_id: Optional[int] = Query(None),
    ticker: Optional[str] = Query(None, description="Substring match"),
    action: Optional[AnalystCallAction] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db)
):
    filters = (
        QueryFilter(AnalystCall)
        .equals(AnalystCall.analyst_id, analyst_id)
        .contains(AnalystCall.ticker, ticker.strip().upper() if ticker else None)
        .equals(AnalystCall.action, action)
        .order_by(AnalystCall.call_date.desc(), AnalystCall.id.desc())
        .limit(limit)
    )
    result = await db.execute(
        filters.apply(select(AnalystCall).options(selectinload(AnalystCall.analyst)))
    )
    return {"calls": [AnalystCallResponse.model_validate(c) for c in result.scalars().all()]}


@router.post(
    "/api/analysts/calls",
    status_code=201,
    dependencies=[Depends(require_api_or_session)]
)
async def create_call(body: AnalystCallCreate, db: AsyncSession = Depends(get_db)):
    await _get_analyst(db, body.analyst_id)

    call = AnalystCall(**body.model_dump())
    db.add(call)
    await db.commit()

    logger.info(f"Recorded {call.action} call on {call.ticker} by analyst {call.analyst_id}")
    return {"call": AnalystCallResponse.model_validate(await _load_call(db, call.id))}


@router.patch("/api/analysts/calls/{call_id}", dependencies=[Depends(require_api_or_session)])
async def update_call(call_id: int, body: AnalystCallUpdate, db: AsyncSession = Depends(get_db)):
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise InvalidArgumentError("No fields to update")

    call = await _load_call(db, call_id)
    for name, value in fields.items():
        setattr(call, name, value)
    await db.commit()

    return {"call": AnalystCallResponse.model_validate(await _load_call(db, call_id))}


@router.delete("/api/analysts/calls/{call_id}", dependencies=[Depends(require_api_or_session)])
async def delete_call(call_id: int, db: AsyncSession = Depends(get_db)):
    call = await _load_call(db, call_id)
    await db.delete(call)
    await db.commit()
    return {"ok": True}


# ============================================================================
# Analysts
# ============================================================================

@router.get("/api/analysts")
async def list_analysts(db: AsyncSession = Depends(get_db)):
    """
    Analysts by success rate (unrated last), each with a call count and
    the five most recent calls.
    """
    result = await db.execute(
        select(Analyst).order_by(Analyst.success_rate.desc().nulls_last(), Analyst.name)
    )
    analysts = result.scalars().all()

    counts = dict((await db.execute(
        select(AnalystCall.analyst_id, func.count(AnalystCall.id)).group_by(AnalystCall.analyst_id)
    )).all())

    summaries = []
    for analyst in analysts:
        recent = await db.execute(
            select(AnalystCall)
            .options(selectinload(AnalystCall.analyst))
            .where(AnalystCall.analyst_id == analyst.id)
            .order_by(AnalystCall.call_date.desc(), AnalystCall.id.desc())
            .limit(RECENT_CALLS)
        )
        summary = AnalystSummary.model_validate(analyst)
        summary.call_count = counts.get(analyst.id, 0)
        summary.recent_calls = [AnalystCallResponse.model_validate(c) for c in recent.scalars().all()]
        summaries.append(summary)

    return {"analysts": summaries}


@router.post(
    "/api/analysts",
    status_code=201,
    dependencies=[Depends(require_api_or_session)]
)
async def create_analyst(body: AnalystCreate, db: AsyncSession = Depends(get_db)):
    analyst = Analyst(**body.model_dump())
    db.add(analyst)
    await db.commit()
    await db.refresh(analyst)

    logger.info(f"Tracking analyst {analyst.id}: {analyst.name} ({analyst.firm})")
    return {"analyst": AnalystResponse.model_validate(analyst)}


@router.get("/api/analysts/{analyst_id}")
async def get_analyst(analyst_id: int, db: AsyncSession = Depends(get_db)):
    """One analyst with their full call history, newest first."""
    analyst = await _get_analyst(db, analyst_id)
    result = await db.execute(
        select(AnalystCall)
        .options(selectinload(AnalystCall.analyst))
        .where(AnalystCall.analyst_id == analyst_id)
        .order_by(AnalystCall.call_date.desc(), AnalystCall.id.desc())
    )
    calls = [AnalystCallResponse.model_validate(c) for c in result.scalars().all()]
    return {"analyst": AnalystResponse.model_validate(analyst), "calls": calls}


@router.patch("/api/analysts/{analyst_id}", dependencies=[Depends(require_api_or_session)])
async def update_analyst(analyst_id: int, body: AnalystUpdate, db: AsyncSession = Depends(get_db)):
    fields = body.model_dump(exclude_unset=True)
    if not fields:
        raise InvalidArgumentError("No fields to update")

    analyst = await _get_analyst(db, analyst_id)
    for name, value in fields.items():
        setattr(analyst, name, value)
    analyst.updated_at = utcnow()
    await db.commit()
    return {"analyst": AnalystResponse.model_validate(analyst)}


@router.delete("/api/analysts/{analyst_id}", dependencies=[Depends(require_api_or_session)])
async def delete_analyst(analyst_id: int, db: AsyncSession = Depends(get_db)):
    """Delete an analyst; the database cascades their calls."""
    analyst = await _get_analyst(db, analyst_id)
    await db.delete(analyst)
    await db.commit()
    logger.info(f"Deleted analyst {analyst_id}")
    return {"ok": True}


# ============================================================================
# Macro insights
# ============================================================================

@router.get("/api/macro/insights", response_model=MacroInsightResponse)
async def latest_macro_insight(db: AsyncSession = Depends(get_db)):
    insight = await db.scalar(
        select(MacroInsight)
        .order_by(MacroInsight.generated_at.desc(), MacroInsight.id.desc())
        .limit(1)
    )
    if insight is None:
        return MacroInsightResponse()
    return MacroInsightResponse(
        insights=insight.insights,
        generated_at=insight.generated_at,
        indicator_snapshot=insight.indicator_snapshot,
    )


@router.post(
    "/api/macro/insights",
    status_code=201,
    dependencies=[Depends(require_api_or_session)]
)
async def create_macro_insight(body: MacroInsightCreate, db: AsyncSession = Depends(get_db)):
    insight = MacroInsight(insights=body.insights, indicator_snapshot=body.indicator_snapshot)
    db.add(insight)
    await db.commit()
    await db.refresh(insight)
    return {"ok": True, "id": insight.id}
