"""
Investment themes and the tickers grouped under them
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from api.dependencies import get_db
from core.exceptions import ConflictError, NotFoundError
from core.security import require_api_or_session
from models.portfolio import Theme, ThemeStock
from schemas.portfolio import ThemeCreate, ThemeResponse, ThemeStockCreate, ThemeStockResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Themes"])


async def _load_theme(db: AsyncSession, theme_id: int) -> Theme:
    result = await db.execute(
        select(Theme)
        .options(selectinload(Theme.stocks))
        .where(Theme.id == theme_id)
        .execution_options(populate_existing=True)
    )
    theme = result.scalar_one_or_none()
    if theme is None:
        raise NotFoundError("Theme not found", context={"theme_id": theme_id})
    return theme


@router.get("/api/themes")
async def list_themes(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Theme).options(selectinload(Theme.stocks)).order_by(Theme.name)
    )
    return {"themes": [ThemeResponse.model_validate(t) for t in result.scalars().all()]}


@router.post(
    "/api/themes",
    status_code=201,
    dependencies=[Depends(require_api_or_session)]
)
async def create_theme(body: ThemeCreate, db: AsyncSession = Depends(get_db)):
    theme = Theme(name=body.name, description=body.description)
    db.add(theme)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Theme with this name already exists", original_exception=e)

    logger.info(f"Created theme {theme.id}: {theme.name}")
    return {"theme": ThemeResponse.model_validate(await _load_theme(db, theme.id))}


@router.get("/api/themes/{theme_id}")
async def get_theme(theme_id: int, db: AsyncSession = Depends(get_db)):
    return {"theme": ThemeResponse.model_validate(await _load_theme(db, theme_id))}


@router.delete("/api/themes/{theme_id}", dependencies=[Depends(require_api_or_session)])
async def delete_theme(theme_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a theme; its stock rows go with it."""
    theme = await _load_theme(db, theme_id)
    await db.delete(theme)
    await db.commit()
    logger.info(f"Deleted theme {theme_id}")
    return {"ok": True}


@router.post(
    "/api/themes/{theme_id}/stocks",
    status_code=201,
    dependencies=[Depends(require_api_or_session)]
)
async def add_theme_stock(theme_id: int, body: ThemeStockCreate, db: AsyncSession = Depends(get_db)):
    if await db.get(Theme, theme_id) is None:
        raise NotFoundError("Theme not found", context={"theme_id": theme_id})

    stock = ThemeStock(theme_id=theme_id, **body.model_dump())
    db.add(stock)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Stock already in theme", original_exception=e)
    await db.refresh(stock)

    return {"stock": ThemeStockResponse.model_validate(stock)}


@router.delete(
    "/api/themes/{theme_id}/stocks/{ticker}",
    dependencies=[Depends(require_api_or_session)]
)
async def remove_theme_stock(theme_id: int, ticker: str, db: AsyncSession = Depends(get_db)):
    stock = await db.scalar(
        select(ThemeStock).where(
            ThemeStock.theme_id == theme_id,
            ThemeStock.ticker == ticker.strip().upper(),
        )
    )
    if stock is None:
        raise NotFoundError("Stock not found in theme", context={"theme_id": theme_id, "ticker": ticker})

    await db.delete(stock)
    await db.commit()
    return {"ok": True}
