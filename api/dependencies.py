"""
FastAPI dependencies shared by the route modules.

Collaborators that talk to the outside world (page revalidation, research
gateway, quote provider, deploy probes) are provided here so tests can swap
them through ``app.dependency_overrides``.
"""

from typing import AsyncGenerator
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
import httpx
import logging

from core.config import settings
from core.database import async_session_maker
from core.exceptions import RateLimitExceededError
from core.rate_limit import SlidingWindowRateLimiter
from services.pricing import PriceCache, PriceService
from services.research_jobs import PageCacheInvalidator, ResearchDispatcher, ResearchJobService

logger = logging.getLogger(__name__)

# Process-wide state: one price cache and one login limiter per worker
price_service = PriceService(cache=PriceCache(settings.PRICE_CACHE_TTL_SECONDS))
login_rate_limiter = SlidingWindowRateLimiter(
    limit=settings.RATE_LIMIT_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped database session"""
    async with async_session_maker() as session:
        yield session


def get_invalidator() -> PageCacheInvalidator:
    return PageCacheInvalidator()


def get_dispatcher() -> ResearchDispatcher:
    return ResearchDispatcher()


def get_research_service(
    db: AsyncSession = Depends(get_db),
    invalidator: PageCacheInvalidator = Depends(get_invalidator)
) -> ResearchJobService:
    return ResearchJobService(db, invalidator=invalidator)


def get_price_service() -> PriceService:
    return price_service


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient() as client:
        yield client


def get_login_rate_limiter() -> SlidingWindowRateLimiter:
    return login_rate_limiter


def client_token(request: Request) -> str:
    """Identify the caller by forwarded address, falling back to the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


async def enforce_login_rate_limit(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_login_rate_limiter)
) -> None:
    token = client_token(request)
    allowed, _ = limiter.check(token)
    if not allowed:
        logger.warning(f"Login rate limit exceeded for {token}")
        raise RateLimitExceededError(
            "Too many login attempts",
            retry_after=int(limiter.window_seconds)
        )
