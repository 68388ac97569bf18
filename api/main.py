"""
FastAPI application initialization
"""

from fastapi import FastAPI
from api.routes import (
    health, auth, phase, research, stocks, projects, checklists,
    activity, portfolio, themes, analysts, search
)
from api.errors import register_exception_handlers
from api.middleware import RequestContextMiddleware
from core.config import settings
from core.database import init_models
from core.logging import setup_logging
import logging

setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Mission Control API",
    description="Backend for the project dashboard: phases, checklists, research jobs and portfolio",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)
register_exception_handlers(app)

# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(phase.router)
app.include_router(research.router)
app.include_router(stocks.router)
app.include_router(projects.router)
app.include_router(checklists.router)
app.include_router(activity.router)
app.include_router(portfolio.router)
app.include_router(themes.router)
app.include_router(analysts.router)
app.include_router(search.router)


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting Mission Control API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else settings.DATABASE_URL.split('://')[0]}")

    if not settings.API_KEY:
        logger.warning("API_KEY is not set; API-key authentication will reject every request")

    if settings.AUTO_CREATE_TABLES:
        await init_models()


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down Mission Control API")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Mission Control API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "phase": "/api/phase",
            "research": "/api/stocks/research",
            "projects": "/api/projects",
            "search": "/api/search"
        }
    }
