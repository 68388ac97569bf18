"""
Core utilities and configuration for the mission control backend.

This package provides foundational components used throughout the service:

Modules:
    config: Application configuration and environment variable management
    database: Engine creation, session management and insert-or-ignore helper
    exceptions: Error taxonomy mapped onto HTTP status codes
    logging: Logging configuration
    security: API key and session cookie authentication
    rate_limit: Sliding-window request limiter

Usage:
    from core.config import settings
    from core.database import async_session_maker, insert_ignore
    from core.exceptions import InvalidArgumentError, NotFoundError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "async_session_maker",
    "insert_ignore",
    "setup_logging",
    # Exceptions
    "MissionControlError",
    "InvalidArgumentError",
    "UnauthorizedError",
    "NotFoundError",
    "ConflictError",
    "InvalidTransitionError",
    "RateLimitExceededError",
    "InternalError",
    "UpstreamError",
]
