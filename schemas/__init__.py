"""
Pydantic schemas for request validation and response serialization.

Schemas:
    api: health, auth, search and error envelopes
    projects: projects, phase changes, ideas, tasks, checklists, activity, comments
    research: research jobs, stock reports, research status, prices
    portfolio: watchlist, holdings, portfolio reports, themes
    analysts: analysts, analyst calls, macro insights

Usage:
    from schemas.projects import PhaseChangeRequest, ProjectResponse
    from schemas.research import ResearchJobPatch

Conventions:
    - Response models read ORM rows directly (``from_attributes``) and emit
      enum values, not names
    - Partial updates are applied from ``model_dump(exclude_unset=True)``
      so an omitted field is never confused with an explicit null
"""

__all__ = [
    "HealthCheckResponse",
    "ErrorResponse",
    "SearchResponse",
    "PhaseChangeRequest",
    "PhaseChangeResponse",
    "ProjectResponse",
    "ResearchJobResponse",
    "ResearchJobPatch",
]
