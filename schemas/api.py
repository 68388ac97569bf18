"""
Pydantic schemas for service-level API responses
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any
from datetime import datetime


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    database_connected: bool
    environment: str
    status: str = Field("healthy", description="Overall system status: healthy, unhealthy")
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @validator("status", pre=True, always=True)
    def determine_status(cls, v, values):
        """Unhealthy whenever the database is unreachable"""
        if not values.get("database_connected", False):
            return "unhealthy"
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "timestamp": "2024-01-15T10:30:00Z",
                "database_connected": True,
                "environment": "production"
            }
        }


class DeploymentCheck(BaseModel):
    project_id: int
    project_name: str
    url: str
    status_code: int = Field(..., description="0 when the connection failed or timed out")
    response_time_ms: int
    ok: bool


class IntegrationsHealthResponse(BaseModel):
    checks: List[DeploymentCheck]


# ============================================================================
# Auth
# ============================================================================

class AuthRequest(BaseModel):
    password: str


class OkResponse(BaseModel):
    ok: bool = True
    message: Optional[str] = None


# ============================================================================
# Search
# ============================================================================

class SearchResponse(BaseModel):
    """Category -> up to five matching rows; empty for queries under two characters"""
    results: Dict[str, List[Dict[str, Any]]] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "results": {
                    "projects": [{"id": 7, "name": "Mission Control", "status": "in_progress"}],
                    "tasks": [],
                    "activity": [],
                    "comments": [],
                    "reports": []
                }
            }
        }


# ============================================================================
# Error Response Schema
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response"""
    error: str
    code: str

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Job not found",
                "code": "NOT_FOUND"
            }
        }
