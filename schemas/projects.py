"""
Pydantic schemas for projects, ideas, tasks, checklists, activity and comments
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from models.base import ProjectStatus, ProjectPhase, BuildStatus, IdeaStatus, TaskPriority


def _not_null(v):
    """Partial updates may omit a required column but never null it."""
    if v is None:
        raise ValueError("may not be null")
    return v


# ============================================================================
# Projects
# ============================================================================

class ProjectResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = ""
    status: ProjectStatus
    phase: ProjectPhase
    repo_url: Optional[str] = ""
    deploy_url: Optional[str] = ""
    test_count: Optional[int] = 0
    build_status: BuildStatus
    last_deploy_time: Optional[str] = ""
    target_audience: Optional[str] = ""
    action_plan: Optional[str] = ""
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
        use_enum_values = True


class ProjectUpsert(BaseModel):
    """Create a project, or update it when ``id`` is given"""
    id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    phase: Optional[ProjectPhase] = None
    repo_url: Optional[str] = None
    deploy_url: Optional[str] = None
    test_count: Optional[int] = Field(None, ge=0)
    build_status: Optional[BuildStatus] = None
    last_deploy_time: Optional[str] = None
    target_audience: Optional[str] = None
    action_plan: Optional[str] = None

    @validator("name", "status", "phase", "build_status", pre=True)
    def required_not_null(cls, v):
        return _not_null(v)


class PhaseChangeRequest(BaseModel):
    project_id: int
    phase: str


class PhaseChangeResponse(BaseModel):
    ok: bool = True
    project: ProjectResponse
    checklist_items_created: int
    checklist_errors: List[Dict[str, Any]] = Field(default_factory=list)


# ============================================================================
# Ideas
# ============================================================================

class IdeaResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = ""
    source: Optional[str] = ""
    market_notes: Optional[str] = ""
    effort_estimate: Optional[str] = "unknown"
    potential: Optional[str] = "unknown"
    status: IdeaStatus
    promoted_to_project_id: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @validator("tags", pre=True)
    def tags_default(cls, v):
        return v or []

    class Config:
        from_attributes = True
        use_enum_values = True


class IdeaUpsert(BaseModel):
    id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    source: Optional[str] = None
    market_notes: Optional[str] = None
    effort_estimate: Optional[str] = None
    potential: Optional[str] = None
    status: Optional[IdeaStatus] = None
    promoted_to_project_id: Optional[int] = None
    tags: Optional[List[str]] = None

    @validator("title", "status", pre=True)
    def required_not_null(cls, v):
        return _not_null(v)


class IdeaPromoteRequest(BaseModel):
    idea_id: int
    name: Optional[str] = None
    description: Optional[str] = None
    phase: Optional[ProjectPhase] = None


# ============================================================================
# Tasks
# ============================================================================

class TaskResponse(BaseModel):
    id: int
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    title: str
    description: Optional[str] = ""
    status: ProjectStatus
    priority: TaskPriority
    category: Optional[str] = ""
    blocker_reason: Optional[str] = ""
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
        use_enum_values = True


class TaskUpsert(BaseModel):
    id: Optional[int] = None
    project_id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    priority: Optional[TaskPriority] = None
    category: Optional[str] = None
    blocker_reason: Optional[str] = None

    @validator("title", "status", "priority", pre=True)
    def required_not_null(cls, v):
        return _not_null(v)


# ============================================================================
# Checklists
# ============================================================================

class ChecklistItemResponse(BaseModel):
    id: int
    phase: ProjectPhase
    item_order: int
    title: str
    description: Optional[str] = ""
    is_template: bool
    # Present when queried for a specific project
    progress_id: Optional[int] = None
    completed: Optional[bool] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True
        use_enum_values = True


class ChecklistActionRequest(BaseModel):
    """Body of POST /api/checklists; ``action`` selects the operation"""
    action: str
    project_id: Optional[int] = None
    checklist_item_id: Optional[int] = None
    completed: Optional[bool] = None
    notes: Optional[str] = None
    phase: Optional[str] = None


# ============================================================================
# Activity & comments
# ============================================================================

class ActivityResponse(BaseModel):
    id: int
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    type: str
    title: str
    description: Optional[str] = ""
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="extra_metadata")
    created_at: datetime

    class Config:
        from_attributes = True


class ActivityCreate(BaseModel):
    project_id: Optional[int] = None
    type: str = "general"
    title: str = ""
    description: str = ""
    metadata: Optional[Dict[str, Any]] = None


class CommentResponse(BaseModel):
    id: int
    target_type: str
    target_id: int
    text: str
    author: str
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CommentCreate(BaseModel):
    target_type: str = Field(..., min_length=1)
    target_id: int
    text: str = Field(..., min_length=1)
    author: Optional[str] = None
