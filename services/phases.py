# ============================================================================
# File: services/phases.py
# Description: Phase transition workflow with per-item failure isolation
# ============================================================================
"""
Phase transition workflow.

Moving a project to a phase:
1. Updates projects.phase and updated_at (the primary update)
2. Instantiates every checklist template of the phase for the project,
   insert-or-ignore, each inside its own SAVEPOINT
3. Appends one ``phase_change`` activity row
4. Commits and returns the refreshed project

A failing checklist insert is logged, recorded on the result and skipped.
It never blocks the phase update or the activity entry.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from core.database import insert_ignore
from core.exceptions import InvalidArgumentError, NotFoundError
from models.base import ProjectPhase, utcnow
from models.project import Project
from models.checklist import ChecklistTemplate, ChecklistProgress
from models.activity import Activity

logger = logging.getLogger(__name__)


@dataclass
class ChecklistItemError:
    checklist_item_id: int
    error: str


@dataclass
class PhaseTransitionResult:
    """Outcome of a phase transition, including partial failures"""
    project: Project
    primary_updated: bool
    checklist_items_created: int
    checklist_errors: List[ChecklistItemError] = field(default_factory=list)


def parse_phase(value: Any) -> ProjectPhase:
    try:
        return ProjectPhase(value)
    except ValueError:
        valid = ", ".join(p.value for p in ProjectPhase)
        raise InvalidArgumentError(
            f"Invalid phase. Must be one of: {valid}",
            context={"phase": value}
        )


class PhaseWorkflow:
    """
    Orchestrates a project's move into a phase.

    Responsibilities:
    - Validate input before any mutation
    - Treat a zero-row update as not found
    - Keep checklist instantiation idempotent (unique pair + insert-or-ignore)
    - Isolate each checklist insert so one failure does not abort the rest
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def transition(self, project_id: Any, new_phase: Any) -> PhaseTransitionResult:
        """
        Move a project into ``new_phase``.

        Args:
            project_id: Positive integer id of an existing project
            new_phase: "build" or "live"

        Returns:
            PhaseTransitionResult with the refreshed project and the number of
            newly created checklist rows

        Raises:
            InvalidArgumentError: Bad phase or project id (nothing is written)
            NotFoundError: No project with that id (nothing is written)
        """
        phase = parse_phase(new_phase)
        if isinstance(project_id, bool) or not isinstance(project_id, int) or project_id <= 0:
            raise InvalidArgumentError(
                "project_id must be a positive integer",
                context={"project_id": project_id}
            )

        # Step 1: primary update
        result = await self.db.execute(
            update(Project)
            .where(Project.id == project_id)
            .values(phase=phase, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFoundError(f"Project {project_id} not found", context={"project_id": project_id})

        # Step 2: instantiate checklist templates
        created, errors = await self._instantiate_checklist(project_id, phase)

        # Step 3: audit trail
        self.db.add(Activity(
            project_id=project_id,
            type="phase_change",
            title=f"Phase changed to {phase.value}",
            description=(
                f"Project transitioned to {phase.value} phase "
                f"with {created} checklist items"
            ),
            extra_metadata={
                "phase": phase.value,
                "checklist_items_created": created,
                "checklist_errors": len(errors),
            },
        ))

        await self.db.commit()

        project = await self.db.get(Project, project_id, populate_existing=True)

        if errors:
            logger.warning(
                f"Project {project_id} moved to {phase.value} with "
                f"{len(errors)} checklist insert failures"
            )
        else:
            logger.info(f"Project {project_id} moved to {phase.value}, {created} checklist items created")

        return PhaseTransitionResult(
            project=project,
            primary_updated=True,
            checklist_items_created=created,
            checklist_errors=errors,
        )

    async def _instantiate_checklist(self, project_id: int, phase: ProjectPhase):
        templates = await self.db.execute(
            select(ChecklistTemplate.id)
            .where(ChecklistTemplate.phase == phase, ChecklistTemplate.is_template.is_(True))
            .order_by(ChecklistTemplate.item_order, ChecklistTemplate.id)
        )
        template_ids = templates.scalars().all()

        created = 0
        errors: List[ChecklistItemError] = []

        for template_id in template_ids:
            try:
                async with self.db.begin_nested():
                    inserted = await insert_ignore(
                        self.db,
                        ChecklistProgress,
                        {
                            "project_id": project_id,
                            "checklist_item_id": template_id,
                            "completed": False,
                            "notes": "",
                        },
                        conflict_columns=["project_id", "checklist_item_id"],
                    )
                if inserted:
                    created += 1
            except Exception as e:
                logger.error(
                    f"Checklist item {template_id} for project {project_id} failed: {e}",
                    exc_info=True
                )
                errors.append(ChecklistItemError(checklist_item_id=template_id, error=str(e)))

        return created, errors


# ============================================================================
# Template seeding
# ============================================================================

DEFAULT_CHECKLIST_TEMPLATES: Dict[ProjectPhase, List[Dict[str, str]]] = {
    ProjectPhase.BUILD: [
        {"title": "Define MVP scope", "description": "List the features the first release must have"},
        {"title": "Set up repository and CI", "description": "Tests run on every push"},
        {"title": "Deploy a staging build", "description": "Reachable URL for early testers"},
        {"title": "Write landing page copy", "description": "Who it is for and why it matters"},
    ],
    ProjectPhase.LIVE: [
        {"title": "Configure uptime monitoring", "description": "Deploy URL probed by the health check"},
        {"title": "Announce launch", "description": "Post to the channels the target audience reads"},
        {"title": "Collect first user feedback", "description": "At least five conversations"},
        {"title": "Review metrics weekly", "description": "Signups, retention, revenue"},
    ],
}


async def seed_checklist_templates(
    db_session: AsyncSession,
    templates: Optional[Dict[ProjectPhase, List[Dict[str, str]]]] = None
) -> int:
    """
    Insert default checklist templates if the table is empty.

    Returns:
        Number of template rows inserted (0 when templates already exist)
    """
    existing = await db_session.scalar(select(func.count()).select_from(ChecklistTemplate))
    if existing:
        logger.info(f"Checklist templates already present ({existing}), skipping seed")
        return 0

    templates = templates or DEFAULT_CHECKLIST_TEMPLATES
    count = 0
    for phase, items in templates.items():
        for order, item in enumerate(items, start=1):
            db_session.add(ChecklistTemplate(
                phase=phase,
                item_order=order,
                title=item["title"],
                description=item.get("description", ""),
                is_template=True,
            ))
            count += 1

    await db_session.commit()
    logger.info(f"Seeded {count} checklist templates")
    return count
