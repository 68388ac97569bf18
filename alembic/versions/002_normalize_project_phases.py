"""normalize project phases to build/live

Revision ID: 002
Revises: 001
Create Date: 2026-03-02

launch, grow, iterate and maintain become live; anything else becomes build.
The projects table is then rebuilt with a CHECK constraint so no other value
can be written. On SQLite the rebuild runs with foreign keys off, since
tasks, activity and checklist progress all reference projects.
"""
from alembic import op
import sqlalchemy as sa

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None

LEGACY_LIVE_PHASES = ("launch", "grow", "iterate", "maintain")
PHASES = ("build", "live")

projects = sa.table("projects", sa.column("phase", sa.String))


def upgrade():
    bind = op.get_bind()
    sqlite = bind.dialect.name == "sqlite"

    if sqlite:
        # Must run before the first DML statement opens a transaction
        op.execute("PRAGMA foreign_keys=OFF")

    op.execute(
        projects.update()
        .where(projects.c.phase.in_(LEGACY_LIVE_PHASES))
        .values(phase="live")
    )
    op.execute(
        projects.update()
        .where(sa.or_(projects.c.phase.is_(None), projects.c.phase.not_in(PHASES)))
        .values(phase="build")
    )

    with op.batch_alter_table("projects", recreate="always" if sqlite else "auto") as batch:
        batch.create_check_constraint("project_phase", "phase IN ('build', 'live')")

    if sqlite:
        op.execute("PRAGMA foreign_keys=ON")


def downgrade():
    bind = op.get_bind()
    sqlite = bind.dialect.name == "sqlite"

    # Legacy phase values are not restored
    with op.batch_alter_table("projects", recreate="always" if sqlite else "auto") as batch:
        batch.drop_constraint("project_phase", type_="check")
