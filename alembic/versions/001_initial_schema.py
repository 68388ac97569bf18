"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-02-10

projects.phase is created as free text here; 002 narrows it to build/live.
"""
from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _enum(name, *values):
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=True, length=32)


def upgrade():
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("description", sa.Text, server_default=""),
        sa.Column("status", _enum("project_status", "backlog", "in_progress", "blocked", "done"),
                  nullable=False, server_default="backlog"),
        sa.Column("phase", sa.String(32), nullable=False, server_default="build"),
        sa.Column("repo_url", sa.String(2048), server_default=""),
        sa.Column("deploy_url", sa.String(2048), server_default=""),
        sa.Column("test_count", sa.Integer, server_default="0"),
        sa.Column("build_status", _enum("build_status", "pass", "fail", "unknown"),
                  nullable=False, server_default="unknown"),
        sa.Column("last_deploy_time", sa.String(64), server_default=""),
        sa.Column("target_audience", sa.Text, server_default=""),
        sa.Column("action_plan", sa.Text, server_default=""),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        "ideas",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, server_default=""),
        sa.Column("source", sa.String(500), server_default=""),
        sa.Column("market_notes", sa.Text, server_default=""),
        sa.Column("effort_estimate", sa.String(32), server_default="unknown"),
        sa.Column("potential", sa.String(32), server_default="unknown"),
        sa.Column("status", _enum("idea_status", "new", "researching", "validated", "promoted", "rejected"),
                  nullable=False, server_default="new"),
        sa.Column("promoted_to_project_id", sa.Integer, sa.ForeignKey("projects.id"), nullable=True),
        sa.Column("tags", sa.JSON),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_ideas_created_at", "ideas", ["created_at"])

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer, sa.ForeignKey("projects.id"), nullable=True),
        sa.Column("title", sa.String(500), nullable=False, server_default=""),
        sa.Column("description", sa.Text, server_default=""),
        sa.Column("status", _enum("task_status", "backlog", "in_progress", "blocked", "done"),
                  nullable=False, server_default="backlog"),
        sa.Column("priority", _enum("task_priority", "critical", "high", "medium", "low"),
                  nullable=False, server_default="medium"),
        sa.Column("category", sa.String(100), server_default=""),
        sa.Column("blocker_reason", sa.Text, server_default=""),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_tasks_project_id", "tasks", ["project_id"])
    op.create_index("idx_task_project_status", "tasks", ["project_id", "status"])

    op.create_table(
        "phase_checklists",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("phase", _enum("checklist_phase", "build", "live"), nullable=False),
        sa.Column("item_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, server_default=""),
        sa.Column("is_template", sa.Boolean, nullable=False, server_default=sa.true()),
    )
    op.create_index("idx_checklist_phase_template", "phase_checklists", ["phase", "is_template"])

    op.create_table(
        "project_checklist_progress",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer, sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("checklist_item_id", sa.Integer, sa.ForeignKey("phase_checklists.id"), nullable=False),
        sa.Column("completed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime, nullable=True),
        sa.Column("notes", sa.Text, server_default=""),
        sa.UniqueConstraint("project_id", "checklist_item_id", name="uq_checklist_progress_item"),
    )
    op.create_index("ix_project_checklist_progress_project_id", "project_checklist_progress", ["project_id"])

    op.create_table(
        "activity",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer, sa.ForeignKey("projects.id"), nullable=True),
        sa.Column("type", sa.String(50), nullable=False, server_default="general"),
        sa.Column("title", sa.String(500), nullable=False, server_default=""),
        sa.Column("description", sa.Text, server_default=""),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_activity_project_id", "activity", ["project_id"])
    op.create_index("ix_activity_created_at", "activity", ["created_at"])
    op.create_index("idx_activity_project_created", "activity", ["project_id", "created_at"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("target_type", sa.String(50), nullable=False),
        sa.Column("target_id", sa.Integer, nullable=False),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("author", sa.String(100), nullable=False, server_default="Mr Z"),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_comments_is_read", "comments", ["is_read"])
    op.create_index("idx_comment_target", "comments", ["target_type", "target_id"])

    op.create_table(
        "stock_reports",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("ticker", sa.String(16), nullable=False),
        sa.Column("title", sa.String(500), nullable=False, server_default=""),
        sa.Column("content", sa.Text, nullable=False, server_default=""),
        sa.Column("report_type", sa.String(50), nullable=False, server_default="sun-tzu"),
        sa.Column("company_name", sa.String(200), server_default=""),
        sa.Column("related_tickers", sa.String(500), server_default=""),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_stock_reports_ticker", "stock_reports", ["ticker"])
    op.create_index("ix_stock_reports_created_at", "stock_reports", ["created_at"])

    op.create_table(
        "research_jobs",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("ticker", sa.String(16), nullable=False),
        sa.Column("status", _enum("research_job_status", "pending", "processing", "complete", "failed"),
                  nullable=False, server_default="pending"),
        sa.Column("progress", sa.Integer, nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("report_id", sa.Integer, sa.ForeignKey("stock_reports.id"), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
        sa.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_research_job_progress"),
    )
    op.create_index("ix_research_jobs_ticker", "research_jobs", ["ticker"])
    op.create_index("idx_research_job_ticker_status", "research_jobs", ["ticker", "status"])

    op.create_table(
        "watchlist",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("ticker", sa.String(16), nullable=False, unique=True),
        sa.Column("target_price", sa.Float, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("status", _enum("watchlist_status", "watching", "accumulating", "graduated"),
                  nullable=False, server_default="watching"),
        sa.Column("added_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        "portfolio_holdings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("ticker", sa.String(16), nullable=False, unique=True),
        sa.Column("target_allocation", sa.Float, nullable=False),
        sa.Column("cost_basis", sa.Float, nullable=True),
        sa.Column("shares", sa.Float, nullable=True),
        sa.Column("added_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        "portfolio_reports",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("summary", sa.Text, nullable=True),
        sa.Column("total_tickers", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_portfolio_reports_created_at", "portfolio_reports", ["created_at"])

    op.create_table(
        "themes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("description", sa.Text, server_default=""),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        "theme_stocks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("theme_id", sa.Integer, sa.ForeignKey("themes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ticker", sa.String(16), nullable=False),
        sa.Column("target_price", sa.Float, nullable=True),
        sa.Column("status", _enum("theme_stock_status", "watching", "accumulating", "holding"),
                  nullable=False, server_default="watching"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("added_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
        sa.UniqueConstraint("theme_id", "ticker", name="uq_theme_stock_ticker"),
    )

    op.create_table(
        "analysts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("firm", sa.String(200), nullable=False),
        sa.Column("specialty", sa.String(200), nullable=True),
        sa.Column("success_rate", sa.Float, nullable=True),
        sa.Column("avg_return", sa.Float, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )

    op.create_table(
        "analyst_calls",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("analyst_id", sa.Integer, sa.ForeignKey("analysts.id", ondelete="CASCADE"), nullable=True),
        sa.Column("ticker", sa.String(16), nullable=False),
        sa.Column("action", _enum("analyst_call_action", "buy", "sell", "hold", "upgrade", "downgrade"),
                  nullable=False),
        sa.Column("price_target", sa.Float, nullable=True),
        sa.Column("price_at_call", sa.Float, nullable=True),
        sa.Column("current_price", sa.Float, nullable=True),
        sa.Column("call_date", sa.String(32), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("outcome", _enum("analyst_call_outcome", "hit", "miss", "pending"), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_analyst_calls_analyst_id", "analyst_calls", ["analyst_id"])
    op.create_index("ix_analyst_calls_ticker", "analyst_calls", ["ticker"])

    op.create_table(
        "macro_insights",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("insights", sa.Text, nullable=False),
        sa.Column("indicator_snapshot", sa.JSON, nullable=True),
        sa.Column("generated_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_macro_insights_generated_at", "macro_insights", ["generated_at"])

    op.create_table(
        "health_checks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Integer, sa.ForeignKey("projects.id"), nullable=True),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("status_code", sa.Integer, nullable=False, server_default="0"),
        sa.Column("response_time_ms", sa.Integer, nullable=False, server_default="0"),
        sa.Column("checked_at", sa.DateTime, nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index("ix_health_checks_project_id", "health_checks", ["project_id"])


def downgrade():
    for table in (
        "health_checks", "macro_insights", "analyst_calls", "analysts",
        "theme_stocks", "themes", "portfolio_reports", "portfolio_holdings", "watchlist",
        "research_jobs", "stock_reports", "comments", "activity",
        "project_checklist_progress", "phase_checklists", "tasks", "ideas", "projects",
    ):
        op.drop_table(table)
