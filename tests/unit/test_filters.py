"""
Unit tests for the structured query filter builder
"""

from datetime import datetime
from sqlalchemy import select
from sqlalchemy.dialects import sqlite
from models.activity import Activity
from models.project import Project
from services.filters import QueryFilter


def compiled(query) -> str:
    return str(query.compile(dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}))


class TestQueryFilter:

    def test_none_values_are_ignored(self):
        filters = (
            QueryFilter(Activity)
            .equals(Activity.project_id, None)
            .since(Activity.created_at, None)
            .until(Activity.created_at, None)
            .contains([Activity.title], "")
            .one_of(Activity.type, None)
        )

        assert filters.predicates == []
        assert "WHERE" not in compiled(filters.apply(select(Activity)))

    def test_predicates_are_and_ed(self):
        filters = (
            QueryFilter(Activity)
            .equals(Activity.project_id, 7)
            .since(Activity.created_at, datetime(2026, 1, 1))
        )
        sql = str(filters.apply(select(Activity)).compile(dialect=sqlite.dialect()))

        assert filters.applied == ["project_id", "created_at>="]
        assert "activity.project_id = ?" in sql
        assert "activity.created_at >= " in sql
        assert " AND " in sql

    def test_contains_ors_columns(self):
        filters = QueryFilter(Project).contains([Project.name, Project.description], "api")
        sql = compiled(filters.apply(select(Project)))

        assert "projects.name LIKE '%api%' OR projects.description LIKE '%api%'" in sql

    def test_values_are_bound_not_interpolated(self):
        filters = QueryFilter(Project).equals(Project.name, "x'; DROP TABLE projects; --")
        query = filters.apply(select(Project))

        assert "DROP TABLE" not in str(query.compile(dialect=sqlite.dialect()))

    def test_one_of_skips_empty(self):
        assert QueryFilter().one_of(Activity.type, []).predicates == []
        assert QueryFilter().one_of(Activity.type, ["promotion"]).applied == ["type in"]

    def test_order_and_limit(self):
        filters = QueryFilter(Activity).order_by(Activity.created_at.desc()).limit(5)
        sql = compiled(filters.apply(select(Activity)))

        assert "ORDER BY activity.created_at DESC" in sql
        assert "LIMIT 5" in sql
