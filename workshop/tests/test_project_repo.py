"""
Repository tests: per-entity reads and writes against an open connection.
"""
from decimal import Decimal

import pytest

from workshop.db import get_conn
from workshop.errors import DatabaseError
from workshop.models import Category, Material, Project, Step, extract
from workshop.repository import project_repo


class TestProjectRepo:

    @pytest.fixture(autouse=True)
    def _seed(self, _clean_db):
        with get_conn() as conn:
            conn.execute(
                "INSERT INTO project (project_id, project_name, estimated_hours, difficulty) "
                "VALUES (1, 'Bookshelf', 6.5, 2)"
            )
            conn.execute("INSERT INTO project (project_id, project_name) VALUES (2, 'Birdhouse')")
            conn.execute("INSERT INTO step (project_id, step_text, step_order) VALUES (1, 'Sand', 2)")
            conn.execute("INSERT INTO step (project_id, step_text, step_order) VALUES (1, 'Cut boards', 1)")
            conn.execute("INSERT INTO step (project_id, step_text, step_order) VALUES (2, 'Drill hole', 1)")
            conn.execute(
                "INSERT INTO material (project_id, material_name, num_required, cost) "
                "VALUES (1, 'Pine board', 4, 12.25)"
            )
            conn.execute("INSERT INTO material (project_id, material_name, num_required) VALUES (2, 'Cedar', 1)")
            conn.execute("INSERT INTO category (category_id, category_name) VALUES (1, 'Woodwork')")
            conn.execute("INSERT INTO category (category_id, category_name) VALUES (2, 'Garden')")
            conn.execute("INSERT INTO category (category_id, category_name) VALUES (3, 'Indoor')")
            conn.execute("INSERT INTO project_category (project_id, category_id) VALUES (1, 1)")
            conn.execute("INSERT INTO project_category (project_id, category_id) VALUES (1, 3)")
            conn.execute("INSERT INTO project_category (project_id, category_id) VALUES (2, 2)")

    def test_get_project(self):
        with get_conn() as conn:
            project = project_repo.get_project(conn, 1)
        assert project.project_name == "Bookshelf"
        assert project.estimated_hours == Decimal("6.5")
        assert isinstance(project.estimated_hours, Decimal)
        assert project.actual_hours is None
        assert project.difficulty == 2
        assert project.steps == [] and project.materials == [] and project.categories == []

    def test_get_project_missing(self):
        with get_conn() as conn:
            assert project_repo.get_project(conn, 999) is None

    def test_list_projects_ordered_by_name(self):
        with get_conn() as conn:
            names = [p.project_name for p in project_repo.list_projects(conn)]
        assert names == ["Birdhouse", "Bookshelf"]

    def test_steps_scoped_and_ordered(self):
        with get_conn() as conn:
            steps = project_repo.fetch_steps_for_project(conn, 1)
        assert [s.step_text for s in steps] == ["Cut boards", "Sand"]
        assert all(s.project_id == 1 for s in steps)

    def test_materials_scoped(self):
        with get_conn() as conn:
            materials = project_repo.fetch_materials_for_project(conn, 1)
        assert len(materials) == 1
        assert materials[0].material_name == "Pine board"
        assert materials[0].num_required == 4
        assert materials[0].cost == Decimal("12.25")

    def test_categories_via_join(self):
        with get_conn() as conn:
            cats = project_repo.fetch_categories_for_project(conn, 1)
        assert [c.category_name for c in cats] == ["Indoor", "Woodwork"]

    def test_child_fetch_wraps_sql_errors(self):
        with get_conn() as conn:
            conn.execute("ALTER TABLE step RENAME TO step_old")
            try:
                with pytest.raises(DatabaseError) as exc:
                    project_repo.fetch_steps_for_project(conn, 1)
                assert exc.value.__cause__ is not None
            finally:
                conn.execute("ALTER TABLE step_old RENAME TO step")

    def test_insert_project_returns_generated_id(self):
        with get_conn() as conn:
            new_id = project_repo.insert_project(conn, Project(project_name="Workbench", difficulty=4))
            row = conn.execute("SELECT * FROM project WHERE project_id=?", (new_id,)).fetchone()
        assert new_id > 2
        assert row["project_name"] == "Workbench"

    def test_next_step_order(self):
        with get_conn() as conn:
            assert project_repo.next_step_order(conn, 1) == 3
            assert project_repo.next_step_order(conn, 2) == 2
            new_id = project_repo.insert_project(conn, Project(project_name="Empty"))
            assert project_repo.next_step_order(conn, new_id) == 1

    def test_category_by_name_and_link(self):
        with get_conn() as conn:
            garden = project_repo.get_category_by_name(conn, "Garden")
            assert garden == Category(category_id=2, category_name="Garden")
            assert project_repo.get_category_by_name(conn, "Plumbing") is None
            project_repo.link_category(conn, 1, garden.category_id)
            # linking twice is a no-op
            project_repo.link_category(conn, 1, garden.category_id)
            cats = project_repo.fetch_categories_for_project(conn, 1)
        assert [c.category_name for c in cats] == ["Garden", "Indoor", "Woodwork"]


def test_extract_ignores_unknown_columns():
    with get_conn() as conn:
        row = conn.execute(
            "SELECT 7 AS step_id, 1 AS project_id, 'Glue' AS step_text, 3 AS step_order, 'x' AS extra"
        ).fetchone()
    step = extract(row, Step)
    assert step == Step(step_id=7, project_id=1, step_text="Glue", step_order=3)


def test_insert_material_roundtrips_decimal_cost():
    with get_conn() as conn:
        pid = project_repo.insert_project(conn, Project(project_name="Planter"))
        project_repo.insert_material(
            conn, pid, Material(material_name="Screws", num_required=20, cost=Decimal("3.10"))
        )
        (m,) = project_repo.fetch_materials_for_project(conn, pid)
    assert m.cost == Decimal("3.10")
    assert m.project_id == pid
