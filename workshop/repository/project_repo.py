"""
Project data access: one function per statement, all taking an open connection.

Child reads are always scoped to a single project_id. sqlite3 errors raised
by the child reads are wrapped as DatabaseError; the caller owns the
transaction and decides whether to roll back.
"""
from __future__ import annotations

from decimal import Decimal
from sqlite3 import Connection, Error as SqliteError
from typing import Any, List, Optional

from ..db import last_insert_id
from ..errors import DatabaseError
from ..models import Category, Material, Project, Step, extract

PROJECT_TABLE = "project"
STEP_TABLE = "step"
MATERIAL_TABLE = "material"
CATEGORY_TABLE = "category"
PROJECT_CATEGORY_TABLE = "project_category"


def _num(value: Any) -> Any:
    # DECIMAL columns have NUMERIC affinity, so the text form is stored as a number
    return str(value) if isinstance(value, Decimal) else value


def insert_project(conn: Connection, project: Project) -> int:
    conn.execute(
        f"INSERT INTO {PROJECT_TABLE}(project_name, estimated_hours, actual_hours, difficulty, notes) "
        "VALUES(?,?,?,?,?)",
        (
            project.project_name,
            _num(project.estimated_hours),
            _num(project.actual_hours),
            project.difficulty,
            project.notes,
        ),
    )
    return last_insert_id(conn, PROJECT_TABLE)


def get_project(conn: Connection, project_id: int) -> Optional[Project]:
    row = conn.execute(
        f"SELECT * FROM {PROJECT_TABLE} WHERE project_id = ?", (project_id,)
    ).fetchone()
    return extract(row, Project) if row else None


def list_projects(conn: Connection) -> List[Project]:
    rows = conn.execute(f"SELECT * FROM {PROJECT_TABLE} ORDER BY project_name").fetchall()
    return [extract(r, Project) for r in rows]


def fetch_materials_for_project(conn: Connection, project_id: int) -> List[Material]:
    try:
        rows = conn.execute(
            f"SELECT * FROM {MATERIAL_TABLE} WHERE project_id = ? ORDER BY material_id",
            (project_id,),
        ).fetchall()
    except SqliteError as e:
        raise DatabaseError(f"fetch materials for project {project_id}: {e}") from e
    return [extract(r, Material) for r in rows]


def fetch_steps_for_project(conn: Connection, project_id: int) -> List[Step]:
    try:
        rows = conn.execute(
            f"SELECT * FROM {STEP_TABLE} WHERE project_id = ? ORDER BY step_order, step_id",
            (project_id,),
        ).fetchall()
    except SqliteError as e:
        raise DatabaseError(f"fetch steps for project {project_id}: {e}") from e
    return [extract(r, Step) for r in rows]


def fetch_categories_for_project(conn: Connection, project_id: int) -> List[Category]:
    try:
        rows = conn.execute(
            f"SELECT c.* FROM {CATEGORY_TABLE} c "
            f"JOIN {PROJECT_CATEGORY_TABLE} pc USING (category_id) "
            "WHERE pc.project_id = ? ORDER BY c.category_name",
            (project_id,),
        ).fetchall()
    except SqliteError as e:
        raise DatabaseError(f"fetch categories for project {project_id}: {e}") from e
    return [extract(r, Category) for r in rows]


def next_step_order(conn: Connection, project_id: int) -> int:
    row = conn.execute(
        f"SELECT COALESCE(MAX(step_order), 0) AS m FROM {STEP_TABLE} WHERE project_id = ?",
        (project_id,),
    ).fetchone()
    return int(row["m"]) + 1


def insert_step(conn: Connection, project_id: int, step_text: str, step_order: int) -> int:
    conn.execute(
        f"INSERT INTO {STEP_TABLE}(project_id, step_text, step_order) VALUES(?,?,?)",
        (project_id, step_text, step_order),
    )
    return last_insert_id(conn, STEP_TABLE)


def insert_material(conn: Connection, project_id: int, material: Material) -> int:
    conn.execute(
        f"INSERT INTO {MATERIAL_TABLE}(project_id, material_name, num_required, cost) VALUES(?,?,?,?)",
        (project_id, material.material_name, material.num_required, _num(material.cost)),
    )
    return last_insert_id(conn, MATERIAL_TABLE)


def get_category_by_name(conn: Connection, category_name: str) -> Optional[Category]:
    row = conn.execute(
        f"SELECT * FROM {CATEGORY_TABLE} WHERE category_name = ?", (category_name,)
    ).fetchone()
    return extract(row, Category) if row else None


def insert_category(conn: Connection, category_name: str) -> int:
    conn.execute(f"INSERT INTO {CATEGORY_TABLE}(category_name) VALUES(?)", (category_name,))
    return last_insert_id(conn, CATEGORY_TABLE)


def link_category(conn: Connection, project_id: int, category_id: int) -> None:
    conn.execute(
        f"INSERT OR IGNORE INTO {PROJECT_CATEGORY_TABLE}(project_id, category_id) VALUES(?,?)",
        (project_id, category_id),
    )


def list_categories(conn: Connection) -> List[Category]:
    rows = conn.execute(f"SELECT * FROM {CATEGORY_TABLE} ORDER BY category_name").fetchall()
    return [extract(r, Category) for r in rows]
