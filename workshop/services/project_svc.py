from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, List, Optional

from ..db import get_conn, transaction
from ..errors import DatabaseError
from ..models import Category, Material, Project, Step
from ..repository import project_repo

logger = logging.getLogger(__name__)

ConnFactory = Callable[[], ContextManager[sqlite3.Connection]]


class ProjectService:
    """Top-level project operations.

    Every public call acquires one connection from `connect`, runs inside a
    single transaction and releases the connection before returning. SQL
    failures roll the transaction back and surface as DatabaseError.
    """

    def __init__(self, connect: ConnFactory = get_conn):
        self._connect = connect

    @contextmanager
    def _unit_of_work(self, what: str) -> Iterator[sqlite3.Connection]:
        try:
            with self._connect() as conn:
                with transaction(conn):
                    yield conn
        except DatabaseError:
            logger.exception("%s failed", what)
            raise
        except sqlite3.Error as e:
            logger.exception("%s failed", what)
            raise DatabaseError(f"{what}: {e}") from e

    def insert(self, project: Project) -> Project:
        with self._unit_of_work("insert project") as conn:
            project_id = project_repo.insert_project(conn, project)
        # only reached once the commit went through
        project.project_id = project_id
        logger.info("project %s created: %s", project_id, project.project_name)
        return project

    def fetch_by_id(self, project_id: int) -> Optional[Project]:
        with self._unit_of_work(f"fetch project {project_id}") as conn:
            project = project_repo.get_project(conn, project_id)
            if project is not None:
                project.materials.extend(project_repo.fetch_materials_for_project(conn, project_id))
                project.steps.extend(project_repo.fetch_steps_for_project(conn, project_id))
                project.categories.extend(project_repo.fetch_categories_for_project(conn, project_id))
        return project

    def fetch_all(self) -> List[Project]:
        with self._unit_of_work("fetch all projects") as conn:
            return project_repo.list_projects(conn)

    def add_step(self, project_id: int, step_text: str) -> Step:
        with self._unit_of_work(f"add step to project {project_id}") as conn:
            self._require_project(conn, project_id)
            order = project_repo.next_step_order(conn, project_id)
            step_id = project_repo.insert_step(conn, project_id, step_text, order)
        return Step(step_id=step_id, project_id=project_id, step_text=step_text, step_order=order)

    def add_material(self, project_id: int, material: Material) -> Material:
        with self._unit_of_work(f"add material to project {project_id}") as conn:
            self._require_project(conn, project_id)
            material_id = project_repo.insert_material(conn, project_id, material)
        material.material_id = material_id
        material.project_id = project_id
        return material

    def add_category(self, project_id: int, category_name: str) -> Category:
        """Link a category to a project, creating the category row on first use."""
        with self._unit_of_work(f"add category to project {project_id}") as conn:
            self._require_project(conn, project_id)
            category = project_repo.get_category_by_name(conn, category_name)
            if category is None:
                category = Category(
                    category_id=project_repo.insert_category(conn, category_name),
                    category_name=category_name,
                )
            project_repo.link_category(conn, project_id, category.category_id)
        return category

    def list_categories(self) -> List[Category]:
        with self._unit_of_work("list categories") as conn:
            return project_repo.list_categories(conn)

    @staticmethod
    def _require_project(conn: sqlite3.Connection, project_id: int) -> None:
        if project_repo.get_project(conn, project_id) is None:
            raise ValueError("project_not_found")
