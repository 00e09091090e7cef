import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

# child tables first so foreign keys never block the wipe
_TABLES = [
    "project_category",
    "step",
    "material",
    "category",
    "project",
    "operation_log",
]


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "projects_test.db"
    # Point the package at this temp DB
    os.environ["WORKSHOP_DB_PATH"] = str(path)
    from workshop.db import init_schema
    from workshop.logs import ensure_log_schema
    init_schema(str(path))
    ensure_log_schema(str(path))
    return str(path)


@pytest.fixture()
def client(tmp_db_path):
    from fastapi.testclient import TestClient
    from workshop.api import app
    return TestClient(app)


@pytest.fixture()
def svc(tmp_db_path):
    from workshop.services.project_svc import ProjectService
    return ProjectService()


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Safety: only ever wipe the temp DB
    assert os.environ.get("WORKSHOP_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in _TABLES:
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    finally:
        conn.close()
    yield
