import os
_default_test_secret = "test-jwt-secret-for-pytest-only-0000000000000000"
if len(os.environ.get("JWT_SECRET", "")) < 32:
    os.environ["JWT_SECRET"] = _default_test_secret
os.environ.setdefault("ENV", "test")

import subprocess
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import make_url

REPO_ROOT = Path(__file__).resolve().parents[2]
_SQLITE_TEST_FILE = REPO_ROOT / "construction_test.db"

TEST_DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{_SQLITE_TEST_FILE}")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from app import database  # noqa: E402
from app.services import catalog_service, material_service, project_service, task_engine, user_service  # noqa: E402


def _ensure_database_exists(database_url: str) -> None:
    url = make_url(database_url)

    if url.drivername.startswith("sqlite"):
        # Fresh file per run; alembic recreates the schema
        if url.database and os.path.exists(url.database):
            os.remove(url.database)
        return

    if not url.drivername.startswith("postgresql"):
        return

    db_name = url.database
    admin_url = url.set(database="postgres")
    admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")

    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": db_name},
            ).scalar()
            if not exists:
                safe_db_name = db_name.replace('"', '""')
                conn.execute(text(f'CREATE DATABASE "{safe_db_name}"'))
    finally:
        admin_engine.dispose()


def _empty_all_tables() -> None:
    with database.engine.begin() as conn:
        table_names = [
            name for name in inspect(conn).get_table_names() if name != "alembic_version"
        ]
        if not table_names:
            return

        if conn.dialect.name == "postgresql":
            quoted = ", ".join([f'"public"."{name}"' for name in table_names])
            conn.execute(text(f"TRUNCATE TABLE {quoted} RESTART IDENTITY CASCADE"))
            return

        for name in table_names:
            conn.execute(text(f'DELETE FROM "{name}"'))


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database() -> None:
    _ensure_database_exists(TEST_DATABASE_URL)

    env = os.environ.copy()
    env["DATABASE_URL"] = TEST_DATABASE_URL

    subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        check=True,
        cwd=REPO_ROOT,
        env=env,
    )

    database.configure_database()


@pytest.fixture(scope="function", autouse=True)
def _truncate_tables_between_tests():
    _empty_all_tables()
    yield
    _empty_all_tables()


@pytest.fixture
def make_user():
    counter = {"n": 0}

    def _make(full_name: str = "Site Engineer", email=None):
        counter["n"] += 1
        return user_service.create_user(
            full_name=full_name,
            email=email or f"user{counter['n']}@example.com",
        )

    return _make


@pytest.fixture
def make_project():
    def _make(name: str = "Riverside Tower", total_budget="1000.00", **kwargs):
        return project_service.create_project(name=name, total_budget=total_budget, **kwargs)

    return _make


@pytest.fixture
def make_task():
    def _make(project_id: int, title: str = "Foundations", **kwargs):
        return task_engine.create_task(project_id, title=title, **kwargs)

    return _make


@pytest.fixture
def make_service():
    counter = {"n": 0}

    def _make(name=None, labor="0", material="0", equipment="0", unit="m2"):
        counter["n"] += 1
        return catalog_service.create_service(
            name=name or f"Service {counter['n']}",
            unit_of_measurement=unit,
            unit_labor_cost=labor,
            unit_material_cost=material,
            unit_equipment_cost=equipment,
        )

    return _make


@pytest.fixture
def make_material():
    counter = {"n": 0}

    def _make(name=None, stock="0", minimum="0", price="10.00", unit="bag"):
        counter["n"] += 1
        return material_service.create_material(
            name=name or f"Material {counter['n']}",
            unit_of_measure=unit,
            unit_price=price,
            current_stock=stock,
            minimum_stock=minimum,
        )

    return _make
