import pytest
from sqlalchemy import event

from relrepo.config import refresh_settings_cache
from relrepo.db import Database
from relrepo.models import blog, tasks
from relrepo.repositories import BlogRepositories, TaskRepository, TaskUserRepository

MEMORY_URL = "sqlite+pysqlite:///:memory:"


@pytest.fixture(autouse=True)
def _fresh_settings():
    refresh_settings_cache()
    yield
    refresh_settings_cache()


@pytest.fixture(scope="session")
def blog_registry():
    return blog.build_registry()


@pytest.fixture(scope="session")
def tasks_registry():
    return tasks.build_registry()


def _database(registry):
    db = Database(registry, MEMORY_URL)
    db.create_schema()
    return db


@pytest.fixture
def database(blog_registry):
    db = _database(blog_registry)
    try:
        yield db
    finally:
        db.dispose()


@pytest.fixture
def gateway(database):
    with database.gateway() as gw:
        yield gw


@pytest.fixture
def repos(gateway):
    return BlogRepositories.bind(gateway)


@pytest.fixture
def tasks_gateway(tasks_registry):
    db = _database(tasks_registry)
    try:
        with db.gateway() as gw:
            yield gw
    finally:
        db.dispose()


@pytest.fixture
def task_users(tasks_gateway):
    return TaskUserRepository(tasks_gateway)


@pytest.fixture
def task_rows(tasks_gateway):
    return TaskRepository(tasks_gateway)


@pytest.fixture
def statements(database):
    """Capture SQL statements issued against the test database."""
    captured = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        captured.append(statement)

    event.listen(database.engine, "before_cursor_execute", _record)
    try:
        yield captured
    finally:
        event.remove(database.engine, "before_cursor_execute", _record)
