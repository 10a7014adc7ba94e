import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from api import create_app
from config import Settings
from database import connect
from library import Library

BOOKS_DDL = """
    CREATE TABLE IF NOT EXISTS books (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        isbn TEXT NOT NULL,
        title TEXT NOT NULL,
        author TEXT NOT NULL,
        publisher TEXT NOT NULL,
        created_at TIMESTAMP NOT NULL
    )
"""


@pytest.fixture
def settings(tmp_path, request):
    # Each test gets its own SQLite file standing in for the provisioned database
    db_file = tmp_path / f"books_{request.node.name}.db"
    return Settings(database_url=f"sqlite:///{db_file}", dist_dir=str(tmp_path / "dist"))


@pytest.fixture
def engine(settings):
    engine = connect(settings)
    with engine.begin() as conn:
        conn.execute(text(BOOKS_DDL))
    yield engine
    engine.dispose()


@pytest.fixture
def lib(engine):
    return Library(engine)


@pytest.fixture
def client(settings, engine):
    app = create_app(settings, engine)
    return TestClient(app)
