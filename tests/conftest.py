from collections.abc import Generator
from pathlib import Path

import pytest

from sqlkit import Database

here = Path(__file__).parent
root_path = here.parent


@pytest.fixture
def sqlite_db() -> Generator[Database, None, None]:
    """An in-memory SQLite database with an empty ``users`` table."""
    db = Database.open("sqlite3", ":memory:")
    db.exec(None, "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, email TEXT)")
    yield db
    db.close()
