import pytest

from mentor.db import init_db
from mentor.seed import seed_all


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_mentor.db")
    return db_path


@pytest.fixture
def seeded_db(tmp_db):
    """Initialized database with the bundled catalog and holidays loaded."""
    init_db(tmp_db)
    seed_all(tmp_db)
    return tmp_db
