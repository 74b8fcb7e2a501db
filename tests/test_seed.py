from mentor.db import init_db, get_connection
from mentor.seed import is_seeded, seed_all, seed_chapters, seed_holidays


def test_seed_chapters(tmp_db):
    init_db(tmp_db)
    seed_chapters(tmp_db)
    conn = get_connection(tmp_db)
    rows = conn.execute("SELECT * FROM chapters").fetchall()
    assert len(rows) > 20
    math5 = conn.execute("SELECT total_chapters FROM chapters WHERE class = 5 AND subject = 'Math'").fetchone()
    assert math5["total_chapters"] == 12
    conn.close()


def test_seed_has_no_class_5_science(tmp_db):
    init_db(tmp_db)
    seed_chapters(tmp_db)
    conn = get_connection(tmp_db)
    row = conn.execute("SELECT * FROM chapters WHERE class = 5 AND subject = 'Science'").fetchone()
    assert row is None
    conn.close()


def test_seed_holidays(tmp_db):
    init_db(tmp_db)
    seed_holidays(tmp_db)
    conn = get_connection(tmp_db)
    names = {r["name"] for r in conn.execute("SELECT name FROM holidays").fetchall()}
    assert "Victory Day" in names
    conn.close()


def test_is_seeded(tmp_db):
    init_db(tmp_db)
    assert not is_seeded(tmp_db)
    seed_chapters(tmp_db)
    assert is_seeded(tmp_db)


def test_seed_all_idempotent(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    conn = get_connection(tmp_db)
    first = conn.execute("SELECT COUNT(*) FROM chapters").fetchone()[0]
    conn.close()
    seed_all(tmp_db)  # second call should be no-op
    conn = get_connection(tmp_db)
    assert conn.execute("SELECT COUNT(*) FROM chapters").fetchone()[0] == first
    conn.close()
