"""Seed the database with the curriculum catalog and the holiday calendar."""
import json
from pathlib import Path
from mentor.db import store_connection

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the catalog has already been loaded."""
    with store_connection(db_path, "check seed state") as conn:
        count = conn.execute("SELECT COUNT(*) FROM chapters").fetchone()[0]
    return count > 0


def seed_chapters(db_path: str) -> None:
    """Insert chapter counts per class and subject from chapters.json."""
    data = json.loads((CONTENT_DIR / "chapters.json").read_text())
    with store_connection(db_path, "seed chapters") as conn:
        for entry in data["chapters"]:
            conn.execute(
                "INSERT OR IGNORE INTO chapters (class, subject, total_chapters) VALUES (?, ?, ?)",
                (entry["class"], entry["subject"], entry["total_chapters"]),
            )


def seed_holidays(db_path: str) -> None:
    """Insert the bundled holiday calendar from holidays.json."""
    data = json.loads((CONTENT_DIR / "holidays.json").read_text())
    with store_connection(db_path, "seed holidays") as conn:
        for holiday in data["holidays"]:
            conn.execute(
                "INSERT OR IGNORE INTO holidays (date, name) VALUES (?, ?)",
                (holiday["date"], holiday["name"]),
            )


def seed_all(db_path: str) -> None:
    """Run all seed functions in order."""
    if is_seeded(db_path):
        return
    seed_chapters(db_path)
    seed_holidays(db_path)
