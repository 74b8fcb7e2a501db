"""Curriculum catalog: chapter counts by class level and subject."""
import logging
import sqlite3
from typing import Optional

from mentor.db import get_connection, store_connection
from mentor.models import DEFAULT_CHAPTER_COUNT, ChapterEntry

logger = logging.getLogger(__name__)


def lookup(db_path: str, class_level: int, subject: str) -> tuple[int, bool]:
    """Exact-match lookup. Returns (chapter_count, found); a zero count is a miss."""
    conn = get_connection(db_path)
    try:
        row = conn.execute(
            "SELECT total_chapters FROM chapters WHERE class = ? AND subject = ?",
            (class_level, subject),
        ).fetchone()
    finally:
        conn.close()
    if row and row["total_chapters"]:
        return row["total_chapters"], True
    return 0, False


def lookup_case_insensitive(db_path: str, class_level: int, subject: str) -> tuple[int, bool]:
    conn = get_connection(db_path)
    try:
        row = conn.execute(
            "SELECT total_chapters FROM chapters WHERE class = ? AND LOWER(subject) = LOWER(?)",
            (class_level, subject),
        ).fetchone()
    finally:
        conn.close()
    if row and row["total_chapters"]:
        return row["total_chapters"], True
    return 0, False


def resolve_chapter_count(db_path: str, class_level: int, subject: str) -> int:
    """Chapter count for a subject, falling back to DEFAULT_CHAPTER_COUNT.

    Tries an exact match, then a case-insensitive match. A broken or missing
    catalog degrades to the default instead of failing the caller.
    """
    subject = subject.strip()
    try:
        count, found = lookup(db_path, class_level, subject)
        if not found:
            count, found = lookup_case_insensitive(db_path, class_level, subject)
    except sqlite3.Error as e:
        logger.warning(
            "Catalog lookup failed for class=%s subject=%r, using default %d: %s",
            class_level, subject, DEFAULT_CHAPTER_COUNT, e,
        )
        return DEFAULT_CHAPTER_COUNT
    if not found:
        logger.debug(
            "No catalog entry for class=%s subject=%r, using default %d",
            class_level, subject, DEFAULT_CHAPTER_COUNT,
        )
        return DEFAULT_CHAPTER_COUNT
    logger.debug("Catalog entry for class=%s subject=%r: %d chapters", class_level, subject, count)
    return count


def resolve_subjects(db_path: str, class_level: int, subjects: list[str]) -> tuple[int, dict[str, int]]:
    """Resolve every subject. Returns (total_classes, {subject: chapter_count})."""
    counts = {subject: resolve_chapter_count(db_path, class_level, subject) for subject in subjects}
    return sum(counts.values()), counts


def list_chapters(db_path: str, class_level: Optional[int] = None) -> list[ChapterEntry]:
    with store_connection(db_path, "list chapters") as conn:
        if class_level is None:
            rows = conn.execute(
                "SELECT class, subject, total_chapters FROM chapters ORDER BY class, subject"
            ).fetchall()
        else:
            rows = conn.execute(
                "SELECT class, subject, total_chapters FROM chapters WHERE class = ? ORDER BY subject",
                (class_level,),
            ).fetchall()
    return [ChapterEntry(r["class"], r["subject"], r["total_chapters"]) for r in rows]


def list_subjects(db_path: str, class_level: int) -> list[str]:
    with store_connection(db_path, "list subjects") as conn:
        rows = conn.execute(
            "SELECT DISTINCT subject FROM chapters WHERE class = ? ORDER BY subject", (class_level,)
        ).fetchall()
    return [r["subject"] for r in rows]


def upsert_chapter_count(db_path: str, class_level: int, subject: str, total_chapters: int) -> None:
    with store_connection(db_path, "save chapter count") as conn:
        conn.execute(
            """INSERT INTO chapters (class, subject, total_chapters) VALUES (?, ?, ?)
            ON CONFLICT(class, subject) DO UPDATE SET total_chapters=excluded.total_chapters""",
            (class_level, subject.strip(), total_chapters),
        )
