"""Subject plan advancement and the append-only progress ledger."""
import logging
import sqlite3
from datetime import datetime

from mentor.db import store_connection, write_transaction
from mentor.errors import NotFoundError, StorageError
from mentor.models import PARTS_PER_CHAPTER, ProgressEvent, percent

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


def advance(chapter: int, part: int) -> tuple[int, int]:
    """Next (chapter, part) after one class. Parts cycle 1..PARTS_PER_CHAPTER."""
    part += 1
    if part > PARTS_PER_CHAPTER:
        part = 1
        chapter += 1
    return chapter, part


def recompute_aggregate(conn: sqlite3.Connection, subscription_id: int) -> tuple[int, float]:
    """Rewrite completed_classes and progress_percent from the subject plans.

    Runs on the caller's connection so it joins the caller's transaction.
    Returns (completed_classes, progress_percent).
    """
    completed = conn.execute(
        "SELECT COALESCE(SUM(parts_done), 0) FROM subject_plans WHERE subscription_id = ?",
        (subscription_id,),
    ).fetchone()[0]
    total = conn.execute(
        "SELECT total_classes FROM subscriptions WHERE id = ?", (subscription_id,)
    ).fetchone()[0]
    progress = percent(completed, total or 0)
    conn.execute(
        """UPDATE subscriptions SET completed_classes = ?, progress_percent = ?, updated_at = ?
        WHERE id = ?""",
        (completed, progress, datetime.now().isoformat(), subscription_id),
    )
    return completed, progress


def complete_class(
    db_path: str,
    subscription_id: int,
    subject: str,
    teacher_id: str,
    notes: str = "",
) -> dict:
    """Record one taught class for a subject and move its pointer forward.

    The ledger entry keeps the chapter/part that was taught; the plan then
    holds the next one. Plan, ledger and subscription totals are written in
    a single transaction under the write lock.
    """
    try:
        with write_transaction(db_path) as conn:
            plan = conn.execute(
                """SELECT id, current_chapter, current_part, parts_done, parts_needed
                FROM subject_plans WHERE subscription_id = ? AND subject = ?""",
                (subscription_id, subject),
            ).fetchone()
            if plan is None:
                raise NotFoundError(
                    "Subject plan not found",
                    {"subscription_id": subscription_id, "subject": subject},
                )

            conn.execute(
                """INSERT INTO progress_events
                (subscription_id, subject_plan_id, subject, chapter, part, teacher_id, notes, completed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    subscription_id, plan["id"], subject, plan["current_chapter"],
                    plan["current_part"], teacher_id, notes, datetime.now().isoformat(),
                ),
            )

            new_chapter, new_part = advance(plan["current_chapter"], plan["current_part"])
            parts_done = plan["parts_done"] + 1
            conn.execute(
                """UPDATE subject_plans SET current_chapter = ?, current_part = ?, parts_done = ?
                WHERE id = ?""",
                (new_chapter, new_part, parts_done, plan["id"]),
            )

            completed, progress = recompute_aggregate(conn, subscription_id)
    except sqlite3.Error as e:
        raise StorageError(f"Could not record class: {e}") from e

    if parts_done > plan["parts_needed"]:
        logger.warning(
            "Subscription %s %s is past its plan: %d of %d parts done",
            subscription_id, subject, parts_done, plan["parts_needed"],
        )
    logger.info(
        "Class complete: subscription=%s subject=%s now at chapter %d part %d (%.1f%%)",
        subscription_id, subject, new_chapter, new_part, progress,
    )
    return {
        "subscription_id": subscription_id,
        "subject": subject,
        "new_chapter": new_chapter,
        "new_part": new_part,
        "parts_done": parts_done,
        "completed_total": completed,
        "progress_percent": progress,
    }


def get_progress_history(db_path: str, subscription_id: int, limit: int = HISTORY_LIMIT) -> list[ProgressEvent]:
    """Most recent ledger entries first, never more than HISTORY_LIMIT."""
    limit = max(0, min(limit, HISTORY_LIMIT))
    with store_connection(db_path, "load progress history") as conn:
        rows = conn.execute(
            """SELECT * FROM progress_events WHERE subscription_id = ?
            ORDER BY completed_at DESC, id DESC LIMIT ?""",
            (subscription_id, limit),
        ).fetchall()
    return [ProgressEvent.from_row(r) for r in rows]


def count_events(db_path: str, subscription_id: int) -> int:
    with store_connection(db_path, "count progress events") as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM progress_events WHERE subscription_id = ?", (subscription_id,)
        ).fetchone()[0]
