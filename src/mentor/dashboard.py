"""Progress summaries for the console views."""
from typing import Optional

from mentor.db import store_connection
from mentor.models import Subscription


def get_progress_label(score: float) -> str:
    if score >= 100:
        return "COMPLETE"
    elif score >= 66:
        return "ON TRACK"
    elif score >= 33:
        return "IN PROGRESS"
    return "STARTING"


def get_progress_color(score: float) -> str:
    if score >= 100:
        return "green"
    elif score >= 66:
        return "cyan"
    elif score >= 33:
        return "yellow"
    return "red"


def progress_bar(score: float, width: int = 20) -> str:
    filled = max(0, min(width, int(score / 100 * width)))
    return "█" * filled + "░" * (width - filled)


def get_subject_progress(sub: Subscription) -> list[dict]:
    return [
        {
            "subject": plan.subject,
            "current_chapter": plan.current_chapter,
            "current_part": plan.current_part,
            "parts_done": plan.parts_done,
            "parts_needed": plan.parts_needed,
            "progress_percent": round(plan.progress_percent, 1),
            "is_finished": plan.is_finished,
        }
        for plan in sub.plans
    ]


def get_teacher_stats(db_path: str, teacher_id: Optional[str] = None) -> dict:
    """Counts and averages over active subscriptions, all teachers when teacher_id is None."""
    query = """SELECT COUNT(*) as students,
        COALESCE(SUM(total_classes), 0) as total,
        COALESCE(SUM(completed_classes), 0) as completed,
        AVG(progress_percent) as avg_progress
        FROM subscriptions WHERE status = 'active'"""
    params: tuple = ()
    if teacher_id is not None:
        query += " AND teacher_id = ?"
        params = (teacher_id,)
    with store_connection(db_path, "load teacher stats") as conn:
        row = conn.execute(query, params).fetchone()
    return {
        "students": row["students"],
        "total_classes": row["total"],
        "completed_classes": row["completed"],
        "avg_progress": round(row["avg_progress"], 1) if row["avg_progress"] else 0.0,
    }
