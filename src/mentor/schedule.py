"""Daily and weekly session lookup for a teacher, plus the holiday registry.

Schedule days are stored per subscription as a list of tokens. Older
records use a single-digit code per weekday, newer ones the three-letter
English name. Both forms are live in the same table, so a subscription
counts as scheduled when either its name token or its code token matches.
"""
import logging
from datetime import date, datetime
from typing import Optional

from mentor.db import store_connection
from mentor.models import Holiday, Subscription
from mentor.subscriptions import list_subscriptions

logger = logging.getLogger(__name__)

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")  # date.weekday() order

# Legacy day codes. Not ISO: the week starts on Saturday.
DAY_CODES = {
    "Sat": "1",
    "Sun": "2",
    "Mon": "3",
    "Tue": "4",
    "Wed": "5",
    "Thu": "6",
    "Fri": "7",
}


def day_name(day: date) -> str:
    return DAY_NAMES[day.weekday()]


def day_code(day: date) -> str:
    return DAY_CODES[day_name(day)]


def is_scheduled_on(schedule_days: list[str], day: date) -> bool:
    """True when the tokens hold the day's name or the day's legacy code."""
    tokens = {str(t).strip() for t in schedule_days}
    name_match = day_name(day).lower() in {t.lower() for t in tokens}
    code_match = day_code(day) in tokens
    return name_match or code_match


def get_holiday(db_path: str, day: date) -> Optional[str]:
    with store_connection(db_path, "look up holiday") as conn:
        row = conn.execute("SELECT name FROM holidays WHERE date = ?", (day.isoformat(),)).fetchone()
    return row["name"] if row else None


def add_holiday(db_path: str, day: date, name: str) -> None:
    with store_connection(db_path, "save holiday") as conn:
        conn.execute(
            "INSERT INTO holidays (date, name) VALUES (?, ?) ON CONFLICT(date) DO UPDATE SET name=excluded.name",
            (day.isoformat(), name),
        )


def remove_holiday(db_path: str, day: date) -> bool:
    with store_connection(db_path, "remove holiday") as conn:
        cursor = conn.execute("DELETE FROM holidays WHERE date = ?", (day.isoformat(),))
    return cursor.rowcount > 0


def list_holidays(db_path: str, year: Optional[int] = None) -> list[Holiday]:
    with store_connection(db_path, "list holidays") as conn:
        if year is None:
            rows = conn.execute("SELECT date, name FROM holidays ORDER BY date").fetchall()
        else:
            rows = conn.execute(
                "SELECT date, name FROM holidays WHERE date LIKE ? ORDER BY date", (f"{year}-%",)
            ).fetchall()
    return [Holiday(date=r["date"], name=r["name"]) for r in rows]


def time_sort_key(value: str) -> tuple:
    """Order "9:00" before "16:00"; blank or unreadable times go last."""
    try:
        parsed = datetime.strptime((value or "").strip(), "%H:%M").time()
    except ValueError:
        return (1, value or "")
    return (0, parsed)


def _session(sub: Subscription) -> dict:
    return {
        "subscription_id": sub.id,
        "student_name": sub.student_name,
        "class_level": sub.class_level,
        "subjects": list(sub.subjects),
        "schedule_days": list(sub.schedule_days),
        "time": sub.time,
        "completed_classes": sub.completed_classes,
        "total_classes": sub.total_classes,
        "progress_percent": sub.progress_percent,
        "subject_progress": [
            {
                "subject": plan.subject,
                "current_chapter": plan.current_chapter,
                "current_part": plan.current_part,
            }
            for plan in sub.plans
        ],
    }


def today_sessions(db_path: str, teacher_id: str, today: Optional[date] = None) -> dict:
    """Sessions a teacher has today, earliest first.

    On a holiday the session list is empty and day matching is skipped.
    """
    today = today or date.today()
    result = {
        "date": today.isoformat(),
        "today": day_name(today),
        "today_code": day_code(today),
        "is_holiday": False,
        "holiday_name": None,
        "sessions": [],
    }
    holiday = get_holiday(db_path, today)
    if holiday is not None:
        logger.info("%s is a holiday (%s), no sessions for teacher %s", today, holiday, teacher_id)
        result["is_holiday"] = True
        result["holiday_name"] = holiday
        return result

    matching = [
        sub for sub in list_subscriptions(db_path, teacher_id=teacher_id)
        if is_scheduled_on(sub.schedule_days, today)
    ]
    matching.sort(key=lambda sub: time_sort_key(sub.time))
    result["sessions"] = [_session(sub) for sub in matching]
    return result


def weekly_schedule(db_path: str, teacher_id: str) -> list[dict]:
    """Every active subscription of a teacher, earliest time first."""
    subs = sorted(
        list_subscriptions(db_path, teacher_id=teacher_id), key=lambda sub: time_sort_key(sub.time)
    )
    return [_session(sub) for sub in subs]


def teacher_students(db_path: str, teacher_id: str) -> list[dict]:
    return [
        {
            "subscription_id": sub.id,
            "name": sub.student_name,
            "class_level": sub.class_level,
            "subjects": list(sub.subjects),
            "time": sub.time,
        }
        for sub in list_subscriptions(db_path, teacher_id=teacher_id)
    ]
