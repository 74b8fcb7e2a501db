"""Subscription lifecycle: create, read, update and delete tutoring records.

A subscription owns one subject plan per subject. Its total_classes comes
from the curriculum catalog and is recomputed from scratch whenever the
class level or the subject list changes. completed_classes and
progress_percent always follow the plans (see progress.recompute_aggregate).
"""
import json
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from mentor.catalog import resolve_subjects
from mentor.db import store_connection, write_transaction
from mentor.errors import NotFoundError, StorageError, ValidationError
from mentor.models import STATUS_ACTIVE, STATUSES, SubjectPlan, Subscription
from mentor.progress import recompute_aggregate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("student_name", "class_level", "subjects", "teacher_id")

# Plain columns that update_subscription copies through unchanged.
_SIMPLE_COLUMNS = (
    "student_name", "student_phone", "guardian_name", "guardian_phone",
    "teacher_id", "amount", "billing_date",
)


def clean_list(values) -> list[str]:
    """Strip entries and drop blanks, keeping order and first occurrence."""
    seen = []
    for value in values or []:
        value = str(value).strip()
        if value and value not in seen:
            seen.append(value)
    return seen


def normalize_time(value: str) -> str:
    """Zero-padded 24-hour "HH:MM", so "9:5" and "09:05" store alike. Blank stays blank."""
    value = (value or "").strip()
    if not value:
        return ""
    try:
        return datetime.strptime(value, "%H:%M").strftime("%H:%M")
    except ValueError:
        raise ValidationError(f"Time must be HH:MM, got {value!r}", ["time"]) from None


def _validate_status(status: str) -> str:
    if status not in STATUSES:
        raise ValidationError(f"Unknown status {status!r}", ["status"])
    return status


def _load_plans(conn: sqlite3.Connection, subscription_id: int) -> list[SubjectPlan]:
    rows = conn.execute(
        "SELECT * FROM subject_plans WHERE subscription_id = ? ORDER BY id", (subscription_id,)
    ).fetchall()
    return [SubjectPlan.from_row(r) for r in rows]


def create_subscription(
    db_path: str,
    student_name: str = "",
    class_level: int = 0,
    subjects: Optional[list[str]] = None,
    teacher_id: str = "",
    schedule_days: Optional[list[str]] = None,
    time: str = "",
    student_phone: str = "",
    guardian_name: str = "",
    guardian_phone: str = "",
    days_per_week: int = 0,
    amount: float = 0.0,
    billing_date: int = 1,
) -> Subscription:
    """Create a subscription and one subject plan per subject.

    Raises:
        ValidationError: student_name, class_level, subjects or teacher_id
            missing, or time not in HH:MM form.
        StorageError: the insert failed; nothing is written.
    """
    subjects = clean_list(subjects)
    schedule_days = clean_list(schedule_days)
    provided = {
        "student_name": (student_name or "").strip(),
        "class_level": class_level,
        "subjects": subjects,
        "teacher_id": (teacher_id or "").strip(),
    }
    missing = [name for name in REQUIRED_FIELDS if not provided[name]]
    if missing:
        raise ValidationError("Missing required fields: " + ", ".join(missing), missing)
    time = normalize_time(time)

    if not days_per_week and schedule_days:
        days_per_week = len(schedule_days)

    total_classes, counts = resolve_subjects(db_path, class_level, subjects)
    now = datetime.now().isoformat()
    try:
        with write_transaction(db_path) as conn:
            cursor = conn.execute(
                """INSERT INTO subscriptions
                (student_name, student_phone, guardian_name, guardian_phone, class, subjects,
                 teacher_id, days_per_week, schedule_days, time, amount, billing_date,
                 status, total_classes, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    provided["student_name"], student_phone, guardian_name, guardian_phone,
                    class_level, json.dumps(subjects), provided["teacher_id"], days_per_week,
                    json.dumps(schedule_days), time, amount, billing_date,
                    STATUS_ACTIVE, total_classes, now, now,
                ),
            )
            subscription_id = cursor.lastrowid
            for subject in subjects:
                conn.execute(
                    "INSERT INTO subject_plans (subscription_id, subject, parts_needed) VALUES (?, ?, ?)",
                    (subscription_id, subject, counts[subject]),
                )
    except sqlite3.Error as e:
        raise StorageError(f"Could not create subscription: {e}") from e

    logger.info(
        "Created subscription %s for %s (class %s, %s): %d classes",
        subscription_id, provided["student_name"], class_level, ", ".join(subjects), total_classes,
    )
    return get_subscription(db_path, subscription_id)


def get_subscription(db_path: str, subscription_id: int) -> Subscription:
    with store_connection(db_path, "load subscription") as conn:
        row = conn.execute("SELECT * FROM subscriptions WHERE id = ?", (subscription_id,)).fetchone()
        if row is None:
            raise NotFoundError("Subscription not found", {"subscription_id": subscription_id})
        return Subscription.from_row(row, _load_plans(conn, subscription_id))


def list_subscriptions(
    db_path: str,
    teacher_id: Optional[str] = None,
    status: Optional[str] = STATUS_ACTIVE,
) -> list[Subscription]:
    """Subscriptions newest first, optionally filtered by teacher and status."""
    query = "SELECT * FROM subscriptions WHERE 1 = 1"
    params: list = []
    if status is not None:
        query += " AND status = ?"
        params.append(status)
    if teacher_id is not None:
        query += " AND teacher_id = ?"
        params.append(teacher_id)
    query += " ORDER BY created_at DESC, id DESC"
    with store_connection(db_path, "list subscriptions") as conn:
        rows = conn.execute(query, params).fetchall()
        return [Subscription.from_row(r, _load_plans(conn, r["id"])) for r in rows]


def _reconcile_plans(
    conn: sqlite3.Connection,
    subscription_id: int,
    subjects: list[str],
    counts: dict[str, int],
) -> None:
    """Match plans to a new subject list.

    Kept subjects retain their pointer and parts_done with a refreshed
    parts_needed. Dropped subjects lose their plan; their ledger rows stay
    with subject_plan_id cleared. New subjects start a fresh plan.
    """
    existing = {p.subject: p for p in _load_plans(conn, subscription_id)}
    for subject, plan in existing.items():
        if subject not in counts:
            conn.execute("DELETE FROM subject_plans WHERE id = ?", (plan.id,))
            logger.info("Subscription %s: dropped plan for %s (%d parts done)",
                        subscription_id, subject, plan.parts_done)
    for subject in subjects:
        if subject in existing:
            conn.execute(
                "UPDATE subject_plans SET parts_needed = ? WHERE id = ?",
                (counts[subject], existing[subject].id),
            )
        else:
            conn.execute(
                "INSERT INTO subject_plans (subscription_id, subject, parts_needed) VALUES (?, ?, ?)",
                (subscription_id, subject, counts[subject]),
            )


def update_subscription(db_path: str, subscription_id: int, **changes) -> Subscription:
    """Apply a partial update.

    Accepted keys: the creation fields plus ``status``. Changing class_level
    or subjects recomputes total_classes from the catalog and reconciles the
    subject plans; the aggregate is recomputed either way.

    class_level and days_per_week must be at least 1 when given; time is
    normalized to HH:MM. Anything else raises ValidationError.
    """
    unknown = set(changes) - set(_SIMPLE_COLUMNS) - {
        "class_level", "subjects", "schedule_days", "days_per_week", "time", "status",
    }
    if unknown:
        raise ValidationError("Unknown fields: " + ", ".join(sorted(unknown)), sorted(unknown))
    if "status" in changes:
        changes["status"] = _validate_status(changes["status"] or STATUS_ACTIVE)
    for name in ("student_name", "teacher_id"):
        if name in changes and not (changes[name] or "").strip():
            raise ValidationError(f"{name} cannot be empty", [name])
    for name in ("class_level", "days_per_week"):
        if name in changes and (changes[name] or 0) < 1:
            raise ValidationError(f"{name} must be a positive number", [name])
    if "time" in changes:
        changes["time"] = normalize_time(changes["time"])

    try:
        with write_transaction(db_path) as conn:
            row = conn.execute("SELECT * FROM subscriptions WHERE id = ?", (subscription_id,)).fetchone()
            if row is None:
                raise NotFoundError("Subscription not found", {"subscription_id": subscription_id})
            current = Subscription.from_row(row)

            assignments = {}
            for column in _SIMPLE_COLUMNS + ("time", "status"):
                if column in changes:
                    assignments[column] = changes[column]

            if "schedule_days" in changes:
                schedule_days = clean_list(changes["schedule_days"])
                assignments["schedule_days"] = json.dumps(schedule_days)
                if "days_per_week" not in changes:
                    assignments["days_per_week"] = len(schedule_days)
            if "days_per_week" in changes:
                assignments["days_per_week"] = changes["days_per_week"]

            class_level = changes.get("class_level", current.class_level)
            subjects = clean_list(changes["subjects"]) if "subjects" in changes else current.subjects
            if not subjects:
                raise ValidationError("A subscription needs at least one subject", ["subjects"])
            if class_level != current.class_level or subjects != current.subjects:
                total_classes, counts = resolve_subjects(db_path, class_level, subjects)
                assignments["class"] = class_level
                assignments["subjects"] = json.dumps(subjects)
                assignments["total_classes"] = total_classes
                _reconcile_plans(conn, subscription_id, subjects, counts)

            if assignments:
                columns = ", ".join(f"{column} = ?" for column in assignments)
                conn.execute(
                    f"UPDATE subscriptions SET {columns} WHERE id = ?",
                    (*assignments.values(), subscription_id),
                )
            recompute_aggregate(conn, subscription_id)
    except sqlite3.Error as e:
        raise StorageError(f"Could not update subscription: {e}") from e

    logger.info("Updated subscription %s: %s", subscription_id, ", ".join(sorted(changes)) or "no changes")
    return get_subscription(db_path, subscription_id)


def delete_subscription(db_path: str, subscription_id: int) -> None:
    """Delete a subscription together with its plans and ledger entries."""
    try:
        with write_transaction(db_path) as conn:
            cursor = conn.execute("DELETE FROM subscriptions WHERE id = ?", (subscription_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Subscription not found", {"subscription_id": subscription_id})
    except sqlite3.Error as e:
        raise StorageError(f"Could not delete subscription: {e}") from e
    logger.info("Deleted subscription %s", subscription_id)
