"""Import and export subscriptions in the mobile client's payload shape.

The client sends list-valued fields (subjects, schedule_days) as
comma-joined strings. This module is the only place that format exists;
everything past it works with lists.
"""
import csv
import json
import logging
from pathlib import Path

import yaml

from mentor.errors import ValidationError
from mentor.models import Subscription
from mentor.subscriptions import create_subscription

logger = logging.getLogger(__name__)


def split_list(value) -> list[str]:
    """'Math, Science' -> ['Math', 'Science']. Lists pass through stripped."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")
    return [str(item).strip() for item in items if str(item).strip()]


def join_list(values: list[str]) -> str:
    return ",".join(values)


def _int(value, default: int = 0) -> int:
    if value in (None, ""):
        return default
    return int(value)


def _float(value, default: float = 0.0) -> float:
    if value in (None, ""):
        return default
    return float(value)


def _time(value) -> str:
    # YAML 1.1 reads an unquoted 16:00 as the base-60 integer 960.
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value // 60:02d}:{value % 60:02d}"
    return str(value or "").strip()


def parse_payload(record: dict) -> dict:
    """Turn one client record into keyword arguments for create_subscription."""
    if not isinstance(record, dict):
        raise ValidationError(f"Expected a subscription record, got {type(record).__name__}")
    try:
        class_level = _int(record.get("class", record.get("class_level")))
        days_per_week = _int(record.get("days_per_week"))
        amount = _float(record.get("amount"))
        billing_date = _int(record.get("billing_date"), default=1)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Bad numeric field: {e}") from e
    return {
        "student_name": str(record.get("student_name") or "").strip(),
        "student_phone": str(record.get("student_phone") or ""),
        "guardian_name": str(record.get("guardian_name") or ""),
        "guardian_phone": str(record.get("guardian_phone") or ""),
        "class_level": class_level,
        "subjects": split_list(record.get("subjects")),
        "teacher_id": str(record.get("teacher_id") or "").strip(),
        "schedule_days": split_list(record.get("schedule_days")),
        "time": _time(record.get("time")),
        "days_per_week": days_per_week,
        "amount": amount,
        "billing_date": billing_date,
    }


def to_payload(sub: Subscription) -> dict:
    """Client representation of a subscription, list fields comma-joined."""
    return {
        "id": sub.id,
        "student_name": sub.student_name,
        "student_phone": sub.student_phone,
        "guardian_name": sub.guardian_name,
        "guardian_phone": sub.guardian_phone,
        "class": sub.class_level,
        "subjects": join_list(sub.subjects),
        "teacher_id": sub.teacher_id,
        "days_per_week": sub.days_per_week,
        "schedule_days": join_list(sub.schedule_days),
        "time": sub.time,
        "amount": sub.amount,
        "billing_date": sub.billing_date,
        "status": sub.status,
        "total_classes": sub.total_classes,
        "completed_classes": sub.completed_classes,
        "progress_percent": sub.progress_percent,
    }


def read_records(file_path: str) -> list[dict]:
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".csv":
        with path.open(newline="") as fh:
            return list(csv.DictReader(fh))
    elif suffix in (".yaml", ".yml"):
        data = yaml.safe_load(path.read_text())
    elif suffix == ".json":
        data = json.loads(path.read_text())
    else:
        raise ValidationError(f"Unsupported file type: {suffix or path.name}")

    if isinstance(data, dict):
        data = data.get("subscriptions", [])
    if not isinstance(data, list):
        raise ValidationError("Expected a list of subscription records")
    return data


def import_file(db_path: str, file_path: str) -> dict:
    """Create one subscription per record. Invalid records are skipped and reported."""
    records = read_records(file_path)
    created, errors = [], []
    for index, record in enumerate(records, 1):
        try:
            sub = create_subscription(db_path, **parse_payload(record))
        except ValidationError as e:
            logger.warning("Skipping record %d of %s: %s", index, file_path, e)
            errors.append({"record": index, "error": e.message})
            continue
        created.append(sub.id)
    return {"filename": Path(file_path).name, "created": created, "errors": errors}
