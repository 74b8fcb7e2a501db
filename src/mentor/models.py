"""Data classes for the tutoring domain model."""
import json
import sqlite3
from dataclasses import dataclass, field
from typing import Optional

PARTS_PER_CHAPTER = 3
DEFAULT_CHAPTER_COUNT = 15

STATUS_ACTIVE = "active"
STATUS_PAUSED = "paused"
STATUS_CANCELLED = "cancelled"
STATUSES = (STATUS_ACTIVE, STATUS_PAUSED, STATUS_CANCELLED)


def percent(done: int, needed: int) -> float:
    """100 * done / needed, or 0.0 when nothing is needed."""
    if needed <= 0:
        return 0.0
    return done / needed * 100


@dataclass
class ChapterEntry:
    class_level: int
    subject: str
    total_chapters: int


@dataclass
class SubjectPlan:
    id: int
    subscription_id: int
    subject: str
    current_chapter: int = 1
    current_part: int = 1
    parts_done: int = 0
    parts_needed: int = DEFAULT_CHAPTER_COUNT

    @property
    def progress_percent(self) -> float:
        return percent(self.parts_done, self.parts_needed)

    @property
    def is_finished(self) -> bool:
        return self.parts_done >= self.parts_needed

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "SubjectPlan":
        return cls(
            id=row["id"],
            subscription_id=row["subscription_id"],
            subject=row["subject"],
            current_chapter=row["current_chapter"],
            current_part=row["current_part"],
            parts_done=row["parts_done"],
            parts_needed=row["parts_needed"],
        )


@dataclass
class Subscription:
    id: int
    student_name: str
    class_level: int
    teacher_id: str
    subjects: list[str] = field(default_factory=list)
    schedule_days: list[str] = field(default_factory=list)
    time: str = ""
    student_phone: str = ""
    guardian_name: str = ""
    guardian_phone: str = ""
    days_per_week: int = 0
    amount: float = 0.0
    billing_date: int = 1
    status: str = STATUS_ACTIVE
    total_classes: int = 0
    completed_classes: int = 0
    progress_percent: float = 0.0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    plans: list[SubjectPlan] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: sqlite3.Row, plans: Optional[list[SubjectPlan]] = None) -> "Subscription":
        return cls(
            id=row["id"],
            student_name=row["student_name"],
            class_level=row["class"],
            teacher_id=row["teacher_id"],
            subjects=json.loads(row["subjects"] or "[]"),
            schedule_days=json.loads(row["schedule_days"] or "[]"),
            time=row["time"] or "",
            student_phone=row["student_phone"] or "",
            guardian_name=row["guardian_name"] or "",
            guardian_phone=row["guardian_phone"] or "",
            days_per_week=row["days_per_week"] or 0,
            amount=row["amount"] or 0.0,
            billing_date=row["billing_date"] or 1,
            status=row["status"],
            total_classes=row["total_classes"] or 0,
            completed_classes=row["completed_classes"] or 0,
            progress_percent=row["progress_percent"] or 0.0,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            plans=plans or [],
        )


@dataclass(frozen=True)
class ProgressEvent:
    id: int
    subscription_id: int
    subject: str
    chapter: int
    part: int
    completed_at: str
    subject_plan_id: Optional[int] = None
    teacher_id: str = ""
    notes: str = ""

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "ProgressEvent":
        return cls(
            id=row["id"],
            subscription_id=row["subscription_id"],
            subject=row["subject"],
            chapter=row["chapter"],
            part=row["part"],
            completed_at=row["completed_at"],
            subject_plan_id=row["subject_plan_id"],
            teacher_id=row["teacher_id"] or "",
            notes=row["notes"] or "",
        )


@dataclass
class Holiday:
    date: str  # ISO yyyy-mm-dd
    name: str
