# tests/test_integration.py
"""End-to-end test of the core workflow."""
from datetime import date, timedelta

import pytest

from mentor.dashboard import get_teacher_stats
from mentor.progress import complete_class, get_progress_history
from mentor.schedule import add_holiday, today_sessions
from mentor.subscriptions import create_subscription, get_subscription, update_subscription


def test_full_week_workflow(seeded_db):
    """Enrol two students, teach through a week and check every derived value."""
    saturday = date(2024, 1, 6)
    rafi = create_subscription(
        seeded_db, student_name="Rafi", class_level=5, subjects=["Math", "English"],
        teacher_id="1001", schedule_days=["Sat", "Mon", "Wed"], time="16:00",
    )
    mim = create_subscription(
        seeded_db, student_name="Mim", class_level=5, subjects=["Math", "Science"],
        teacher_id="1001", schedule_days=["1", "4"], time="10:00",
    )
    assert rafi.total_classes == 25
    assert mim.total_classes == 27  # Science falls back to 15

    add_holiday(seeded_db, saturday + timedelta(days=2), "Exam break")

    taught = 0
    for offset in range(7):
        day = saturday + timedelta(days=offset)
        result = today_sessions(seeded_db, "1001", today=day)
        if offset == 2:
            assert result["is_holiday"] is True
            assert result["sessions"] == []
            continue
        for session in result["sessions"]:
            subject = session["subjects"][0]
            complete_class(seeded_db, session["subscription_id"], subject, "1001", notes=day.isoformat())
            taught += 1

    # Saturday: both (Mim by code 1). Tuesday: Mim (code 4). Wednesday: Rafi.
    assert taught == 4
    rafi = get_subscription(seeded_db, rafi.id)
    mim = get_subscription(seeded_db, mim.id)
    assert rafi.completed_classes == 2
    assert mim.completed_classes == 2
    assert rafi.progress_percent == pytest.approx(100 * 2 / 25)
    math = next(p for p in mim.plans if p.subject == "Math")
    assert (math.current_chapter, math.current_part) == (1, 3)

    history = get_progress_history(seeded_db, mim.id)
    assert [e.part for e in history] == [2, 1]

    update_subscription(seeded_db, mim.id, subjects=["Math"])
    mim = get_subscription(seeded_db, mim.id)
    assert mim.total_classes == 12
    assert mim.completed_classes == 2

    stats = get_teacher_stats(seeded_db, "1001")
    assert stats["students"] == 2
    assert stats["completed_classes"] == 4
