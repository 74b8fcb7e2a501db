"""Tests for today's sessions, day matching and holidays."""
from datetime import date, timedelta

import pytest

from mentor.db import get_connection, init_db
from mentor.errors import StorageError
from mentor.progress import complete_class
from mentor.schedule import (
    DAY_CODES, add_holiday, day_code, day_name, get_holiday, is_scheduled_on, list_holidays,
    remove_holiday, teacher_students, time_sort_key, today_sessions, weekly_schedule,
)
from mentor.subscriptions import create_subscription, update_subscription

MONDAY = date(2024, 1, 1)
TUESDAY = date(2024, 1, 2)
SATURDAY = date(2024, 1, 6)


def _new(db, name, days, time="16:00", teacher="1001"):
    return create_subscription(
        db, student_name=name, class_level=5, subjects=["Math", "Science"],
        teacher_id=teacher, schedule_days=days, time=time,
    )


def test_day_codes_are_verbatim():
    assert DAY_CODES == {
        "Sat": "1", "Sun": "2", "Mon": "3", "Tue": "4", "Wed": "5", "Thu": "6", "Fri": "7",
    }


def test_day_name_and_code_for_full_week():
    expected = [("Mon", "3"), ("Tue", "4"), ("Wed", "5"), ("Thu", "6"), ("Fri", "7"), ("Sat", "1"), ("Sun", "2")]
    week = [MONDAY + timedelta(days=i) for i in range(7)]
    assert [(day_name(d), day_code(d)) for d in week] == expected


def test_name_token_matches_only_its_day():
    assert is_scheduled_on(["Mon"], MONDAY)
    assert not is_scheduled_on(["Mon"], TUESDAY)


def test_code_token_matches_independently():
    assert is_scheduled_on(["3"], MONDAY)
    assert not is_scheduled_on(["3"], TUESDAY)
    assert is_scheduled_on(["1"], SATURDAY)


def test_mixed_tokens():
    days = ["Sat", "5"]
    assert is_scheduled_on(days, SATURDAY)
    assert is_scheduled_on(days, date(2024, 1, 3))  # Wednesday via code
    assert not is_scheduled_on(days, MONDAY)


def test_name_tokens_ignore_case_and_spaces():
    assert is_scheduled_on([" mon "], MONDAY)
    assert is_scheduled_on(["MON"], MONDAY)


def test_iso_weekday_number_is_not_a_code():
    # ISO Monday is 1, which is the legacy code for Saturday.
    assert not is_scheduled_on(["1"], MONDAY)


def test_today_sessions_matches_name_or_code(tmp_db):
    init_db(tmp_db)
    by_name = _new(tmp_db, "Name", ["Mon", "Wed"], time="17:00")
    by_code = _new(tmp_db, "Code", ["3", "5"], time="15:00")
    _new(tmp_db, "Other day", ["Tue"])
    result = today_sessions(tmp_db, "1001", today=MONDAY)
    assert result["is_holiday"] is False
    assert result["today"] == "Mon"
    assert result["today_code"] == "3"
    assert [s["subscription_id"] for s in result["sessions"]] == [by_code.id, by_name.id]


def test_today_sessions_orders_by_time(tmp_db):
    init_db(tmp_db)
    late = _new(tmp_db, "Late", ["Mon"], time="19:00")
    early = _new(tmp_db, "Early", ["Mon"], time="09:30")
    mid = _new(tmp_db, "Mid", ["3"], time="14:00")
    result = today_sessions(tmp_db, "1001", today=MONDAY)
    assert [s["subscription_id"] for s in result["sessions"]] == [early.id, mid.id, late.id]


def test_today_sessions_filters_teacher_and_status(tmp_db):
    init_db(tmp_db)
    mine = _new(tmp_db, "Mine", ["Mon"])
    _new(tmp_db, "Theirs", ["Mon"], teacher="2002")
    paused = _new(tmp_db, "Paused", ["Mon"])
    cancelled = _new(tmp_db, "Cancelled", ["Mon"])
    update_subscription(tmp_db, paused.id, status="paused")
    update_subscription(tmp_db, cancelled.id, status="cancelled")
    result = today_sessions(tmp_db, "1001", today=MONDAY)
    assert [s["subscription_id"] for s in result["sessions"]] == [mine.id]


def test_today_sessions_snapshot(tmp_db):
    init_db(tmp_db)
    sub = _new(tmp_db, "Rafi", ["Mon"])
    for _ in range(4):
        complete_class(tmp_db, sub.id, "Math", "1001")
    session = today_sessions(tmp_db, "1001", today=MONDAY)["sessions"][0]
    assert session["student_name"] == "Rafi"
    assert session["completed_classes"] == 4
    assert session["subject_progress"] == [
        {"subject": "Math", "current_chapter": 2, "current_part": 2},
        {"subject": "Science", "current_chapter": 1, "current_part": 1},
    ]


def test_holiday_short_circuits(tmp_db):
    init_db(tmp_db)
    _new(tmp_db, "Rafi", ["Mon", "3"])
    add_holiday(tmp_db, MONDAY, "New Year")
    result = today_sessions(tmp_db, "1001", today=MONDAY)
    assert result["is_holiday"] is True
    assert result["holiday_name"] == "New Year"
    assert result["sessions"] == []


def test_holiday_only_affects_its_date(tmp_db):
    init_db(tmp_db)
    _new(tmp_db, "Rafi", ["Mon"])
    add_holiday(tmp_db, TUESDAY, "Some holiday")
    result = today_sessions(tmp_db, "1001", today=MONDAY)
    assert result["is_holiday"] is False
    assert len(result["sessions"]) == 1


def test_holiday_registry(tmp_db):
    init_db(tmp_db)
    assert get_holiday(tmp_db, MONDAY) is None
    add_holiday(tmp_db, MONDAY, "New Year")
    add_holiday(tmp_db, MONDAY, "New Year's Day")
    add_holiday(tmp_db, date(2025, 1, 1), "New Year")
    assert get_holiday(tmp_db, MONDAY) == "New Year's Day"
    assert [h.date for h in list_holidays(tmp_db)] == ["2024-01-01", "2025-01-01"]
    assert [h.date for h in list_holidays(tmp_db, year=2025)] == ["2025-01-01"]
    assert remove_holiday(tmp_db, MONDAY) is True
    assert remove_holiday(tmp_db, MONDAY) is False
    assert get_holiday(tmp_db, MONDAY) is None


def test_today_defaults_to_current_date(tmp_db):
    init_db(tmp_db)
    result = today_sessions(tmp_db, "1001")
    assert result["date"] == date.today().isoformat()


def test_weekly_schedule_and_students(tmp_db):
    init_db(tmp_db)
    b = _new(tmp_db, "B", ["Tue"], time="18:00")
    a = _new(tmp_db, "A", ["2"], time="10:00")
    _new(tmp_db, "C", ["Mon"], teacher="2002")
    week = weekly_schedule(tmp_db, "1001")
    assert [s["subscription_id"] for s in week] == [a.id, b.id]
    assert week[0]["schedule_days"] == ["2"]
    students = teacher_students(tmp_db, "1001")
    assert {s["name"] for s in students} == {"A", "B"}
    assert students[0]["subjects"] == ["Math", "Science"]


@pytest.mark.parametrize("offset", range(7))
def test_name_and_code_agree_every_day(offset):
    day = MONDAY + timedelta(days=offset)
    assert is_scheduled_on([day_name(day)], day)
    assert is_scheduled_on([day_code(day)], day)


def test_time_sort_key_is_chronological():
    times = ["16:00", "9:00", "", "09:30", "later"]
    assert sorted(times, key=time_sort_key) == ["9:00", "09:30", "16:00", "", "later"]


def test_today_sessions_orders_unpadded_hours(tmp_db):
    init_db(tmp_db)
    afternoon = _new(tmp_db, "Afternoon", ["Mon"], time="16:00")
    morning = _new(tmp_db, "Morning", ["Mon"], time="9:00")
    assert morning.time == "09:00"
    # Rows written before times were normalized keep the raw text.
    conn = get_connection(tmp_db)
    conn.execute("UPDATE subscriptions SET time = '9:00' WHERE id = ?", (morning.id,))
    conn.commit()
    conn.close()
    result = today_sessions(tmp_db, "1001", today=MONDAY)
    assert [s["subscription_id"] for s in result["sessions"]] == [morning.id, afternoon.id]
    assert [s["subscription_id"] for s in weekly_schedule(tmp_db, "1001")] == [morning.id, afternoon.id]


def test_schedule_on_broken_store_raises_storage_error(tmp_db):
    with pytest.raises(StorageError):
        today_sessions(tmp_db, "1001", today=MONDAY)
    with pytest.raises(StorageError):
        weekly_schedule(tmp_db, "1001")
    with pytest.raises(StorageError):
        add_holiday(tmp_db, MONDAY, "New Year")
    with pytest.raises(StorageError):
        remove_holiday(tmp_db, MONDAY)
    with pytest.raises(StorageError):
        list_holidays(tmp_db)
