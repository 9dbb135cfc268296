"""
Tests for attendance statistics and the CSV export frame.
"""

import sys
import os
from datetime import date, time

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from creche.core.attendance import attendance_frame, attendance_summary, count_weekdays

MONDAY = date(2026, 10, 19)
SUNDAY = date(2026, 10, 25)


def test_count_weekdays():
    assert count_weekdays(MONDAY, SUNDAY) == 5
    assert count_weekdays(MONDAY, MONDAY) == 1
    assert count_weekdays(date(2026, 10, 24), SUNDAY) == 0
    assert count_weekdays(SUNDAY, MONDAY) == 0


def test_attendance_summary():
    records = [
        {"date": date(2026, 10, 19 + offset), "status": "present"} for offset in range(4)
    ] + [{"date": date(2026, 10, 23), "status": "absent"}]
    summary = attendance_summary(records, MONDAY, SUNDAY)
    assert summary["weekdays"] == 5
    assert summary["counts"] == {"present": 4, "absent": 1, "late": 0, "excused": 0}
    assert summary["attendance_rate"] == 80.0


def test_attendance_rate_is_rounded_to_one_decimal():
    records = [{"status": "present"}, {"status": "present"}]
    summary = attendance_summary(records, MONDAY, date(2026, 10, 21))
    assert summary["attendance_rate"] == 66.7


def test_weekend_range_has_zero_rate():
    summary = attendance_summary([{"status": "present"}], date(2026, 10, 24), SUNDAY)
    assert summary["weekdays"] == 0
    assert summary["attendance_rate"] == 0.0


def test_unknown_statuses_are_not_counted():
    summary = attendance_summary([{"status": "holiday"}], MONDAY, MONDAY)
    assert sum(summary["counts"].values()) == 0


def test_attendance_frame_sorted_by_date_and_child():
    records = [
        {"date": date(2026, 10, 20), "child_id": 2, "status": "present", "arrival_time": time(8, 0)},
        {"date": date(2026, 10, 19), "child_id": 3, "status": "late"},
        {"date": date(2026, 10, 19), "child_id": 1, "status": "absent", "notes": "Febre"},
    ]
    df = attendance_frame(records)
    assert list(df.columns) == ["date", "child_id", "status", "arrival_time", "departure_time", "notes"]
    assert list(df["child_id"]) == [1, 3, 2]
    assert df["notes"].iloc[0] == "Febre"


def test_attendance_frame_empty():
    df = attendance_frame([])
    assert df.empty
    assert "status" in df.columns


def test_rate_counts_each_child_day():
    records = [{"child_id": child_id, "status": "present"} for child_id in (1, 2, 3)]
    summary = attendance_summary(records, MONDAY, MONDAY)
    assert summary["children"] == 3
    assert summary["attendance_rate"] == 100.0

    # Over the whole week the same three presences are a fifth of the child-days
    assert attendance_summary(records, MONDAY, SUNDAY)["attendance_rate"] == 20.0


def test_rate_uses_given_number_of_children():
    records = [{"child_id": 1, "status": "present"}, {"child_id": 2, "status": "absent"}]
    summary = attendance_summary(records, MONDAY, MONDAY, children=4)
    assert summary["attendance_rate"] == 25.0
