"""
Attendance statistics over a date range.
"""

from datetime import date
from typing import Any, Dict, Iterable, Optional

import pandas as pd

from creche.core.constants import AttendanceStatus
from creche.core.statuses import field_value


def count_weekdays(start: date, end: date) -> int:
    """Monday-to-Friday days in the closed range [start, end]."""
    if end < start:
        return 0
    return len(pd.bdate_range(start=start, end=end))


def attendance_summary(
    records: Iterable[Any],
    start: date,
    end: date,
    children: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Count records per status and compute the attendance rate.

    The rate is present days over the child-days of the range (weekdays
    times ``children``), as a percentage with one decimal. ``children``
    defaults to the number of distinct children in ``records``. A range
    without weekdays has a rate of 0.
    """
    counts = {status.value: 0 for status in AttendanceStatus}
    child_ids = set()
    for record in records:
        child_ids.add(field_value(record, "child_id"))
        status = field_value(record, "status")
        if status in counts:
            counts[status] += 1

    if children is None:
        children = max(len(child_ids), 1)
    weekdays = count_weekdays(start, end)
    child_days = weekdays * children
    rate = round(counts[AttendanceStatus.PRESENT.value] / child_days * 100, 1) if child_days else 0.0

    return {
        "start": start,
        "end": end,
        "weekdays": weekdays,
        "children": children,
        "counts": counts,
        "attendance_rate": rate,
    }



def attendance_frame(records: Iterable[Any]) -> pd.DataFrame:
    """Tabular view of attendance rows, ordered by date, for CSV export."""
    columns = ["date", "child_id", "status", "arrival_time", "departure_time", "notes"]
    rows = [{column: field_value(record, column) for column in columns} for record in records]
    df = pd.DataFrame(rows, columns=columns)
    if not df.empty:
        df = df.sort_values(["date", "child_id"]).reset_index(drop=True)
    return df
