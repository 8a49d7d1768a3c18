from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from beanie import Document, Indexed
from pydantic import Field

from labor_app.core.timezone_utils import utc_now, utc_to_local

WorkType = Literal["regular", "ot_morning", "ot_noon", "ot_evening"]
ReportStatus = Literal["draft", "submitted", "verified", "locked"]
ChangeType = Literal["create", "update", "delete", "restore"]

LUNCH_BREAK_HOURS = 1.0
ROUNDING_MINUTES = 5


def calculate_total_hours(start_time: datetime, end_time: datetime, is_overnight: bool) -> float:
    """Worked hours between start and end, rounded down to 5 minutes.

    Overnight shifts add a full day to the end time.
    """
    seconds = (end_time - start_time).total_seconds()
    if is_overnight:
        seconds += 24 * 60 * 60
    minutes = math.floor(seconds / 60 / ROUNDING_MINUTES) * ROUNDING_MINUTES
    return minutes / 60


def calculate_break_hours(work_type: str, start_time: datetime, end_time: datetime) -> float:
    # regular work spanning 12:00-13:00 site time loses the lunch hour
    if work_type != "regular":
        return 0.0
    start_hour = utc_to_local(start_time).hour
    end_hour = utc_to_local(end_time).hour
    if start_hour < 13 and end_hour > 12:
        return LUNCH_BREAK_HOURS
    return 0.0


def calculate_net_hours(total_hours: float, work_type: str, start_time: datetime, end_time: datetime) -> float:
    return max(0.0, total_hours - calculate_break_hours(work_type, start_time, end_time))


class DailyReport(Document):
    project_location_id: Indexed(str)
    daily_contractor_id: str
    task_name: str
    work_date: datetime
    start_time: datetime
    end_time: datetime
    work_type: WorkType = "regular"
    total_hours: float = 0.0
    break_hours: float = 0.0
    net_hours: float = 0.0
    is_overnight: bool = False
    notes: Optional[str] = None
    file_attachment_ids: List[str] = Field(default_factory=list)
    status: ReportStatus = "draft"
    is_deleted: bool = False

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    created_by: str
    updated_by: str
    version: int = 1

    class Settings:
        name = "dailyReports"

    def recalculate_hours(self) -> None:
        self.total_hours = calculate_total_hours(self.start_time, self.end_time, self.is_overnight)
        self.break_hours = calculate_break_hours(self.work_type, self.start_time, self.end_time)
        self.net_hours = max(0.0, self.total_hours - self.break_hours)


class EditHistory(Document):
    daily_report_id: Indexed(str)
    previous_version: int
    change_type: ChangeType
    changed_fields: List[str] = Field(default_factory=list)
    old_values: Dict[str, Any] = Field(default_factory=dict)
    new_values: Dict[str, Any] = Field(default_factory=dict)
    change_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    created_by: str

    class Settings:
        name = "editHistory"
