from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from labor_app.core.timezone_utils import local_today, to_naive_utc, utc_to_local
from labor_app.models.daily_reports import ChangeType, ReportStatus, WorkType

# work type -> (earliest local start hour, latest local end hour)
OT_WINDOWS = {
    "ot_morning": (3, 8),
    "ot_noon": (12, 13),
    "ot_evening": (17, None),
}

DATETIME_FIELDS = ("work_date", "start_time", "end_time")

# fields a report can never be without; null is rejected on update
REQUIRED_FIELDS = (
    "project_location_id", "daily_contractor_id", "task_name", "work_date",
    "start_time", "end_time", "work_type", "is_overnight", "file_attachment_ids", "status",
)


def validate_report_times(work_type: str, start_time: datetime, end_time: datetime,
                          is_overnight: bool, work_date: Optional[datetime] = None) -> None:
    """Raise ValueError when a report's times are inconsistent."""
    start_time, end_time = to_naive_utc(start_time), to_naive_utc(end_time)
    if not is_overnight and end_time <= start_time:
        raise ValueError("End time must be after start time")

    if work_date is not None and utc_to_local(work_date).date() > local_today():
        raise ValueError("Work date cannot be in the future")

    window = OT_WINDOWS.get(work_type)
    if window:
        earliest, latest = window
        start_hour = utc_to_local(start_time).hour
        end_hour = utc_to_local(end_time).hour
        if start_hour < earliest or (latest is not None and end_hour > latest):
            raise ValueError(f"Time range does not match work type {work_type}")


class DailyReportCreate(BaseModel):
    project_location_id: str = Field(..., min_length=1)
    daily_contractor_id: str = Field(..., min_length=1)
    task_name: str = Field(..., min_length=2, max_length=200)
    work_date: datetime
    start_time: datetime
    end_time: datetime
    work_type: WorkType = "regular"
    is_overnight: bool = False
    notes: Optional[str] = None
    file_attachment_ids: List[str] = Field(default_factory=list)
    status: ReportStatus = "draft"

    @field_validator("project_location_id")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper()

    @field_validator(*DATETIME_FIELDS)
    @classmethod
    def store_as_utc(cls, v):
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_times(self):
        validate_report_times(self.work_type, self.start_time, self.end_time,
                              self.is_overnight, self.work_date)
        return self


class DailyReportUpdate(BaseModel):
    project_location_id: Optional[str] = None
    daily_contractor_id: Optional[str] = None
    task_name: Optional[str] = Field(None, min_length=2, max_length=200)
    work_date: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    work_type: Optional[WorkType] = None
    is_overnight: Optional[bool] = None
    notes: Optional[str] = None
    file_attachment_ids: Optional[List[str]] = None
    status: Optional[ReportStatus] = None
    change_reason: Optional[str] = None

    @field_validator(*REQUIRED_FIELDS)
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("project_location_id")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper()

    @field_validator(*DATETIME_FIELDS)
    @classmethod
    def store_as_utc(cls, v):
        return to_naive_utc(v)


class DailyReportDelete(BaseModel):
    change_reason: Optional[str] = None


class DailyReportOut(BaseModel):
    id: str
    project_location_id: str
    daily_contractor_id: str
    task_name: str
    work_date: datetime
    start_time: datetime
    end_time: datetime
    work_type: WorkType
    total_hours: float
    break_hours: float
    net_hours: float
    is_overnight: bool
    notes: Optional[str] = None
    file_attachment_ids: List[str] = Field(default_factory=list)
    status: ReportStatus
    is_deleted: bool
    created_at: datetime
    updated_at: datetime
    created_by: str
    updated_by: str
    version: int


class EditHistoryOut(BaseModel):
    id: str
    daily_report_id: str
    previous_version: int
    change_type: ChangeType
    changed_fields: List[str] = Field(default_factory=list)
    old_values: Dict[str, Any] = Field(default_factory=dict)
    new_values: Dict[str, Any] = Field(default_factory=dict)
    change_reason: Optional[str] = None
    created_at: datetime
    created_by: str
