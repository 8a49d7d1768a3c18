from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime

from labor_app.core.timezone_utils import to_naive_utc


def _blank_to_none(v):
    if v is None:
        return None
    v = v.strip()
    return v or None


class DailyContractorCreate(BaseModel):
    employee_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    skill_id: str = Field(..., min_length=1)
    project_location_ids: List[str] = Field(default_factory=list)
    phone_number: Optional[str] = None
    id_card_number: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("employee_id", "name", "skill_id")
    @classmethod
    def strip_text(cls, v):
        return v.strip()

    @field_validator("project_location_ids")
    @classmethod
    def upper_codes(cls, v):
        return [str(code).strip().upper() for code in v if str(code).strip()]

    @field_validator("phone_number", "id_card_number", "address", "emergency_contact", "emergency_phone")
    @classmethod
    def optional_text(cls, v):
        return _blank_to_none(v)

    @field_validator("start_date", "end_date")
    @classmethod
    def store_as_utc(cls, v):
        return to_naive_utc(v)


class DailyContractorUpdate(BaseModel):
    employee_id: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    skill_id: Optional[str] = Field(None, min_length=1)
    project_location_ids: Optional[List[str]] = None
    phone_number: Optional[str] = None
    id_card_number: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    is_active: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("employee_id", "name", "skill_id", "project_location_ids", "is_active")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("employee_id", "name", "skill_id")
    @classmethod
    def strip_text(cls, v):
        return v.strip()

    @field_validator("project_location_ids")
    @classmethod
    def upper_codes(cls, v):
        return [str(code).strip().upper() for code in v if str(code).strip()]

    @field_validator("phone_number", "id_card_number", "address", "emergency_contact", "emergency_phone")
    @classmethod
    def optional_text(cls, v):
        return _blank_to_none(v)

    @field_validator("start_date", "end_date")
    @classmethod
    def store_as_utc(cls, v):
        return to_naive_utc(v)


class DailyContractorOut(BaseModel):
    id: str
    employee_id: str
    name: str
    skill_id: str
    project_location_ids: List[str] = Field(default_factory=list)
    phone_number: Optional[str] = None
    id_card_number: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    is_active: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
