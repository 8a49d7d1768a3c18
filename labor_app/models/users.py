from beanie import Document, Indexed
from pydantic import EmailStr, Field
from pymongo import ASCENDING, IndexModel
from datetime import date, datetime
from typing import Optional, List, Literal

from labor_app.core.timezone_utils import utc_now

Department = Literal["PD01", "PD02", "PD03", "PD04", "PD05", "HO", "WH"]


class User(Document):
    employee_id: str
    username: Indexed(str, unique=True)
    # login identity for accounts created by scripts/create_admin.py
    email: Optional[EmailStr] = None
    password_hash: str
    name: str
    role_id: str
    department: Department
    date_of_birth: Optional[date] = None
    start_date: datetime = Field(default_factory=utc_now)
    project_location_ids: List[str] = Field(default_factory=list)
    is_active: bool = True

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    created_by: str = "system"
    updated_by: str = "system"

    class Settings:
        name = "users"
        keep_nulls = False
        indexes = [
            IndexModel([("email", ASCENDING)], unique=True, sparse=True),
        ]
