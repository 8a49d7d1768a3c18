from beanie import Document, Indexed
from pydantic import Field
from datetime import datetime
from typing import List, Optional

from labor_app.core.timezone_utils import utc_now


class DailyContractor(Document):
    # day-rate worker referenced by DailyReport.daily_contractor_id
    employee_id: Indexed(str, unique=True)
    name: str
    skill_id: str
    project_location_ids: List[str] = Field(default_factory=list)
    phone_number: Optional[str] = None
    id_card_number: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    is_active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    created_by: str = "system"
    updated_by: str = "system"

    class Settings:
        name = "dailyContractors"
