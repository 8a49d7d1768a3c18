from beanie import Document
from pydantic import Field
from datetime import datetime
from typing import Optional, Literal

from labor_app.core.timezone_utils import utc_now

ProjectStatus = Literal["active", "completed", "suspended"]


class Project(Document):
    # document id is always the business code
    id: Optional[str] = None
    code: str
    name: str
    location: str = ""
    department: str
    project_manager: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: ProjectStatus = "active"
    description: Optional[str] = None
    is_active: bool = True

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    created_by: str = "system"
    updated_by: str = "system"

    class Settings:
        name = "Project"

    @classmethod
    def new(cls, code: str, **fields) -> "Project":
        code = code.strip().upper()
        return cls(id=code, code=code, **fields)
