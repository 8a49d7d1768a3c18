import re
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from labor_app.models.projects import ProjectStatus

PROJECT_CODE_RE = re.compile(r"^[A-Z0-9-]+$")


class ProjectCreate(BaseModel):
    code: str = Field(..., min_length=2, max_length=20)
    name: str = Field(..., min_length=3, max_length=200)
    location: str = ""
    department: str = Field(..., min_length=1)
    project_manager: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: ProjectStatus = "active"
    description: Optional[str] = None
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def validate_code(cls, v):
        v = v.strip().upper()
        if not PROJECT_CODE_RE.match(v):
            raise ValueError("Project code must contain only A-Z, 0-9, or hyphen (-)")
        return v


class ProjectUpdate(BaseModel):
    # code is the document id and cannot change
    name: Optional[str] = Field(None, min_length=3, max_length=200)
    location: Optional[str] = None
    department: Optional[str] = None
    project_manager: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[ProjectStatus] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name", "location", "department", "status", "is_active")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ProjectOut(BaseModel):
    id: str
    code: str
    name: str
    location: str = ""
    department: str
    project_manager: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: ProjectStatus
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    created_by: str
    updated_by: str
