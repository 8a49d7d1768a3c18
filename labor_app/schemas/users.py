from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import date, datetime

from labor_app.models.users import Department
from labor_app.services.permission import normalize_role_code


class UserBase(BaseModel):
    employee_id: str = Field(..., min_length=1, max_length=50)
    username: str = Field(..., min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    name: str = Field(..., min_length=1, max_length=200)
    role_id: str
    department: Department
    date_of_birth: Optional[date] = None
    start_date: datetime
    project_location_ids: List[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("role_id")
    @classmethod
    def validate_role(cls, v):
        code = normalize_role_code(v)
        if code is None:
            raise ValueError(f"Unknown role: {v}")
        return code

    @field_validator("project_location_ids")
    @classmethod
    def upper_codes(cls, v):
        return [str(code).strip().upper() for code in v if str(code).strip()]


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)


class UserUpdate(BaseModel):
    employee_id: Optional[str] = None
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    name: Optional[str] = None
    role_id: Optional[str] = None
    department: Optional[Department] = None
    date_of_birth: Optional[date] = None
    start_date: Optional[datetime] = None
    project_location_ids: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @field_validator("employee_id", "username", "password", "name", "role_id", "department",
                     "start_date", "project_location_ids", "is_active")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("role_id")
    @classmethod
    def validate_role(cls, v):
        code = normalize_role_code(v)
        if code is None:
            raise ValueError(f"Unknown role: {v}")
        return code


class UserResponse(BaseModel):
    id: str
    employee_id: str
    username: str
    email: Optional[str] = None
    name: str
    role_id: str
    department: str
    date_of_birth: Optional[date] = None
    start_date: datetime
    project_location_ids: List[str] = Field(default_factory=list)
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v):
        return str(v)


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    role: Optional[str] = None
    user_id: Optional[str] = None


class TokenRefresh(BaseModel):
    refresh_token: str


class LoginRequest(BaseModel):
    # username or email
    username: str
    password: str
