# datavista/schemas/schema.py
import datetime as dt
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from datavista.core.exceptions import ValidationFailed
from datavista.models.model import AttendanceStatus, Role, TaskPriority

M = TypeVar('M', bound=BaseModel)

EMPLOYEE_NON_NULLABLE = ("name", "age", "class_", "subjects", "position", "avatar")


def parse_input(schema: Type[M], data: Dict[str, Any]) -> M:
    """Validate raw operation arguments, reporting failures as client errors"""
    try:
        return schema(**data)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'input'}: {error['msg']}"
            for error in e.errors()
        )
        raise ValidationFailed(f"Validation failed: {details}") from e


class Credentials(BaseModel):
    """Schema for login"""
    email: EmailStr = Field(..., description="Account email", examples=["admin@datavista.com"])
    password: str = Field(..., min_length=1, description="Plain text password")


class RegisterInput(Credentials):
    """Schema for registering a user"""
    role: Role = Field(Role.EMPLOYEE, description="Account role")


class EmployeeCreate(BaseModel):
    """Schema for creating an employee"""
    name: str = Field(..., min_length=1, description="Employee name", examples=["Sarah Johnson"])
    email: EmailStr = Field(..., description="Employee email", examples=["sarah.johnson@datavista.com"])
    age: int = Field(..., ge=0, description="Employee age", examples=[28])
    class_: str = Field(..., description="Seniority class", examples=["Senior"])
    subjects: List[str] = Field(..., description="Ordered list of skills")
    department: Optional[str] = Field(None, description="Employee department", examples=["Engineering"])
    position: str = Field(..., description="Job title", examples=["Senior Software Engineer"])
    avatar: str = Field(..., description="Avatar URL")
    phone: Optional[str] = None
    address: Optional[str] = None
    salary: Optional[float] = Field(None, ge=0, description="Yearly salary", examples=[125000])
    join_date: Optional[dt.datetime] = Field(None, description="Defaults to the creation time")
    user_id: Optional[int] = Field(None, description="User account owning this profile")


class EmployeeUpdate(BaseModel):
    """Schema for updating an employee.

    Only fields that were explicitly supplied are written; read them with
    ``model_dump(exclude_unset=True)``.
    """
    name: Optional[str] = None
    age: Optional[int] = Field(None, ge=0)
    class_: Optional[str] = None
    subjects: Optional[List[str]] = None
    department: Optional[str] = None
    position: Optional[str] = None
    avatar: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    salary: Optional[float] = Field(None, ge=0)

    @field_validator(*EMPLOYEE_NON_NULLABLE)
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class TaskCreate(BaseModel):
    """Schema for creating a task"""
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    completed: bool = False
    priority: TaskPriority = TaskPriority.MEDIUM.value
    due_date: Optional[dt.datetime] = None
    employee_id: int

    @field_validator("completed", "priority", mode="before")
    @classmethod
    def default_when_null(cls, v, info):
        if v is None:
            return cls.model_fields[info.field_name].default
        return v


class TaskUpdate(BaseModel):
    """Schema for updating a task; unset fields are left untouched"""
    model_config = ConfigDict(use_enum_values=True)

    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[dt.datetime] = None

    @field_validator("title", "completed", "priority")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("field cannot be null")
        return v


class AttendanceInput(BaseModel):
    """Schema for recording attendance"""
    employee_id: int
    date: dt.date
    status: AttendanceStatus
    check_in: Optional[dt.datetime] = None
    check_out: Optional[dt.datetime] = None
    notes: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def date_from_timestamp(cls, v):
        # Clients sometimes send a full timestamp for the day
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v


def parse_date(value: Optional[str], field: str) -> Optional[dt.date]:
    """Parse an ISO date (or the date part of an ISO timestamp)"""
    if value is None:
        return None
    try:
        return dt.date.fromisoformat(value.split("T", 1)[0])
    except ValueError as e:
        raise ValidationFailed(f"Validation failed: {field}: invalid date '{value}'") from e
