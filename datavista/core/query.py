"""Translate typed listing parameters into SQLAlchemy criteria.

Each listing is described by a closed parameter bundle: unknown filter or
sort fields never reach the database, they are rejected here.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Generic, List, Optional, Sequence, Tuple, TypeVar

from sqlalchemy import func

from datavista.core.exceptions import ValidationFailed
from datavista.models.model import AttendanceRecord, Employee, Task

T = TypeVar('T')

EMPLOYEE_PAGE_SIZE = 10
TASK_PAGE_SIZE = 50
EMPLOYEE_ATTENDANCE_LIMIT = 30

# Public (GraphQL) field name -> mapped column
EMPLOYEE_SORT_FIELDS = {
    "id": Employee.id,
    "name": Employee.name,
    "email": Employee.email,
    "age": Employee.age,
    "class": Employee.class_,
    "department": Employee.department,
    "position": Employee.position,
    "joinDate": Employee.join_date,
    "salary": Employee.salary,
    "flagged": Employee.flagged,
    "createdAt": Employee.created_at,
    "updatedAt": Employee.updated_at,
}

SORT_ORDERS = ("asc", "desc")


@dataclass
class EmployeeFilter:
    name: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    class_: Optional[str] = None
    flagged: Optional[bool] = None


@dataclass
class EmployeeSort:
    field: str = "id"
    order: str = "asc"


@dataclass
class EmployeeQuery:
    filter: EmployeeFilter = field(default_factory=EmployeeFilter)
    sort: Optional[EmployeeSort] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


@dataclass
class Page(Generic[T]):
    items: List[T]
    total_count: int
    limit: int
    offset: int

    @property
    def has_next_page(self) -> bool:
        return self.offset + self.limit < self.total_count


def validate_pagination(limit: Optional[int], offset: Optional[int], default_limit: int) -> Tuple[int, int]:
    limit = default_limit if limit is None else limit
    offset = 0 if offset is None else offset

    if limit < 0:
        raise ValidationFailed("limit must not be negative")
    if offset < 0:
        raise ValidationFailed("offset must not be negative")

    return limit, offset


def employee_criteria(filter: Optional[EmployeeFilter]) -> List[Any]:
    criteria = []
    if filter is None:
        return criteria

    if filter.name:
        criteria.append(func.lower(Employee.name).contains(filter.name.lower(), autoescape=True))
    if filter.department:
        criteria.append(Employee.department == filter.department)
    if filter.position:
        criteria.append(Employee.position == filter.position)
    if filter.class_:
        criteria.append(Employee.class_ == filter.class_)
    if filter.flagged is not None:
        criteria.append(Employee.flagged == filter.flagged)

    return criteria


def employee_order_by(sort: Optional[EmployeeSort]) -> List[Any]:
    if sort is None:
        return [Employee.id.asc()]

    column = EMPLOYEE_SORT_FIELDS.get(sort.field)
    if column is None:
        allowed = ", ".join(EMPLOYEE_SORT_FIELDS)
        raise ValidationFailed(f"Cannot sort employees by '{sort.field}'. Allowed fields: {allowed}")

    order = (sort.order or "").lower()
    if order not in SORT_ORDERS:
        raise ValidationFailed(f"Sort order must be 'asc' or 'desc', got '{sort.order}'")

    ordering = [column.asc() if order == "asc" else column.desc()]
    if sort.field != "id":
        ordering.append(Employee.id.asc())
    return ordering


def task_criteria(employee_id: Optional[int]) -> List[Any]:
    return [Task.employee_id == employee_id] if employee_id is not None else []


def task_order_by() -> List[Any]:
    return [Task.created_at.desc(), Task.id.desc()]


def attendance_criteria(
    employee_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Any]:
    criteria = [AttendanceRecord.employee_id == employee_id]

    if start_date is not None:
        criteria.append(AttendanceRecord.date >= start_date)
    if end_date is not None:
        criteria.append(AttendanceRecord.date <= end_date)

    return criteria


def attendance_order_by() -> Sequence[Any]:
    return [AttendanceRecord.date.desc(), AttendanceRecord.id.desc()]
