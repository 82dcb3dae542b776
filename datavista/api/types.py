"""GraphQL object and input types.

Object types are built from ORM rows with ``from_model``; nested lists and
parents are resolved on demand through the services in the request context.
"""
from datetime import date, datetime
from typing import List, Optional, Union

import strawberry
from strawberry.types import Info

from datavista.core.exceptions import NotFound
from datavista.core.query import EmployeeFilter, EmployeeSort
from datavista.models import model

Role = strawberry.enum(model.Role, name="Role")
AttendanceStatus = strawberry.enum(model.AttendanceStatus, name="AttendanceStatus")


def to_iso(value: Optional[Union[date, datetime]]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@strawberry.type(name="User")
class UserType:
    id: int
    email: str
    role: Role
    created_at: str

    @strawberry.field
    async def employee(self, info: Info) -> Optional["EmployeeType"]:
        employee = await info.context.services.employees.find_for_user(self.id)
        return EmployeeType.from_model(employee) if employee else None

    @classmethod
    def from_model(cls, user: model.User) -> "UserType":
        return cls(
            id=user.id,
            email=user.email,
            role=user.role,
            created_at=to_iso(user.created_at),
        )


@strawberry.type(name="AuthPayload")
class AuthPayloadType:
    token: str
    user: UserType


@strawberry.type(name="Employee")
class EmployeeType:
    id: int
    name: str
    email: str
    age: int
    class_: str = strawberry.field(name="class")
    subjects: List[str]
    department: Optional[str]
    position: str
    avatar: str
    phone: Optional[str]
    address: Optional[str]
    join_date: str
    salary: Optional[float]
    flagged: bool
    created_at: str
    updated_at: str

    @strawberry.field
    async def tasks(self, info: Info) -> List["TaskType"]:
        tasks = await info.context.services.tasks.for_employee(self.id)
        return [TaskType.from_model(task) for task in tasks]

    @strawberry.field
    async def attendance(self, info: Info) -> List["AttendanceRecordType"]:
        records = await info.context.services.attendance.for_employee(self.id)
        return [AttendanceRecordType.from_model(record) for record in records]

    @classmethod
    def from_model(cls, employee: model.Employee) -> "EmployeeType":
        return cls(
            id=employee.id,
            name=employee.name,
            email=employee.email,
            age=employee.age,
            class_=employee.class_,
            subjects=list(employee.subjects or []),
            department=employee.department,
            position=employee.position,
            avatar=employee.avatar,
            phone=employee.phone,
            address=employee.address,
            join_date=to_iso(employee.join_date),
            salary=employee.salary,
            flagged=employee.flagged,
            created_at=to_iso(employee.created_at),
            updated_at=to_iso(employee.updated_at),
        )


async def resolve_employee(info: Info, employee_id: int) -> EmployeeType:
    employee = await info.context.services.employees.find(employee_id)
    if employee is None:
        raise NotFound(f"Employee {employee_id} not found")
    return EmployeeType.from_model(employee)


@strawberry.type(name="Task")
class TaskType:
    id: int
    title: str
    description: Optional[str]
    completed: bool
    priority: str
    due_date: Optional[str]
    employee_id: int
    created_at: str
    updated_at: str

    @strawberry.field
    async def employee(self, info: Info) -> EmployeeType:
        return await resolve_employee(info, self.employee_id)

    @classmethod
    def from_model(cls, task: model.Task) -> "TaskType":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            completed=task.completed,
            priority=task.priority,
            due_date=to_iso(task.due_date),
            employee_id=task.employee_id,
            created_at=to_iso(task.created_at),
            updated_at=to_iso(task.updated_at),
        )


@strawberry.type(name="AttendanceRecord")
class AttendanceRecordType:
    id: int
    employee_id: int
    date: str
    status: AttendanceStatus
    check_in: Optional[str]
    check_out: Optional[str]
    notes: Optional[str]
    created_at: str

    @strawberry.field
    async def employee(self, info: Info) -> EmployeeType:
        return await resolve_employee(info, self.employee_id)

    @classmethod
    def from_model(cls, record: model.AttendanceRecord) -> "AttendanceRecordType":
        return cls(
            id=record.id,
            employee_id=record.employee_id,
            date=to_iso(record.date),
            status=record.status,
            check_in=to_iso(record.check_in),
            check_out=to_iso(record.check_out),
            notes=record.notes,
            created_at=to_iso(record.created_at),
        )


@strawberry.type(name="EmployeeConnection")
class EmployeeConnection:
    edges: List[EmployeeType]
    total_count: int
    has_next_page: bool


@strawberry.input(name="EmployeeFilterInput")
class EmployeeFilterInput:
    name: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    class_: Optional[str] = strawberry.field(default=None, name="class")
    flagged: Optional[bool] = None

    def to_filter(self) -> EmployeeFilter:
        return EmployeeFilter(
            name=self.name,
            department=self.department,
            position=self.position,
            class_=self.class_,
            flagged=self.flagged,
        )


@strawberry.input(name="EmployeeSortInput")
class EmployeeSortInput:
    field: str
    order: str

    def to_sort(self) -> EmployeeSort:
        return EmployeeSort(field=self.field, order=self.order)
