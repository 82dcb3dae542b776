from dataclasses import dataclass

from datavista.core.database import Database
from datavista.core.security import CredentialService
from datavista.services.attendance_service import AttendanceService
from datavista.services.auth_service import AuthPayload, AuthService
from datavista.services.employee_service import EmployeeService
from datavista.services.task_service import TaskService


@dataclass
class Services:
    credentials: CredentialService
    auth: AuthService
    employees: EmployeeService
    tasks: TaskService
    attendance: AttendanceService


def build_services(
    database: Database,
    credentials: CredentialService,
    enforce_task_ownership: bool = False,
) -> Services:
    return Services(
        credentials=credentials,
        auth=AuthService(database, credentials),
        employees=EmployeeService(database),
        tasks=TaskService(database, enforce_ownership=enforce_task_ownership),
        attendance=AttendanceService(database),
    )


__all__ = [
    "AuthPayload",
    "AttendanceService",
    "AuthService",
    "EmployeeService",
    "Services",
    "TaskService",
    "build_services",
]
