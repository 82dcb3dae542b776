import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from datavista.core.database import Database, Repository
from datavista.core.decorators import log_execution_time
from datavista.core.exceptions import Conflict, Forbidden, NotFound
from datavista.core.query import (
    EMPLOYEE_PAGE_SIZE,
    EmployeeQuery,
    Page,
    employee_criteria,
    employee_order_by,
    validate_pagination,
)
from datavista.core.security import AuthContext, require_admin, require_authenticated
from datavista.models.model import AttendanceRecord, Employee, Task, User
from datavista.schemas.schema import EmployeeCreate, EmployeeUpdate

logger = logging.getLogger(__name__)


class EmployeeService:
    def __init__(self, database: Database):
        self.database = database
        self.employees = Repository(Employee)
        self.users = Repository(User)
        self.tasks = Repository(Task)
        self.attendance = Repository(AttendanceRecord)

    @log_execution_time
    async def list(self, context: AuthContext, query: EmployeeQuery) -> Page[Employee]:
        require_authenticated(context)

        limit, offset = validate_pagination(query.limit, query.offset, EMPLOYEE_PAGE_SIZE)
        criteria = employee_criteria(query.filter)
        order_by = employee_order_by(query.sort)

        async with self.database.session() as session:
            items = await self.employees.find_many(session, criteria, order_by, limit, offset)
            total_count = await self.employees.count(session, criteria)

        return Page(items=items, total_count=total_count, limit=limit, offset=offset)

    async def get(self, context: AuthContext, employee_id: int) -> Optional[Employee]:
        require_authenticated(context)
        return await self.find(employee_id)

    async def find(self, employee_id: int) -> Optional[Employee]:
        async with self.database.session() as session:
            return await self.employees.get(session, employee_id)

    async def find_for_user(self, user_id: int) -> Optional[Employee]:
        async with self.database.session() as session:
            return await self.employees.find_unique(session, user_id=user_id)

    @log_execution_time
    async def add(self, context: AuthContext, data: EmployeeCreate) -> Employee:
        require_admin(context)

        async with self.database.session() as session:
            if await self.employees.exists(session, email=data.email):
                raise Conflict(f"Employee with email {data.email} already exists")

            if data.user_id is not None:
                if not await self.users.exists(session, id=data.user_id):
                    raise NotFound(f"User {data.user_id} not found")
                if await self.employees.exists(session, user_id=data.user_id):
                    raise Conflict(f"User {data.user_id} already has an employee profile")

            try:
                employee = await self.employees.create(session, data.model_dump(exclude_none=True))
            except IntegrityError as e:
                raise Conflict("Employee already exists") from e

        logger.info(f"Employee created: {employee.id}")
        return employee

    @log_execution_time
    async def update(self, context: AuthContext, employee_id: int, data: EmployeeUpdate) -> Employee:
        require_authenticated(context)

        async with self.database.session() as session:
            employee = await self.employees.get(session, employee_id)
            if employee is None:
                raise NotFound(f"Employee {employee_id} not found")

            if not context.is_admin and employee.user_id != context.subject_id:
                raise Forbidden("You can only update your own employee record")

            changes = data.model_dump(exclude_unset=True)
            if not context.is_admin and changes.pop("salary", None) is not None:
                logger.info(f"Ignoring salary change on employee {employee_id} by non-admin user {context.subject_id}")

            return await self.employees.update(session, employee_id, changes)

    @log_execution_time
    async def delete(self, context: AuthContext, employee_id: int) -> Employee:
        require_admin(context)

        async with self.database.session() as session:
            employee = await self.employees.get(session, employee_id)
            if employee is None:
                raise NotFound(f"Employee {employee_id} not found")

            tasks_deleted = await self.tasks.delete_where(session, Task.employee_id == employee_id)
            records_deleted = await self.attendance.delete_where(session, AttendanceRecord.employee_id == employee_id)
            await self.employees.delete(session, employee_id)

        logger.info(
            f"Employee {employee_id} deleted with {tasks_deleted} tasks "
            f"and {records_deleted} attendance records"
        )
        return employee

    @log_execution_time
    async def flag(self, context: AuthContext, employee_id: int, flagged: bool) -> Employee:
        require_admin(context)

        async with self.database.session() as session:
            if not await self.employees.exists(session, id=employee_id):
                raise NotFound(f"Employee {employee_id} not found")

            return await self.employees.update(session, employee_id, {"flagged": flagged})
