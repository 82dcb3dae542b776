import logging
from typing import List, Optional

from datavista.core.database import Database, Repository
from datavista.core.decorators import log_execution_time
from datavista.core.exceptions import Forbidden, NotFound
from datavista.core.query import TASK_PAGE_SIZE, task_criteria, task_order_by, validate_pagination
from datavista.core.security import AuthContext, require_authenticated
from datavista.models.model import Employee, Task
from datavista.schemas.schema import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


class TaskService:
    """Task operations.

    Any authenticated user may manage any task unless ``enforce_ownership``
    is set, in which case only administrators and the user linked to the
    task's employee may create, change or delete it.
    """

    def __init__(self, database: Database, enforce_ownership: bool = False):
        self.database = database
        self.enforce_ownership = enforce_ownership
        self.tasks = Repository(Task)
        self.employees = Repository(Employee)

    @log_execution_time
    async def list(
        self,
        context: AuthContext,
        employee_id: Optional[int] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Task]:
        require_authenticated(context)
        limit, offset = validate_pagination(limit, offset, TASK_PAGE_SIZE)

        async with self.database.session() as session:
            return await self.tasks.find_many(
                session, task_criteria(employee_id), task_order_by(), limit, offset
            )

    async def get(self, context: AuthContext, task_id: int) -> Optional[Task]:
        require_authenticated(context)

        async with self.database.session() as session:
            return await self.tasks.get(session, task_id)

    async def for_employee(self, employee_id: int) -> List[Task]:
        async with self.database.session() as session:
            return await self.tasks.find_many(session, task_criteria(employee_id), task_order_by())

    @log_execution_time
    async def add(self, context: AuthContext, data: TaskCreate) -> Task:
        require_authenticated(context)

        async with self.database.session() as session:
            employee = await self.employees.get(session, data.employee_id)
            if employee is None:
                raise NotFound(f"Employee {data.employee_id} not found")
            self._check_ownership(context, employee)

            task = await self.tasks.create(session, data.model_dump())

        logger.info(f"Task {task.id} created for employee {task.employee_id}")
        return task

    @log_execution_time
    async def update(self, context: AuthContext, task_id: int, data: TaskUpdate) -> Task:
        require_authenticated(context)

        async with self.database.session() as session:
            task = await self._get_owned(session, context, task_id)
            return await self.tasks.update(session, task.id, data.model_dump(exclude_unset=True))

    @log_execution_time
    async def delete(self, context: AuthContext, task_id: int) -> Task:
        require_authenticated(context)

        async with self.database.session() as session:
            task = await self._get_owned(session, context, task_id)
            await self.tasks.delete(session, task_id)

        return task

    async def _get_owned(self, session, context: AuthContext, task_id: int) -> Task:
        task = await self.tasks.get(session, task_id)
        if task is None:
            raise NotFound(f"Task {task_id} not found")

        if self.enforce_ownership:
            employee = await self.employees.get(session, task.employee_id)
            self._check_ownership(context, employee)

        return task

    def _check_ownership(self, context: AuthContext, employee: Employee) -> None:
        if not self.enforce_ownership or context.is_admin:
            return
        if employee is None or employee.user_id != context.subject_id:
            raise Forbidden("You can only manage tasks of your own employee record")
