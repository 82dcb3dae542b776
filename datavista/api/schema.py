"""GraphQL queries and mutations.

Resolvers only translate between GraphQL arguments and the domain services:
arguments are validated into pydantic schemas, results are converted into
the GraphQL types of ``datavista.api.types``.
"""
import logging
from typing import Annotated, Any, Dict, List, Optional

import strawberry
from graphql import GraphQLError
from strawberry.extensions import SchemaExtension
from strawberry.types import Info

from datavista.api.types import (
    AttendanceRecordType,
    AttendanceStatus,
    AuthPayloadType,
    EmployeeConnection,
    EmployeeFilterInput,
    EmployeeSortInput,
    EmployeeType,
    Role,
    TaskType,
    UserType,
)
from datavista.core.exceptions import AppError, Internal
from datavista.core.query import EmployeeFilter, EmployeeQuery
from datavista.schemas.schema import (
    AttendanceInput,
    Credentials,
    EmployeeCreate,
    EmployeeUpdate,
    RegisterInput,
    TaskCreate,
    TaskUpdate,
    parse_date,
    parse_input,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def supplied(**arguments: Any) -> Dict[str, Any]:
    """Keep only the arguments the client actually sent"""
    return {key: value for key, value in arguments.items() if value is not strawberry.UNSET}


@strawberry.type
class Query:
    @strawberry.field
    async def me(self, info: Info) -> Optional[UserType]:
        user = await info.context.services.auth.me(info.context.auth)
        return UserType.from_model(user) if user else None

    @strawberry.field
    async def employees(
        self,
        info: Info,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        filter: Optional[EmployeeFilterInput] = None,
        sort: Optional[EmployeeSortInput] = None,
    ) -> EmployeeConnection:
        query = EmployeeQuery(
            filter=filter.to_filter() if filter else EmployeeFilter(),
            sort=sort.to_sort() if sort else None,
            limit=limit,
            offset=offset,
        )
        page = await info.context.services.employees.list(info.context.auth, query)

        return EmployeeConnection(
            edges=[EmployeeType.from_model(employee) for employee in page.items],
            total_count=page.total_count,
            has_next_page=page.has_next_page,
        )

    @strawberry.field
    async def employee(self, info: Info, id: int) -> Optional[EmployeeType]:
        employee = await info.context.services.employees.get(info.context.auth, id)
        return EmployeeType.from_model(employee) if employee else None

    @strawberry.field
    async def tasks(
        self,
        info: Info,
        employee_id: Optional[int] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[TaskType]:
        tasks = await info.context.services.tasks.list(info.context.auth, employee_id, limit, offset)
        return [TaskType.from_model(task) for task in tasks]

    @strawberry.field
    async def task(self, info: Info, id: int) -> Optional[TaskType]:
        task = await info.context.services.tasks.get(info.context.auth, id)
        return TaskType.from_model(task) if task else None

    @strawberry.field
    async def attendance(
        self,
        info: Info,
        employee_id: int,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[AttendanceRecordType]:
        records = await info.context.services.attendance.list(
            info.context.auth,
            employee_id,
            parse_date(start_date, "startDate"),
            parse_date(end_date, "endDate"),
        )
        return [AttendanceRecordType.from_model(record) for record in records]


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def register(
        self,
        info: Info,
        email: str,
        password: str,
        role: Optional[Role] = None,
    ) -> AuthPayloadType:
        data = parse_input(RegisterInput, supplied(email=email, password=password, role=role or strawberry.UNSET))
        payload = await info.context.services.auth.register(data)
        return AuthPayloadType(token=payload.token, user=UserType.from_model(payload.user))

    @strawberry.mutation
    async def login(self, info: Info, email: str, password: str) -> AuthPayloadType:
        data = parse_input(Credentials, {"email": email, "password": password})
        payload = await info.context.services.auth.login(data)
        return AuthPayloadType(token=payload.token, user=UserType.from_model(payload.user))

    @strawberry.mutation
    async def add_employee(
        self,
        info: Info,
        name: str,
        email: str,
        age: int,
        class_: Annotated[str, strawberry.argument(name="class")],
        subjects: List[str],
        position: str,
        avatar: str,
        department: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        salary: Optional[float] = None,
        join_date: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> EmployeeType:
        data = parse_input(EmployeeCreate, {
            "name": name,
            "email": email,
            "age": age,
            "class_": class_,
            "subjects": subjects,
            "department": department,
            "position": position,
            "avatar": avatar,
            "phone": phone,
            "address": address,
            "salary": salary,
            "join_date": join_date,
            "user_id": user_id,
        })
        employee = await info.context.services.employees.add(info.context.auth, data)
        return EmployeeType.from_model(employee)

    @strawberry.mutation
    async def update_employee(
        self,
        info: Info,
        id: int,
        name: Optional[str] = strawberry.UNSET,
        age: Optional[int] = strawberry.UNSET,
        class_: Annotated[Optional[str], strawberry.argument(name="class")] = strawberry.UNSET,
        subjects: Optional[List[str]] = strawberry.UNSET,
        department: Optional[str] = strawberry.UNSET,
        position: Optional[str] = strawberry.UNSET,
        avatar: Optional[str] = strawberry.UNSET,
        phone: Optional[str] = strawberry.UNSET,
        address: Optional[str] = strawberry.UNSET,
        salary: Optional[float] = strawberry.UNSET,
    ) -> EmployeeType:
        data = parse_input(EmployeeUpdate, supplied(
            name=name,
            age=age,
            class_=class_,
            subjects=subjects,
            department=department,
            position=position,
            avatar=avatar,
            phone=phone,
            address=address,
            salary=salary,
        ))
        employee = await info.context.services.employees.update(info.context.auth, id, data)
        return EmployeeType.from_model(employee)

    @strawberry.mutation
    async def delete_employee(self, info: Info, id: int) -> EmployeeType:
        employee = await info.context.services.employees.delete(info.context.auth, id)
        return EmployeeType.from_model(employee)

    @strawberry.mutation
    async def flag_employee(self, info: Info, id: int, flagged: bool) -> EmployeeType:
        employee = await info.context.services.employees.flag(info.context.auth, id, flagged)
        return EmployeeType.from_model(employee)

    @strawberry.mutation
    async def add_task(
        self,
        info: Info,
        title: str,
        employee_id: int,
        description: Optional[str] = None,
        completed: Optional[bool] = None,
        priority: Optional[str] = None,
        due_date: Optional[str] = None,
    ) -> TaskType:
        data = parse_input(TaskCreate, {
            "title": title,
            "description": description,
            "completed": completed,
            "priority": priority,
            "due_date": due_date,
            "employee_id": employee_id,
        })
        task = await info.context.services.tasks.add(info.context.auth, data)
        return TaskType.from_model(task)

    @strawberry.mutation
    async def update_task(
        self,
        info: Info,
        id: int,
        title: Optional[str] = strawberry.UNSET,
        description: Optional[str] = strawberry.UNSET,
        completed: Optional[bool] = strawberry.UNSET,
        priority: Optional[str] = strawberry.UNSET,
        due_date: Optional[str] = strawberry.UNSET,
    ) -> TaskType:
        data = parse_input(TaskUpdate, supplied(
            title=title,
            description=description,
            completed=completed,
            priority=priority,
            due_date=due_date,
        ))
        task = await info.context.services.tasks.update(info.context.auth, id, data)
        return TaskType.from_model(task)

    @strawberry.mutation
    async def delete_task(self, info: Info, id: int) -> TaskType:
        task = await info.context.services.tasks.delete(info.context.auth, id)
        return TaskType.from_model(task)

    @strawberry.mutation
    async def record_attendance(
        self,
        info: Info,
        employee_id: int,
        date: str,
        status: AttendanceStatus,
        check_in: Optional[str] = None,
        check_out: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> AttendanceRecordType:
        data = parse_input(AttendanceInput, {
            "employee_id": employee_id,
            "date": date,
            "status": status,
            "check_in": check_in,
            "check_out": check_out,
            "notes": notes,
        })
        record = await info.context.services.attendance.record(info.context.auth, data)
        return AttendanceRecordType.from_model(record)


class ErrorFormatter(SchemaExtension):
    """Give every unexpected error the ``INTERNAL_SERVER_ERROR`` code.

    When the request context disables verbose errors the original message
    is replaced as well, so storage and programming errors never leak to
    clients.
    """

    def on_operation(self):
        yield
        result = self.execution_context.result
        errors = getattr(result, "errors", None)
        if errors:
            result.errors = [self.format_error(error) for error in errors]

    @property
    def verbose(self) -> bool:
        return getattr(self.execution_context.context, "verbose_errors", True)

    def format_error(self, error: GraphQLError) -> GraphQLError:
        original = error.original_error
        if original is None or isinstance(original, AppError):
            return error

        return GraphQLError(
            error.message if self.verbose else INTERNAL_ERROR_MESSAGE,
            nodes=error.nodes,
            source=error.source,
            positions=error.positions,
            path=error.path,
            original_error=original,
            extensions={"code": Internal.code},
        )


class DataVistaSchema(strawberry.Schema):
    def process_errors(self, errors, execution_context=None) -> None:
        unexpected = []
        for error in errors:
            if isinstance(error.original_error, AppError):
                logger.warning(f"{error.original_error.code} at {error.path}: {error.message}")
            else:
                unexpected.append(error)

        if unexpected:
            super().process_errors(unexpected, execution_context)


schema = DataVistaSchema(
    query=Query,
    mutation=Mutation,
    extensions=[ErrorFormatter],
)
