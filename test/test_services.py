from datetime import date

import pytest

from datavista.core.exceptions import (
    Conflict,
    Forbidden,
    InvalidCredentials,
    NotFound,
    Unauthenticated,
    ValidationFailed,
)
from datavista.core.query import EmployeeFilter, EmployeeQuery, EmployeeSort
from datavista.core.security import AuthContext
from datavista.models.model import AttendanceStatus, Role
from datavista.schemas.schema import (
    AttendanceInput,
    Credentials,
    EmployeeCreate,
    EmployeeUpdate,
    RegisterInput,
    TaskCreate,
    TaskUpdate,
)
from datavista.services import build_services

from conftest import employee_fields


# Authentication

async def test_register_then_login(services, credentials):
    """Test register followed by login returns a token for the same subject"""
    registered = await services.auth.register(RegisterInput(email="new@datavista.com", password="secret"))
    logged_in = await services.auth.login(Credentials(email="new@datavista.com", password="secret"))

    assert logged_in.user.id == registered.user.id
    assert logged_in.user.role == Role.EMPLOYEE

    claims = credentials.decode_access_token(logged_in.token)
    assert claims.subject_id == registered.user.id
    assert claims.role == Role.EMPLOYEE


async def test_register_stores_digest_not_password(services):
    payload = await services.auth.register(RegisterInput(email="a@datavista.com", password="secret"))
    assert payload.user.password != "secret"


async def test_register_duplicate_email_conflicts(services):
    await services.auth.register(RegisterInput(email="dup@datavista.com", password="one"))

    with pytest.raises(Conflict):
        await services.auth.register(RegisterInput(email="dup@datavista.com", password="two"))


async def test_login_failures_are_indistinguishable(services):
    """Test wrong password and unknown email raise the same error"""
    await services.auth.register(RegisterInput(email="user@datavista.com", password="right"))

    with pytest.raises(InvalidCredentials) as wrong_password:
        await services.auth.login(Credentials(email="user@datavista.com", password="wrong"))
    with pytest.raises(InvalidCredentials) as unknown_email:
        await services.auth.login(Credentials(email="nobody@datavista.com", password="right"))

    assert wrong_password.value.message == unknown_email.value.message


async def test_me_requires_authentication(services, anonymous):
    with pytest.raises(Unauthenticated):
        await services.auth.me(anonymous)


async def test_me_returns_current_user(services, employee_user):
    user, context = employee_user
    me = await services.auth.me(context)
    assert me.email == user.email


# Employees

async def test_add_employee_requires_admin(services, anonymous, employee_user):
    _, context = employee_user
    data = EmployeeCreate(**employee_fields(0))

    with pytest.raises(Unauthenticated):
        await services.employees.add(anonymous, data)
    with pytest.raises(Forbidden):
        await services.employees.add(context, data)


async def test_add_employee_defaults(services, admin):
    employee = await services.employees.add(admin, EmployeeCreate(**employee_fields(1)))

    assert employee.id is not None
    assert employee.flagged is False
    assert employee.join_date is not None
    assert employee.subjects == ["Product Strategy", "Agile", "Leadership", "Analytics"]
    assert await services.tasks.for_employee(employee.id) == []
    assert await services.attendance.for_employee(employee.id) == []


async def test_add_employee_duplicate_email_conflicts(services, admin, staff):
    with pytest.raises(Conflict):
        await services.employees.add(admin, EmployeeCreate(**employee_fields(2, name="Someone Else")))


async def test_add_employee_linked_to_unknown_user(services, admin):
    with pytest.raises(NotFound):
        await services.employees.add(admin, EmployeeCreate(**employee_fields(0, user_id=999)))


async def test_add_employee_user_already_linked(services, admin, employee_user):
    user, _ = employee_user
    await services.employees.add(admin, EmployeeCreate(**employee_fields(0, user_id=user.id)))

    with pytest.raises(Conflict):
        await services.employees.add(admin, EmployeeCreate(**employee_fields(1, user_id=user.id)))

    linked = await services.employees.find_for_user(user.id)
    assert linked.name == "Sarah Johnson"


async def test_list_requires_authentication(services, anonymous):
    with pytest.raises(Unauthenticated):
        await services.employees.list(anonymous, EmployeeQuery())


async def test_list_filters_by_department(services, staff, employee_user):
    _, context = employee_user
    page = await services.employees.list(context, EmployeeQuery(filter=EmployeeFilter(department="Engineering")))

    assert page.total_count == 2
    assert {employee.name for employee in page.items} == {"Sarah Johnson", "Alex Thompson"}
    assert all(employee.department == "Engineering" for employee in page.items)


async def test_list_filters_by_name_case_insensitively(services, admin, staff):
    page = await services.employees.list(admin, EmployeeQuery(filter=EmployeeFilter(name="sar")))
    assert [employee.name for employee in page.items] == ["Sarah Johnson"]


async def test_list_name_filter_escapes_wildcards(services, admin, staff):
    page = await services.employees.list(admin, EmployeeQuery(filter=EmployeeFilter(name="%")))
    assert page.total_count == 0


async def test_list_filters_by_flagged(services, admin, staff):
    flagged = await services.employees.list(admin, EmployeeQuery(filter=EmployeeFilter(flagged=True)))
    unflagged = await services.employees.list(admin, EmployeeQuery(filter=EmployeeFilter(flagged=False)))

    assert [employee.name for employee in flagged.items] == ["Emily Rodriguez"]
    assert unflagged.total_count == 5


async def test_list_pages_are_disjoint_and_complete(services, admin, staff):
    """Test offset pagination over the six demo employees"""
    seen = []
    offset = 0
    pages = []
    while True:
        page = await services.employees.list(admin, EmployeeQuery(limit=2, offset=offset))
        pages.append(page)
        seen.extend(employee.id for employee in page.items)
        if not page.has_next_page:
            break
        offset += 2

    assert len(pages) == 3
    assert pages[0].has_next_page is True
    assert pages[-1].has_next_page is False
    assert all(page.total_count == 6 for page in pages)
    assert seen == sorted(employee.id for employee in staff)


async def test_list_default_page_size(services, admin, staff):
    page = await services.employees.list(admin, EmployeeQuery())
    assert len(page.items) == 6
    assert page.limit == 10
    assert page.has_next_page is False


async def test_list_sorts_by_salary_descending(services, admin, staff):
    page = await services.employees.list(admin, EmployeeQuery(sort=EmployeeSort(field="salary", order="desc")))
    salaries = [employee.salary for employee in page.items]
    assert salaries == sorted(salaries, reverse=True)


async def test_list_rejects_unknown_sort_field(services, admin, staff):
    with pytest.raises(ValidationFailed):
        await services.employees.list(admin, EmployeeQuery(sort=EmployeeSort(field="password", order="asc")))


async def test_update_by_other_employee_is_forbidden(services, staff, employee_user):
    _, context = employee_user
    with pytest.raises(Forbidden):
        await services.employees.update(context, staff[1].id, EmployeeUpdate(position="CEO"))


async def test_update_missing_employee(services, admin):
    with pytest.raises(NotFound):
        await services.employees.update(admin, 999, EmployeeUpdate(position="CEO"))


async def test_linked_employee_updates_own_record_but_not_salary(services, admin, employee_user):
    """Test a non-admin salary change is ignored while other fields apply"""
    user, context = employee_user
    own = await services.employees.add(admin, EmployeeCreate(**employee_fields(0, user_id=user.id)))

    updated = await services.employees.update(
        context, own.id, EmployeeUpdate(phone="+1-555-9999", salary=1.0)
    )

    assert updated.phone == "+1-555-9999"
    assert updated.salary == 125000


async def test_admin_updates_salary(services, admin, staff):
    updated = await services.employees.update(admin, staff[0].id, EmployeeUpdate(salary=130000))
    assert updated.salary == 130000


async def test_update_distinguishes_absent_from_null(services, admin, staff):
    """Test zero and empty values are written and null clears optional fields"""
    updated = await services.employees.update(
        admin, staff[0].id, EmployeeUpdate(age=0, address="", department=None)
    )

    assert updated.age == 0
    assert updated.address == ""
    assert updated.department is None
    assert updated.name == "Sarah Johnson"
    assert updated.phone == "+1-555-0101"


def test_update_rejects_null_for_required_field():
    with pytest.raises(ValueError):
        EmployeeUpdate(name=None)


async def test_flag_employee(services, admin, staff, employee_user):
    _, context = employee_user

    with pytest.raises(Forbidden):
        await services.employees.flag(context, staff[0].id, True)

    flagged = await services.employees.flag(admin, staff[0].id, True)
    assert flagged.flagged is True

    unflagged = await services.employees.flag(admin, staff[0].id, False)
    assert unflagged.flagged is False


async def test_flag_missing_employee(services, admin):
    with pytest.raises(NotFound):
        await services.employees.flag(admin, 999, True)


async def test_delete_employee_cascades(services, admin, staff):
    """Test deleting an employee removes its tasks and attendance"""
    target = staff[0]
    await services.tasks.add(admin, TaskCreate(title="Review", employee_id=target.id))
    await services.tasks.add(admin, TaskCreate(title="Deploy", employee_id=target.id))
    await services.tasks.add(admin, TaskCreate(title="Other", employee_id=staff[1].id))
    await services.attendance.record(
        admin, AttendanceInput(employee_id=target.id, date="2024-11-25", status=AttendanceStatus.PRESENT)
    )

    deleted = await services.employees.delete(admin, target.id)

    assert deleted.id == target.id
    assert await services.employees.find(target.id) is None
    assert await services.tasks.list(admin, employee_id=target.id) == []
    assert await services.attendance.list(admin, target.id) == []
    assert len(await services.tasks.list(admin, employee_id=staff[1].id)) == 1


async def test_delete_missing_employee(services, admin):
    with pytest.raises(NotFound):
        await services.employees.delete(admin, 999)


async def test_delete_requires_admin(services, staff, employee_user):
    _, context = employee_user
    with pytest.raises(Forbidden):
        await services.employees.delete(context, staff[0].id)


# Tasks

async def test_add_task_defaults(services, staff, employee_user):
    _, context = employee_user
    task = await services.tasks.add(context, TaskCreate(title="Write report", employee_id=staff[3].id))

    assert task.completed is False
    assert task.priority == "medium"
    assert task.description is None


async def test_add_task_null_defaults(services, admin, staff):
    task = await services.tasks.add(
        admin, TaskCreate(title="Plan", employee_id=staff[0].id, completed=None, priority=None)
    )
    assert task.completed is False
    assert task.priority == "medium"


def test_task_rejects_unknown_priority():
    with pytest.raises(ValueError):
        TaskCreate(title="Plan", employee_id=1, priority="urgent")


async def test_add_task_requires_authentication(services, anonymous, staff):
    with pytest.raises(Unauthenticated):
        await services.tasks.add(anonymous, TaskCreate(title="Plan", employee_id=staff[0].id))


async def test_add_task_for_missing_employee(services, admin):
    with pytest.raises(NotFound):
        await services.tasks.add(admin, TaskCreate(title="Plan", employee_id=999))


async def test_update_task_partially(services, admin, staff):
    task = await services.tasks.add(
        admin, TaskCreate(title="Plan", description="Q1", priority="high", employee_id=staff[0].id)
    )

    updated = await services.tasks.update(admin, task.id, TaskUpdate(completed=True))

    assert updated.completed is True
    assert updated.title == "Plan"
    assert updated.description == "Q1"
    assert updated.priority == "high"

    cleared = await services.tasks.update(admin, task.id, TaskUpdate(description=None))
    assert cleared.description is None


async def test_update_and_delete_missing_task(services, admin):
    with pytest.raises(NotFound):
        await services.tasks.update(admin, 999, TaskUpdate(completed=True))
    with pytest.raises(NotFound):
        await services.tasks.delete(admin, 999)


async def test_delete_task(services, admin, staff):
    task = await services.tasks.add(admin, TaskCreate(title="Plan", employee_id=staff[0].id))

    deleted = await services.tasks.delete(admin, task.id)

    assert deleted.id == task.id
    assert await services.tasks.get(admin, task.id) is None


async def test_any_user_manages_any_task_by_default(services, admin, staff, employee_user):
    _, context = employee_user
    task = await services.tasks.add(admin, TaskCreate(title="Plan", employee_id=staff[1].id))

    updated = await services.tasks.update(context, task.id, TaskUpdate(completed=True))
    assert updated.completed is True


async def test_task_ownership_enforced_when_enabled(database, credentials, admin, staff, employee_user):
    user, context = employee_user
    strict = build_services(database, credentials, enforce_task_ownership=True)
    own = await strict.employees.add(admin, EmployeeCreate(**employee_fields(0, email="own@datavista.com", user_id=user.id)))
    other_task = await strict.tasks.add(admin, TaskCreate(title="Other", employee_id=staff[1].id))

    with pytest.raises(Forbidden):
        await strict.tasks.add(context, TaskCreate(title="Plan", employee_id=staff[1].id))
    with pytest.raises(Forbidden):
        await strict.tasks.update(context, other_task.id, TaskUpdate(completed=True))
    with pytest.raises(Forbidden):
        await strict.tasks.delete(context, other_task.id)

    own_task = await strict.tasks.add(context, TaskCreate(title="Mine", employee_id=own.id))
    assert (await strict.tasks.update(context, own_task.id, TaskUpdate(completed=True))).completed is True


async def test_task_list_pagination_and_order(services, admin, staff):
    for index in range(3):
        await services.tasks.add(admin, TaskCreate(title=f"Task {index}", employee_id=staff[0].id))

    tasks = await services.tasks.list(admin, employee_id=staff[0].id)
    assert [task.title for task in tasks] == ["Task 2", "Task 1", "Task 0"]

    second_page = await services.tasks.list(admin, employee_id=staff[0].id, limit=2, offset=2)
    assert [task.title for task in second_page] == ["Task 0"]


# Attendance

async def test_record_attendance_upserts(services, admin, staff):
    """Test recording the same day twice keeps one row with the latest values"""
    employee_id = staff[0].id
    await services.attendance.record(
        admin, AttendanceInput(employee_id=employee_id, date="2024-11-25", status=AttendanceStatus.PRESENT)
    )
    latest = await services.attendance.record(
        admin,
        AttendanceInput(
            employee_id=employee_id,
            date="2024-11-25T00:00:00.000Z",
            status=AttendanceStatus.LATE,
            notes="Traffic",
        ),
    )

    records = await services.attendance.list(admin, employee_id)

    assert len(records) == 1
    assert records[0].id == latest.id
    assert records[0].status == AttendanceStatus.LATE
    assert records[0].notes == "Traffic"
    assert records[0].date == date(2024, 11, 25)


async def test_record_attendance_replaces_whole_day(services, admin, staff):
    """Test a later record for the same day does not keep earlier optional fields"""
    employee_id = staff[0].id
    await services.attendance.record(
        admin,
        AttendanceInput(
            employee_id=employee_id,
            date="2024-11-25",
            status=AttendanceStatus.LATE,
            check_in="2024-11-25T10:30:00",
            notes="Medical appointment",
        ),
    )
    latest = await services.attendance.record(
        admin, AttendanceInput(employee_id=employee_id, date="2024-11-25", status=AttendanceStatus.PRESENT)
    )

    assert latest.status == AttendanceStatus.PRESENT
    assert latest.check_in is None
    assert latest.notes is None


async def test_record_attendance_requires_admin(services, staff, employee_user):
    _, context = employee_user
    with pytest.raises(Forbidden):
        await services.attendance.record(
            context, AttendanceInput(employee_id=staff[0].id, date="2024-11-25", status=AttendanceStatus.PRESENT)
        )


async def test_record_attendance_for_missing_employee(services, admin):
    with pytest.raises(NotFound):
        await services.attendance.record(
            admin, AttendanceInput(employee_id=999, date="2024-11-25", status=AttendanceStatus.PRESENT)
        )


async def test_attendance_range_is_inclusive(services, admin, staff):
    employee_id = staff[0].id
    for day in ("2024-11-24", "2024-11-25", "2024-11-26", "2024-11-27"):
        await services.attendance.record(
            admin, AttendanceInput(employee_id=employee_id, date=day, status=AttendanceStatus.PRESENT)
        )

    records = await services.attendance.list(admin, employee_id, date(2024, 11, 25), date(2024, 11, 26))
    assert [record.date for record in records] == [date(2024, 11, 26), date(2024, 11, 25)]

    open_ended = await services.attendance.list(admin, employee_id, start_date=date(2024, 11, 26))
    assert [record.date for record in open_ended] == [date(2024, 11, 27), date(2024, 11, 26)]


async def test_attendance_requires_authentication(services, anonymous, staff):
    with pytest.raises(Unauthenticated):
        await services.attendance.list(anonymous, staff[0].id)


async def test_non_admin_listing_is_allowed(services, admin, staff):
    context = AuthContext(subject_id=99, role=Role.EMPLOYEE)
    assert (await services.employees.get(context, staff[0].id)).name == "Sarah Johnson"
    assert await services.tasks.list(context) == []
    assert await services.attendance.list(context, staff[0].id) == []
