import pytest

from datavista.core.config import Settings
from datavista.core.database import Database
from datavista.core.security import AuthContext, CredentialService
from datavista.models.model import Role
from datavista.schemas.schema import EmployeeCreate, RegisterInput
from datavista.seed import DEMO_EMPLOYEES
from datavista.services import build_services

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_SECRET_KEY = "test-secret-key"


@pytest.fixture
def credentials():
    """Credential service with a cheap bcrypt cost"""
    return CredentialService(TEST_SECRET_KEY, bcrypt_rounds=4)


@pytest.fixture
async def database():
    """Fresh in-memory database per test"""
    db = Database(TEST_DATABASE_URL)
    await db.init_db()
    yield db
    await db.close()


@pytest.fixture
def services(database, credentials):
    return build_services(database, credentials)


@pytest.fixture
def admin():
    return AuthContext(subject_id=1, role=Role.ADMIN)


@pytest.fixture
def anonymous():
    return AuthContext()


def employee_fields(index: int = 0, **overrides) -> dict:
    """Demo employee data usable as EmployeeCreate input"""
    data = {
        key: value for key, value in DEMO_EMPLOYEES[index].items()
        if key not in ("tasks", "attendance", "user_email", "flagged")
    }
    data.update(overrides)
    return data


@pytest.fixture
async def staff(services, admin):
    """The six demo employees, in insertion (id) order"""
    employees = []
    for index in range(len(DEMO_EMPLOYEES)):
        employee = await services.employees.add(admin, EmployeeCreate(**employee_fields(index)))
        if DEMO_EMPLOYEES[index].get("flagged"):
            employee = await services.employees.flag(admin, employee.id, True)
        employees.append(employee)
    return employees


@pytest.fixture
async def employee_user(services):
    """A registered EMPLOYEE account and its auth context"""
    payload = await services.auth.register(
        RegisterInput(email="employee@datavista.com", password="employee123")
    )
    return payload.user, AuthContext(subject_id=payload.user.id, role=Role.EMPLOYEE)


@pytest.fixture
def settings():
    return Settings(
        ENVIRONMENT="test",
        DATABASE_URL=TEST_DATABASE_URL,
        SECRET_KEY=TEST_SECRET_KEY,
        BCRYPT_ROUNDS=4,
        LOG_FILE=None,
    )
