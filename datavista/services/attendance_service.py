import logging
from datetime import date
from typing import List, Optional

from datavista.core.database import Database, Repository
from datavista.core.decorators import log_execution_time
from datavista.core.exceptions import NotFound
from datavista.core.query import EMPLOYEE_ATTENDANCE_LIMIT, attendance_criteria, attendance_order_by
from datavista.core.security import AuthContext, require_admin, require_authenticated
from datavista.models.model import AttendanceRecord, Employee
from datavista.schemas.schema import AttendanceInput

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(self, database: Database):
        self.database = database
        self.records = Repository(AttendanceRecord)
        self.employees = Repository(Employee)

    @log_execution_time
    async def list(
        self,
        context: AuthContext,
        employee_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[AttendanceRecord]:
        require_authenticated(context)

        async with self.database.session() as session:
            return await self.records.find_many(
                session,
                attendance_criteria(employee_id, start_date, end_date),
                attendance_order_by(),
            )

    async def for_employee(self, employee_id: int, limit: int = EMPLOYEE_ATTENDANCE_LIMIT) -> List[AttendanceRecord]:
        async with self.database.session() as session:
            return await self.records.find_many(
                session, attendance_criteria(employee_id), attendance_order_by(), limit
            )

    @log_execution_time
    async def record(self, context: AuthContext, data: AttendanceInput) -> AttendanceRecord:
        """Create or overwrite the record for ``(employee_id, date)``."""
        require_admin(context)

        async with self.database.session() as session:
            if not await self.employees.exists(session, id=data.employee_id):
                raise NotFound(f"Employee {data.employee_id} not found")

            record = await self.records.upsert(
                session,
                keys={"employee_id": data.employee_id, "date": data.date},
                values={
                    "status": data.status,
                    "check_in": data.check_in,
                    "check_out": data.check_out,
                    "notes": data.notes,
                },
            )

        logger.info(f"Attendance recorded: employee {record.employee_id} on {record.date} as {record.status.value}")
        return record
