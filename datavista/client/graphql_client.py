# datavista/client/graphql_client.py
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from datavista.client.config import settings
from datavista.client.utils import (
    format_employee_record,
    gather_with_concurrency,
    missing_fields,
    parse_csv_file,
    retry,
)

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)

LOGIN_MUTATION = """
mutation Login($email: String!, $password: String!) {
  login(email: $email, password: $password) {
    token
    user { id email role }
  }
}
"""

ADD_EMPLOYEE_MUTATION = """
mutation AddEmployee(
  $name: String!, $email: String!, $age: Int!, $class: String!,
  $subjects: [String!]!, $position: String!, $avatar: String!,
  $department: String, $phone: String, $address: String,
  $salary: Float, $joinDate: String
) {
  addEmployee(
    name: $name, email: $email, age: $age, class: $class,
    subjects: $subjects, position: $position, avatar: $avatar,
    department: $department, phone: $phone, address: $address,
    salary: $salary, joinDate: $joinDate
  ) {
    id
    name
    email
  }
}
"""


class GraphQLClientError(Exception):
    """A GraphQL response carried errors"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


@dataclass
class DataVistaClient:
    server_url: str = field(default_factory=lambda: settings.SERVER_URL)
    auth_email: str = field(default_factory=lambda: settings.AUTH_EMAIL)
    auth_password: str = field(default_factory=lambda: settings.AUTH_PASSWORD)
    max_workers: int = field(default_factory=lambda: settings.MAX_WORKERS)
    batch_size: int = field(default_factory=lambda: settings.BATCH_SIZE)
    timeout: float = field(default_factory=lambda: settings.TIMEOUT)

    access_token: Optional[str] = field(default_factory=lambda: settings.API_TOKEN)
    session: Optional[aiohttp.ClientSession] = field(default=None)

    async def initialize(self):
        logger.info(f"Connecting to {self.server_url}")
        self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        if not self.access_token:
            await self.authenticate()
        logger.info("Client ready")

    async def close(self):
        if self.session:
            await self.session.close()
        logger.info("Resources released")

    @retry(max_retries=settings.MAX_RETRIES, retry_delay=settings.RETRY_DELAY, exceptions=TRANSPORT_ERRORS)
    async def execute(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """POST one GraphQL operation and return its ``data``, raising on GraphQL errors"""
        if not self.session:
            raise RuntimeError("Client not initialized")

        headers = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        async with self.session.post(
            self.server_url,
            json={"query": query, "variables": variables},
            headers=headers,
        ) as response:
            if response.status >= 500:
                response.raise_for_status()
            payload = await response.json()

        errors = payload.get("errors")
        if errors:
            first = errors[0]
            raise GraphQLClientError(
                first.get("message", "Unknown error"),
                code=(first.get("extensions") or {}).get("code"),
            )

        return payload["data"]

    async def authenticate(self):
        logger.info(f"Logging in as {self.auth_email}")
        self.access_token = None
        data = await self.execute(LOGIN_MUTATION, {"email": self.auth_email, "password": self.auth_password})
        self.access_token = data["login"]["token"]
        logger.info(f"Authentication successful ({data['login']['user']['role']})")

    async def add_employee(self, employee: Dict[str, Any]) -> Dict[str, Any]:
        formatted_employee = format_employee_record(employee)

        missing = missing_fields(formatted_employee)
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        try:
            data = await self.execute(ADD_EMPLOYEE_MUTATION, formatted_employee)
        except GraphQLClientError as e:
            if e.code != "UNAUTHENTICATED":
                raise
            logger.warning("Token rejected, logging in again...")
            await self.authenticate()
            data = await self.execute(ADD_EMPLOYEE_MUTATION, formatted_employee)

        return data["addEmployee"]

    async def add_employees_concurrently(
        self, employees: List[Dict[str, Any]]
    ) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        results = await gather_with_concurrency(
            self.max_workers,
            *(self.add_employee(employee) for employee in employees),
        )

        successful = []
        failed = []
        for employee, result in zip(employees, results):
            if isinstance(result, Exception):
                failed.append({**employee, "error": str(result)})
            else:
                successful.append({**employee, "id": result["id"]})

        return successful, failed

    async def process_csv_file(self, file_path: str) -> Tuple[int, int, List[Dict[str, Any]]]:
        logger.info(f"Reading CSV file: {file_path}")
        employees = parse_csv_file(
            file_path,
            delimiter=settings.CSV_DELIMITER,
            encoding=settings.CSV_ENCODING,
            subject_separator=settings.SUBJECT_SEPARATOR,
        )
        logger.info(f"Found {len(employees)} employee records")

        successful_count = 0
        failed_records = []
        total_batches = (len(employees) + self.batch_size - 1) // self.batch_size

        for i in range(0, len(employees), self.batch_size):
            batch = employees[i:i + self.batch_size]
            batch_num = i // self.batch_size + 1
            logger.info(f"Processing batch {batch_num}/{total_batches} ({len(batch)} records)")

            successful, failed = await self.add_employees_concurrently(batch)
            successful_count += len(successful)
            failed_records.extend(failed)

            logger.info(f"Batch {batch_num} result: {len(successful)} ok, {len(failed)} failed")

        logger.info(f"CSV processing summary: {successful_count} successful, {len(failed_records)} failed")
        return len(employees), successful_count, failed_records
