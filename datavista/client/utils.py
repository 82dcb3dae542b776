# datavista/client/utils.py
import asyncio
import csv
import functools
import logging
import os
from datetime import date, datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# CSV header -> addEmployee argument
CSV_COLUMNS = {
    "Name": "name",
    "Email": "email",
    "Age": "age",
    "Class": "class",
    "Subjects": "subjects",
    "Department": "department",
    "Position": "position",
    "Avatar": "avatar",
    "Phone": "phone",
    "Address": "address",
    "Salary": "salary",
    "Join Date": "joinDate",
}

REQUIRED_FIELDS = ["name", "email", "age", "class", "subjects", "position", "avatar"]

DATE_FORMATS = ['%Y-%m-%d', '%d/%m/%Y', '%m/%d/%Y']


def retry(max_retries: int = 3, retry_delay: float = 1.0,
          backoff_factor: float = 2.0, exceptions: tuple = (Exception,)):
    """Decorator to retry coroutines on failure with exponential backoff"""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            retries = 0
            current_delay = retry_delay

            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    retries += 1
                    if retries > max_retries:
                        logger.error(f"Max retries ({max_retries}) reached for {func.__name__}")
                        raise

                    logger.warning(f"Retry {retries}/{max_retries} for {func.__name__} after error: {str(e)}")
                    logger.warning(f"Waiting {current_delay:.2f} seconds before retry...")

                    await asyncio.sleep(current_delay)
                    current_delay *= backoff_factor

        return wrapper

    return decorator


def _parse_date(value: str, row_number: int) -> Optional[str]:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date().isoformat()
        except ValueError:
            continue

    logger.warning(f"Failed to parse date '{value}' in row {row_number}")
    return value


def parse_csv_file(file_path: str, delimiter: str = ',', encoding: str = 'utf-8',
                   subject_separator: str = ';') -> List[Dict[str, Any]]:
    """
    Parse an employee CSV file into addEmployee argument dictionaries

    Args:
        file_path: Path to CSV file
        delimiter: CSV delimiter
        encoding: File encoding
        subject_separator: Separator between subjects inside the Subjects column

    Returns:
        List of dictionaries, one for each row in the CSV
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"CSV file not found: {file_path}")

    with open(file_path, 'r', encoding=encoding, newline='') as csvfile:
        reader = csv.DictReader(csvfile, delimiter=delimiter)
        rows = []

        for i, row in enumerate(reader, 1):
            record: Dict[str, Any] = {}
            for column, argument in CSV_COLUMNS.items():
                value = (row.get(column) or "").strip()
                record[argument] = value if value else None

            if record["age"] is not None:
                try:
                    record["age"] = int(record["age"])
                except ValueError:
                    logger.warning(f"Failed to convert Age='{record['age']}' to int in row {i}")

            if record["salary"] is not None:
                try:
                    record["salary"] = float(record["salary"])
                except ValueError:
                    logger.warning(f"Failed to convert Salary='{record['salary']}' to float in row {i}")

            if record["subjects"] is not None:
                record["subjects"] = [
                    subject.strip() for subject in record["subjects"].split(subject_separator) if subject.strip()
                ]

            if record["joinDate"] is not None:
                record["joinDate"] = _parse_date(record["joinDate"], i)

            rows.append(record)

    logger.info(f"Successfully parsed {len(rows)} rows from {file_path}")
    return rows


def missing_fields(record: Dict[str, Any]) -> List[str]:
    return [field for field in REQUIRED_FIELDS if record.get(field) is None]


def format_employee_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """Drop empty values and serialize dates for the GraphQL variables"""
    formatted = {}

    for key, value in record.items():
        if value is None:
            continue
        if isinstance(value, (datetime, date)):
            formatted[key] = value.isoformat()
        else:
            formatted[key] = value

    return formatted


def save_failed_records(records: List[Dict[str, Any]], output_path: str):
    """
    Save failed records to a CSV file

    Args:
        records: List of failed records
        output_path: Path to save the CSV file
    """
    if not records:
        logger.info("No failed records to save")
        return

    fieldnames = sorted({key for record in records for key in record.keys()})

    with open(output_path, 'w', newline='') as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
        writer.writeheader()

        for record in records:
            serializable_record = {}
            for key, value in record.items():
                if isinstance(value, list):
                    serializable_record[key] = ";".join(str(item) for item in value)
                elif isinstance(value, (datetime, date)):
                    serializable_record[key] = value.isoformat()
                else:
                    serializable_record[key] = value

            writer.writerow(serializable_record)

    logger.info(f"Saved {len(records)} failed records to {output_path}")


async def gather_with_concurrency(n: int, *tasks):
    """Run tasks with a concurrency limit, returning exceptions in place of results"""
    semaphore = asyncio.Semaphore(n)

    async def sem_task(task):
        async with semaphore:
            return await task

    return await asyncio.gather(*(sem_task(task) for task in tasks), return_exceptions=True)
