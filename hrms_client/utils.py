# hrms_client/utils.py
import asyncio
import csv
import functools
import logging
import os
import time
import traceback
from datetime import date, datetime
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

# CSV header -> employee field
CSV_COLUMNS = {
    "Employee ID": "employee_id",
    "Name": "employee_name",
    "Email": "email",
    "Employee Code": "employee_code",
    "Department": "department_id",
    "Designation": "designation",
    "Gender": "gender",
    "Role": "role",
    "Employment Type": "employment_type",
    "Manager ID": "manager_id",
    "Team Lead ID": "team_lead_id",
    "Contact No": "contact_no",
    "Date of Joining": "doj",
}

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%m/%d/%Y")


def log_execution_time(func):
    """Decorator to log function execution time"""
    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = await func(*args, **kwargs)
            logger.info(f"Function {func.__name__} executed in {time.time() - start_time:.4f} seconds")
            return result
        except Exception as e:
            logger.error(f"Function {func.__name__} failed after {time.time() - start_time:.4f} seconds. Error: {str(e)}")
            raise

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = func(*args, **kwargs)
            logger.info(f"Function {func.__name__} executed in {time.time() - start_time:.4f} seconds")
            return result
        except Exception as e:
            logger.error(f"Function {func.__name__} failed after {time.time() - start_time:.4f} seconds. Error: {str(e)}")
            raise

    if asyncio.iscoroutinefunction(func):
        return async_wrapper
    return sync_wrapper


def retry(max_retries: int = 3, retry_delay: float = 1.0,
          backoff_factor: float = 2.0, exceptions: tuple = (Exception,)):
    """Decorator to retry coroutines on failure"""
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
                    await asyncio.sleep(current_delay)
                    current_delay *= backoff_factor

        return wrapper

    return decorator


def _parse_date(value: str, row_number: int):
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    logger.warning(f"Failed to parse date '{value}' in row {row_number}")
    return value


def parse_csv_file(file_path: str, delimiter: str = ',', encoding: str = 'utf-8') -> List[Dict[str, Any]]:
    """
    Parse a hiring CSV into employee records

    Args:
        file_path: Path to CSV file
        delimiter: CSV delimiter
        encoding: File encoding

    Returns:
        One dict per row, keyed by employee field name. Unknown columns are ignored.
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"CSV file not found: {file_path}")

    try:
        with open(file_path, 'r', encoding=encoding, newline='') as csvfile:
            reader = csv.DictReader(csvfile, delimiter=delimiter)
            rows = []

            for i, row in enumerate(reader, 1):
                record = {}
                for column, field in CSV_COLUMNS.items():
                    value = (row.get(column) or "").strip()
                    if not value:
                        continue
                    record[field] = _parse_date(value, i) if field == "doj" else value
                rows.append(record)

            logger.info(f"Successfully parsed {len(rows)} rows from {file_path}")
            return rows
    except Exception as e:
        logger.error(f"Error parsing CSV file {file_path}: {str(e)}")
        logger.error(traceback.format_exc())
        raise


def save_failed_records(records: List[Dict[str, Any]], output_path: str):
    """Write failed import rows, with their error, to a CSV file"""
    if not records:
        logger.info("No failed records to save")
        return

    fieldnames = sorted({key for record in records for key in record.keys()})

    with open(output_path, 'w', newline='') as csvfile:
        writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
        writer.writeheader()
        for record in records:
            writer.writerow({
                key: value.isoformat() if isinstance(value, (datetime, date)) else value
                for key, value in record.items()
            })

    logger.info(f"Saved {len(records)} failed records to {output_path}")


def format_employee_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """Drop empty values and serialise dates for the API"""
    formatted = {}
    for key, value in record.items():
        if value is None:
            continue
        formatted[key] = value.isoformat() if isinstance(value, date) else value
    return formatted


async def gather_with_concurrency(n: int, *tasks):
    """Run tasks with a concurrency limit; failures are returned, not raised"""
    semaphore = asyncio.Semaphore(n)

    async def sem_task(task):
        async with semaphore:
            return await task

    return await asyncio.gather(*(sem_task(task) for task in tasks), return_exceptions=True)
