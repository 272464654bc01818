# hrms_client/api_client.py
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from hrms_client.config import settings
from hrms_client.session import SessionStore
from hrms_client.utils import (
    format_employee_record,
    gather_with_concurrency,
    log_execution_time,
    parse_csv_file,
    retry,
)

logger = logging.getLogger(__name__)

AUTH_PREFIX = "/api/employees/auth"
EMPLOYEES_PREFIX = "/api/employees"

REQUIRED_FIELDS = ("employee_id", "employee_name", "email")

# Only connection-level failures are retried; HTTP errors are answers
TRANSIENT_ERRORS = (aiohttp.ClientConnectionError, asyncio.TimeoutError)


class ApiError(Exception):
    """Error envelope returned by the server"""

    def __init__(self, status: int, message: str):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


@dataclass
class HrmsClient:
    server_url: str = field(default_factory=lambda: settings.SERVER_URL)
    timeout: float = field(default_factory=lambda: settings.TIMEOUT)
    max_workers: int = field(default_factory=lambda: settings.MAX_WORKERS)
    batch_size: int = field(default_factory=lambda: settings.BATCH_SIZE)

    session_store: Optional[SessionStore] = field(default=None)
    access_token: Optional[str] = field(default=None)
    session: Optional[aiohttp.ClientSession] = field(default=None)

    def __post_init__(self):
        self.server_url = self.server_url.rstrip("/")
        if self.access_token is None and self.session_store is not None:
            self.access_token = self.session_store.access_token

    async def initialize(self):
        if self.session is None:
            self.session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        logger.info(f"Client ready for {self.server_url}")

    async def close(self):
        if self.session:
            await self.session.close()
            self.session = None

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _headers(self) -> Dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not self.session:
            raise RuntimeError("Client not initialized")

        url = f"{self.server_url}{path}"
        if params:
            params = {k: str(v).lower() if isinstance(v, bool) else v for k, v in params.items() if v is not None}

        async with self.session.request(method, url, json=json, params=params, headers=self._headers()) as response:
            try:
                body = await response.json(content_type=None)
            except ValueError:
                body = {"error": await response.text()}
            body = body or {}

            if response.status >= 400:
                message = body.get("error") or body.get("detail") or "Request failed"
                logger.warning(f"{method} {path} failed: {response.status} - {message}")
                raise ApiError(response.status, message)
            return body

    @retry(max_retries=settings.MAX_RETRIES, retry_delay=settings.RETRY_DELAY, exceptions=TRANSIENT_ERRORS)
    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self._request("GET", path, params=params)

    # Authentication

    async def login(self, identifier: str, password: str) -> Dict[str, Any]:
        body = await self._request("POST", f"{AUTH_PREFIX}/login", json={"identifier": identifier, "password": password})
        data = body["data"]
        self.access_token = data["access_token"]
        if self.session_store is not None:
            self.session_store.save(data["employee"], self.access_token)
        logger.info(f"Logged in as {data['employee']['employee_id']}")
        return data["employee"]

    async def logout(self):
        try:
            await self._request("POST", f"{AUTH_PREFIX}/logout")
        finally:
            self.access_token = None
            if self.session_store is not None:
                self.session_store.clear()

    async def me(self) -> Dict[str, Any]:
        body = await self._get(f"{AUTH_PREFIX}/me")
        if self.session_store is not None and self.session_store.is_authenticated:
            self.session_store.update_employee(body["data"])
        return body["data"]

    async def forgot_password(self, email: str) -> str:
        body = await self._request("POST", f"{AUTH_PREFIX}/forgot-password", json={"email": email})
        return body.get("message", "")

    async def verify_otp(self, identifier: str, otp: str) -> Dict[str, Any]:
        body = await self._request("POST", f"{AUTH_PREFIX}/verify-otp", json={"identifier": identifier, "otp": otp})
        return body["data"]["employee"]

    async def reset_password(self, email: str, otp: str, new_password: str) -> str:
        body = await self._request(
            "POST",
            f"{AUTH_PREFIX}/reset-password",
            json={"email": email, "otp": otp, "new_password": new_password},
        )
        return body.get("message", "")

    # Employees

    async def list_employees(self, page: int = 1, limit: int = 10, **filters) -> Tuple[List[Dict[str, Any]], Dict[str, int]]:
        body = await self._get(f"{EMPLOYEES_PREFIX}/", params={"page": page, "limit": limit, **filters})
        return body["data"], body["pagination"]

    async def get_employee(self, employee_pk: int) -> Dict[str, Any]:
        body = await self._get(f"{EMPLOYEES_PREFIX}/{employee_pk}")
        return body["data"]

    async def get_employee_by_code(self, employee_id: str) -> Dict[str, Any]:
        body = await self._get(f"{EMPLOYEES_PREFIX}/code/{employee_id}")
        return body["data"]

    async def search(self, term: str, limit: int = 10) -> List[Dict[str, Any]]:
        body = await self._get(f"{EMPLOYEES_PREFIX}/search", params={"q": term, "limit": limit})
        return body["data"]

    async def stats(self) -> Dict[str, int]:
        body = await self._get(f"{EMPLOYEES_PREFIX}/stats")
        return body["data"]

    async def department_stats(self) -> List[Dict[str, Any]]:
        body = await self._get(f"{EMPLOYEES_PREFIX}/stats/department")
        return body["data"]

    async def by_department(self, department_id: str) -> List[Dict[str, Any]]:
        body = await self._get(f"{EMPLOYEES_PREFIX}/by-department/{department_id}")
        return body["data"]

    async def by_manager(self, manager_id: str) -> List[Dict[str, Any]]:
        body = await self._get(f"{EMPLOYEES_PREFIX}/by-manager/{manager_id}")
        return body["data"]

    async def by_team_lead(self, team_lead_id: str) -> List[Dict[str, Any]]:
        body = await self._get(f"{EMPLOYEES_PREFIX}/by-team-lead/{team_lead_id}")
        return body["data"]

    async def create_employee(self, employee: Dict[str, Any]) -> Dict[str, Any]:
        body = await self._request("POST", f"{EMPLOYEES_PREFIX}/", json=format_employee_record(employee))
        return body["data"]

    async def update_employee(self, employee_pk: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        body = await self._request("PUT", f"{EMPLOYEES_PREFIX}/{employee_pk}", json=format_employee_record(changes))
        return body["data"]

    async def terminate_employee(self, employee_pk: int) -> Dict[str, Any]:
        body = await self._request("DELETE", f"{EMPLOYEES_PREFIX}/{employee_pk}")
        return body["data"]

    async def adjust_leave_balance(self, employee_pk: int, leave_type: str, days: int, operation: str = "subtract") -> Dict[str, str]:
        body = await self._request(
            "PATCH",
            f"{EMPLOYEES_PREFIX}/{employee_pk}/leave-balance",
            json={"leave_type": leave_type, "days": days, "operation": operation},
        )
        return body["data"]

    async def dashboard(self) -> Dict[str, Any]:
        body = await self._get("/api/dashboard")
        return body["data"]

    # CSV hiring import

    async def _hire(self, record: Dict[str, Any]) -> Dict[str, Any]:
        missing = [name for name in REQUIRED_FIELDS if not record.get(name)]
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")
        return await self.create_employee(record)

    async def hire_concurrently(self, records: List[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        results = await gather_with_concurrency(self.max_workers, *(self._hire(record) for record in records))

        successful = []
        failed = []
        for record, result in zip(records, results):
            if isinstance(result, Exception):
                failed.append({**record, "error": str(result)})
            else:
                successful.append({**record, "id": result.get("id")})
        return successful, failed

    @log_execution_time
    async def hire_from_csv(self, file_path: str) -> Tuple[int, int, List[Dict[str, Any]]]:
        employees = parse_csv_file(file_path, delimiter=settings.CSV_DELIMITER, encoding=settings.CSV_ENCODING)
        logger.info(f"Found {len(employees)} employee records")

        successful_count = 0
        failed_records = []
        total_batches = (len(employees) + self.batch_size - 1) // self.batch_size

        for i in range(0, len(employees), self.batch_size):
            batch = employees[i:i + self.batch_size]
            batch_num = i // self.batch_size + 1
            logger.info(f"Processing batch {batch_num}/{total_batches} ({len(batch)} records)")

            successful, failed = await self.hire_concurrently(batch)
            successful_count += len(successful)
            failed_records.extend(failed)
            logger.info(f"Batch {batch_num} result: {len(successful)} ok, {len(failed)} failed")

        logger.info(f"CSV import summary: {successful_count} successful, {len(failed_records)} failed")
        return len(employees), successful_count, failed_records
