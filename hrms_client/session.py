# hrms_client/session.py
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from hrms_client.config import settings

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Keeps the logged-in employee and access token between CLI runs.

    The file holds {"employee": {...}, "access_token": "..."}; a file that
    cannot be read back is discarded and the user is treated as logged out.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = Path(os.path.expanduser(path or settings.SESSION_FILE))
        self._data: Optional[Dict[str, Any]] = None
        self.load()

    def load(self) -> Optional[Dict[str, Any]]:
        self._data = None
        if not self.path.exists():
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict) or not isinstance(data.get("employee"), dict):
                raise ValueError("missing employee record")
            self._data = data
        except (OSError, ValueError) as e:
            logger.warning(f"Discarding unreadable session file {self.path}: {str(e)}")
            self.clear()
        return self._data

    def save(self, employee: Dict[str, Any], access_token: Optional[str] = None):
        data = {"employee": employee, "access_token": access_token}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)
        # Token file is private to the user
        os.chmod(self.path, 0o600)
        self._data = data
        logger.info(f"Session saved for {employee.get('employee_id')}")

    def update_employee(self, employee: Dict[str, Any]):
        self.save(employee, self.access_token)

    def clear(self):
        self._data = None
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    @property
    def employee(self) -> Optional[Dict[str, Any]]:
        return self._data["employee"] if self._data else None

    @property
    def access_token(self) -> Optional[str]:
        return self._data.get("access_token") if self._data else None

    @property
    def is_authenticated(self) -> bool:
        return self.employee is not None
