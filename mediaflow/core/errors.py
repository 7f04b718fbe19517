from __future__ import annotations

import json
from typing import Any, Optional


class MediaflowError(RuntimeError): ...


class InputValidationError(MediaflowError):
    """Bad local input, detected before any network call."""


class ApiCallError(MediaflowError):
    """The HTTP call itself did not complete (connection, DNS, TLS, timeout)."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ApiResponseError(MediaflowError):
    """The API answered, but its envelope reports a logical error."""

    def __init__(self, message: str, *, response: Optional[dict] = None) -> None:
        super().__init__(message)
        self.response = response or {}


class TaskFailedError(MediaflowError):
    def __init__(self, task_id: str, detail: Any = None) -> None:
        self.task_id = task_id
        self.detail = detail
        shown = json.dumps(detail if detail else "Unknown error", default=str)
        super().__init__(f"Task failed: {shown}")


class TaskTimeoutError(MediaflowError):
    def __init__(self, task_id: str, max_retries: int) -> None:
        self.task_id = task_id
        self.max_retries = max_retries
        super().__init__(f"Task timed out after {max_retries} retries")


class TaskCancelledError(MediaflowError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task polling cancelled: {task_id}")
