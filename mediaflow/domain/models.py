from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

# Remote status labels. The API spells success differently per endpoint family.
SUCCESS_STATUSES = frozenset({"success", "completed"})
FAILED_STATUS = "failed"

TASK_PATH = "/api/v1/task"
CHAT_COMPLETIONS_PATH = "/v1/chat/completions"


class AuthMode(str, enum.Enum):
    API_KEY = "api_key"  # X-API-Key
    BEARER = "bearer"  # Authorization: Bearer


class JobState(str, enum.Enum):
    IN_FLIGHT = "IN_FLIGHT"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


def classify_status(status: Optional[str]) -> JobState:
    if status in SUCCESS_STATUSES:
        return JobState.SUCCEEDED
    if status == FAILED_STATUS:
        return JobState.FAILED
    return JobState.IN_FLIGHT


@dataclass(frozen=True)
class ApiRequest:
    method: str
    path: str
    body: Optional[Dict[str, Any]] = None
    params: Dict[str, Any] = field(default_factory=dict)
    auth: AuthMode = AuthMode.API_KEY


class TaskData(BaseModel):
    model_config = ConfigDict(extra="allow")

    task_id: Optional[str] = None
    model: Optional[str] = None
    task_type: Optional[str] = None
    status: Optional[str] = None
    input: Optional[Dict[str, Any]] = None
    output: Optional[Dict[str, Any]] = None
    meta: Optional[Dict[str, Any]] = None
    detail: Any = None
    logs: Optional[List[Any]] = None
    error: Any = None

    @property
    def state(self) -> JobState:
        return classify_status(self.status)

    def media_url(self) -> Optional[str]:
        out = self.output or {}
        return out.get("image_url") or out.get("video_url")


class TaskEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    code: Optional[int] = None
    message: Optional[str] = None
    data: Optional[TaskData] = None
