from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel


class AdapterSummary(BaseModel):
    name: str
    display_name: str
    family: str
    model: str
    task_type: str


class RunAdapterResponse(BaseModel):
    adapter: str
    results: List[Dict[str, Any]]
