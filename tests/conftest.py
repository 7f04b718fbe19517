from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest

from mediaflow.client.dispatcher import Dispatcher, TransportResponse


class FakeTransport:
    """Replays scripted responses in order and records every call."""

    def __init__(self, responses: Optional[List[Any]] = None) -> None:
        self.responses = list(responses or [])
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def push(self, *responses: Any) -> None:
        self.responses.extend(responses)

    async def send(self, method, url, *, headers, json_body=None, params=None, timeout_s=60.0):
        self.calls.append(
            {"method": method, "url": url, "headers": dict(headers), "json": json_body, "params": params}
        )
        if not self.responses:
            raise AssertionError(f"unexpected call: {method} {url}")
        nxt = self.responses.pop(0)
        if callable(nxt):
            nxt = nxt()
        if isinstance(nxt, BaseException):
            raise nxt
        if isinstance(nxt, TransportResponse):
            return nxt
        if isinstance(nxt, str):
            return TransportResponse(status=200, body=nxt.encode("utf-8"))
        return TransportResponse(status=200, body=json.dumps(nxt).encode("utf-8"))

    async def close(self) -> None:
        self.closed = True


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def task_envelope(status: str, task_id: str = "t-1", **data: Any) -> Dict[str, Any]:
    return {"code": 200, "message": "success", "data": {"task_id": task_id, "status": status, **data}}


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def dispatcher(transport: FakeTransport) -> Dispatcher:
    return Dispatcher(api_key="test-key", base_url="https://api.example.test", transport=transport)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def envelope():
    return task_envelope
