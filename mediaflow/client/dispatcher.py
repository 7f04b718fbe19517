"""mediaflow.client.dispatcher

One authenticated HTTP call against the PiAPI endpoints.

The task calls never branch on the HTTP status code: the API returns a
machine-readable envelope (``code`` / ``message`` / ``data``) even for
logical failures, and callers inspect that. Transport failures are raised
here as ``ApiCallError``. The streamed chat call is the exception: it has no
envelope, so an error reply there raises ``ApiResponseError``. Nothing is
retried at this level.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol
from urllib.parse import quote

import aiohttp

from mediaflow.core.config import settings
from mediaflow.core.errors import ApiCallError, ApiResponseError, InputValidationError
from mediaflow.domain.models import CHAT_COMPLETIONS_PATH, TASK_PATH, ApiRequest, AuthMode

log = logging.getLogger("mediaflow.dispatcher")


def build_headers(mode: AuthMode, api_key: str) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if mode == AuthMode.BEARER:
        headers["Authorization"] = f"Bearer {api_key}"
    else:
        headers["X-API-Key"] = api_key
    return headers


@dataclass
class TransportResponse:
    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class Transport(Protocol):
    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Dict[str, str],
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        timeout_s: float = 60.0,
    ) -> TransportResponse:
        ...


class AiohttpTransport:
    """Transport on a lazily created ``aiohttp.ClientSession``."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None, verify_ssl: bool = True) -> None:
        self._session = session
        self._owns_session = session is None
        self.verify_ssl = verify_ssl

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Dict[str, str],
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        timeout_s: float = 60.0,
    ) -> TransportResponse:
        session = await self._get_session()
        if params:
            params = {k: v for k, v in params.items() if v is not None}  # aiohttp fails to serialize None values
        async with session.request(
            method,
            url,
            headers=headers,
            json=json_body,
            params=params or None,
            ssl=self.verify_ssl,
            timeout=aiohttp.ClientTimeout(total=timeout_s),
        ) as resp:
            body = await resp.read()
            return TransportResponse(status=resp.status, body=body, headers=dict(resp.headers))

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


def parse_json_body(resp: TransportResponse) -> Dict[str, Any]:
    text = resp.text()
    if not text.strip():
        return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ApiCallError(f"API call failed: response is not JSON (HTTP {resp.status})", cause=e) from e
    if isinstance(parsed, dict):
        return parsed
    return {"raw": parsed}


def _json_object_or_none(text: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _error_message(envelope: Optional[Dict[str, Any]], text: str) -> str:
    if envelope:
        err = envelope.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if envelope.get("message"):
            return str(envelope["message"])
    return text.strip()[:200] or "Unknown error"


class Dispatcher:
    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[Transport] = None,
        timeout_s: Optional[float] = None,
    ) -> None:
        api_key = api_key if api_key is not None else settings.api_key
        if not api_key:
            raise InputValidationError("Missing API key. Pass api_key= or set MEDIAFLOW_API_KEY.")
        self.api_key = api_key
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.transport: Transport = transport or AiohttpTransport()
        self.timeout_s = timeout_s if timeout_s is not None else settings.http_timeout_s

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _send(
        self,
        method: str,
        url: str,
        *,
        headers: Dict[str, str],
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> TransportResponse:
        log.debug("%s %s", method, url)
        try:
            return await self.transport.send(
                method,
                url,
                headers=headers,
                json_body=body,
                params=params,
                timeout_s=self.timeout_s,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise ApiCallError(f"API call failed: {type(e).__name__}: {e}", cause=e) from e

    async def request_raw(
        self,
        method: str,
        path: str,
        *,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        auth: AuthMode = AuthMode.API_KEY,
    ) -> TransportResponse:
        return await self._send(
            method,
            self.url_for(path),
            headers=build_headers(auth, self.api_key),
            body=body,
            params=params,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        auth: AuthMode = AuthMode.API_KEY,
    ) -> Dict[str, Any]:
        resp = await self.request_raw(method, path, body=body, params=params, auth=auth)
        return parse_json_body(resp)

    async def send(self, req: ApiRequest) -> Dict[str, Any]:
        return await self.request(req.method, req.path, body=req.body, params=req.params, auth=req.auth)

    async def submit_task(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self.send(ApiRequest(method="POST", path=TASK_PATH, body=body))

    async def get_task(self, task_id: str) -> Dict[str, Any]:
        encoded = quote(task_id.strip(), safe="")
        return await self.send(ApiRequest(method="GET", path=f"{TASK_PATH}/{encoded}"))

    async def chat_completions(self, body: Dict[str, Any]) -> str:
        """
        POST to the chat endpoint with bearer auth; returns the raw (SSE) body.

        Unlike the task endpoints this one has no envelope to inspect on success,
        so an HTTP error or a JSON error body in place of the stream raises
        ApiResponseError here.
        """
        resp = await self.request_raw("POST", CHAT_COMPLETIONS_PATH, body=body, auth=AuthMode.BEARER)
        text = resp.text()
        if resp.status >= 400 or not text.lstrip().startswith("data:"):
            envelope = _json_object_or_none(text)
            if resp.status >= 400 or (envelope is not None and "choices" not in envelope):
                raise ApiResponseError(
                    f"Chat request failed (HTTP {resp.status}): {_error_message(envelope, text)}",
                    response=envelope or {},
                )
        return text

    async def fetch_bytes(self, url: str) -> TransportResponse:
        # third-party media hosts get no credentials
        return await self._send("GET", url, headers={})

    async def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "Dispatcher":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
