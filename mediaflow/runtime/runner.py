from __future__ import annotations
import asyncio
import base64
import json
import logging
import secrets
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlparse

from pydantic import ValidationError

from mediaflow.adapters.builder import build_task_body
from mediaflow.adapters.constants import CUSTOM, HEADER_VALUES
from mediaflow.adapters.contracts import (
    ChatImageInput,
    ChatImageOutput,
    FileUploadInput,
    TaskStatusOutput,
    validate_url,
)
from mediaflow.adapters.dsl import AdapterSpec
from mediaflow.client.dispatcher import Dispatcher, parse_json_body
from mediaflow.core.config import settings
from mediaflow.core.errors import ApiResponseError, InputValidationError, MediaflowError
from mediaflow.domain.models import TaskEnvelope
from mediaflow.runtime.poller import PollLimits, wait_for_task
from mediaflow.runtime.stream import (
    extract_failure_details,
    extract_image_url,
    extract_progress_percentage,
    is_generation_failed,
    process_streamed_response,
)

log = logging.getLogger("mediaflow.runner")

SUPPORTED_UPLOAD_EXTENSIONS = ("jpg", "jpeg", "png", "webp", "mp4", "wav", "mp3")

MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "video/mp4": "mp4",
    "audio/wav": "wav",
    "audio/mpeg": "mp3",
}

# faceswap only: substring of the remote error -> message shown to the user
_FACESWAP_HINTS = {
    "failed to get valid image": (
        "The API could not process the provided image. Please ensure the image is accessible, "
        "in a common format (JPEG, PNG), and meets the size requirements (under 2048x2048 resolution)."
    ),
    "failed to get valid video": (
        "The API could not process the provided video. Please ensure the video is accessible, "
        "in MP4 format, under 10MB, maximum 720p resolution, and maximum 600 frames."
    ),
}


# -----------------------
# adapters
# -----------------------

async def run_adapter(
    dispatcher: Dispatcher,
    spec: AdapterSpec,
    params: Optional[Mapping[str, Any]] = None,
    *,
    wait: Optional[bool] = None,
    max_retries: Optional[int] = None,
    retry_interval_ms: Optional[int] = None,
    cancel: Optional[asyncio.Event] = None,
) -> Dict[str, Any]:
    """
    Submit one task for ``spec`` and optionally wait for it.

    With ``wait`` the final task ``data`` is returned; otherwise
    ``{"task_id", "status"}`` straight from the submit response.
    """
    body = build_task_body(spec, params)
    # params may carry media payloads; log names only
    log.info("submitting task", extra={"adapter": spec.name, "event": "task_submit"})
    log.debug("input keys %s", sorted(body.get("input", {})), extra={"adapter": spec.name})

    response = await dispatcher.submit_task(body)
    if response.get("code") != 200:
        raise ApiResponseError(
            f"API Error: {response.get('message') or 'Unknown error'}", response=response
        )

    data = response.get("data") or {}
    task_id = data.get("task_id")
    if not task_id:
        raise ApiResponseError("Failed to get a valid task ID from the API", response=response)

    log.info("task submitted", extra={"adapter": spec.name, "task_id": task_id, "event": "task_submitted"})

    should_wait = spec.wait_default if wait is None else wait
    if not should_wait:
        return {"task_id": task_id, "status": data.get("status") or "pending"}

    limits = PollLimits(
        max_retries=max_retries if max_retries is not None else spec.max_retries,
        retry_interval_ms=retry_interval_ms if retry_interval_ms is not None else spec.retry_interval_ms,
    )
    return await wait_for_task(dispatcher, task_id, limits=limits, cancel=cancel)


def friendly_error(exc: BaseException, spec: Optional[AdapterSpec] = None) -> Dict[str, Any]:
    message = str(exc)
    if spec is None or spec.family != "faceswap":
        return {"error": message}
    for needle, friendly in _FACESWAP_HINTS.items():
        if needle in message:
            return {"error": friendly, "details": message}
    return {"error": message}


async def run_items(
    dispatcher: Dispatcher,
    spec: AdapterSpec,
    items: List[Mapping[str, Any]],
    *,
    continue_on_fail: Optional[bool] = None,
    wait: Optional[bool] = None,
    max_retries: Optional[int] = None,
    retry_interval_ms: Optional[int] = None,
    cancel: Optional[asyncio.Event] = None,
) -> List[Dict[str, Any]]:
    """Run items one after another; a failing item becomes ``{"error": ...}`` when continuing."""
    if continue_on_fail is None:
        continue_on_fail = settings.continue_on_fail

    results: List[Dict[str, Any]] = []
    for i, params in enumerate(items):
        try:
            result = await run_adapter(
                dispatcher,
                spec,
                params,
                wait=wait,
                max_retries=max_retries,
                retry_interval_ms=retry_interval_ms,
                cancel=cancel,
            )
        except MediaflowError as e:
            if not continue_on_fail:
                raise
            log.warning("item %d failed: %s", i, e, extra={"adapter": spec.name, "event": "item_failed"})
            results.append(friendly_error(e, spec))
            continue
        results.append(result)
    return results


# -----------------------
# task status
# -----------------------

def infer_task_id(item: Optional[Mapping[str, Any]]) -> str:
    item = item or {}
    data = item.get("data")
    task_id = (data.get("task_id") if isinstance(data, Mapping) else None) or item.get("task_id") or ""
    if not str(task_id).strip():
        raise InputValidationError("Task ID is required and cannot be found in input data")
    return str(task_id).strip()


async def get_task_status(
    dispatcher: Dispatcher,
    task_id: str,
    *,
    media_url_only: bool = False,
) -> TaskStatusOutput:
    if not task_id or not task_id.strip():
        raise InputValidationError("Task ID is required")

    response = await dispatcher.get_task(task_id)
    try:
        envelope = TaskEnvelope.model_validate(response)
    except ValidationError as e:
        raise ApiResponseError(f"Failed to retrieve task: unexpected response shape ({e.error_count()} errors)", response=response) from e
    if envelope.data is None or envelope.code != 200:
        raise ApiResponseError(
            f"Failed to retrieve task: {envelope.message or 'Unknown error'}", response=response
        )

    data = envelope.data.model_dump(exclude_unset=True)
    media_url = envelope.data.media_url()
    if media_url_only and media_url:
        kind = "image" if (envelope.data.output or {}).get("image_url") else "video"
        data = {**data, "media_url": media_url, "type": kind}
    return TaskStatusOutput(data=data)


# -----------------------
# file upload
# -----------------------

def _hash_filename(extension: str) -> str:
    return f"{secrets.token_hex(12)}.{extension}"


def _extension_of(name: str) -> str:
    _, dot, ext = name.rpartition(".")
    return ext.lower() if dot else ""


async def upload_file(dispatcher: Dispatcher, req: FileUploadInput) -> Dict[str, Any]:
    """Send a file to the ephemeral upload endpoint; returns the endpoint's JSON as-is."""
    if req.file is not None:
        if not req.file.data:
            raise InputValidationError("No binary data exists on the file input")
        if req.file.file_name and _extension_of(req.file.file_name):
            extension = _extension_of(req.file.file_name)
        else:
            extension = MIME_EXTENSIONS.get(req.file.mime_type or "", "jpg")
        file_name = _hash_filename(extension)
        file_data = req.file.data
    elif req.file_url:
        url = validate_url(req.file_url)
        extension = _extension_of(urlparse(url).path) or "jpg"
        resp = await dispatcher.fetch_bytes(url)
        if resp.status >= 400:
            raise ApiResponseError(f"Could not download {url}: HTTP {resp.status}")
        content_type = (resp.headers.get("content-type") or resp.headers.get("Content-Type") or "").split(";")[0]
        if content_type in MIME_EXTENSIONS:
            extension = MIME_EXTENSIONS[content_type]
        file_name = _hash_filename(extension)
        file_data = base64.b64encode(resp.body).decode("ascii")
    else:
        file_name = req.file_name or ""
        file_data = req.file_data or ""
        extension = _extension_of(file_name)

    if extension not in SUPPORTED_UPLOAD_EXTENSIONS:
        raise InputValidationError(
            f'File extension "{extension}" is not supported. '
            f"Supported extensions: {', '.join(SUPPORTED_UPLOAD_EXTENSIONS)}"
        )

    log.info("uploading file", extra={"event": "file_upload"})
    resp = await dispatcher.request_raw(
        "POST", settings.upload_url, body={"file_name": file_name, "file_data": file_data}
    )
    return parse_json_body(resp)


# -----------------------
# GPT-4o image via chat
# -----------------------

def prompt_prefix(req: ChatImageInput) -> str:
    if req.aspect_ratio == CUSTOM:
        size = f"Image size: {req.width}x{req.height}. "
    elif req.aspect_ratio in HEADER_VALUES or not req.aspect_ratio:
        size = ""
    else:
        size = f"Image size: {req.aspect_ratio}. "
    style = f"Image style: {req.image_style}. " if req.image_style and req.image_style != "none" else ""
    return size + style


def _previous_messages(raw: Any) -> List[Dict[str, Any]]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InputValidationError(f"Failed to parse previous messages: {e}") from e
    if not isinstance(raw, list):
        raise InputValidationError("Previous messages must be a valid JSON array")
    return list(raw)


def build_chat_messages(req: ChatImageInput) -> List[Dict[str, Any]]:
    if req.previous_messages is not None:
        messages = _previous_messages(req.previous_messages)
        messages.append({"role": "user", "content": req.prompt})
        return messages

    text = prompt_prefix(req) + req.prompt
    if req.image is None:
        return [{"role": "user", "content": text}]
    return [
        {
            "role": "user",
            "content": [
                {"type": "image_url", "image_url": {"url": req.image.to_request_value("image")}},
                {"type": "text", "text": text},
            ],
        }
    ]


async def generate_chat_image(dispatcher: Dispatcher, req: ChatImageInput) -> ChatImageOutput:
    messages = build_chat_messages(req)
    raw = await dispatcher.chat_completions({"model": req.model, "messages": messages, "stream": True})

    content = process_streamed_response(raw)
    progress = extract_progress_percentage(raw)
    common = dict(
        prompt=req.prompt,
        progress=progress,
        progress_display=f"{progress}%",
        original_response=raw,
    )

    if is_generation_failed(content):
        details = extract_failure_details(content)
        log.warning("chat image generation failed", extra={"event": "chat_image_failed"})
        return ChatImageOutput(
            status="failed",
            error={**details, "full_message": content},
            messages=messages,
            **common,
        )

    return ChatImageOutput(
        status="completed",
        image_url=extract_image_url(raw) or extract_image_url(content),
        processed_content=content,
        messages=messages + [{"role": "assistant", "content": content}],
        **common,
    )
