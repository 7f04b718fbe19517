from __future__ import annotations

import base64
import binascii
from typing import Any, Dict, List, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, ValidationError, model_validator

from mediaflow.core.errors import InputValidationError

MediaKind = Literal["image", "video", "audio"]

_KIND_NOUN = {"image": "an image", "video": "a video", "audio": "an audio file"}


def validate_url(url: str) -> str:
    url = (url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InputValidationError(f"Invalid URL: {url!r}")
    return url


def check_mime_kind(mime_type: Optional[str], kind: MediaKind) -> None:
    if mime_type and kind not in mime_type:
        raise InputValidationError(f"The provided binary data is not {_KIND_NOUN[kind]}")


class MediaInput(BaseModel):
    """A file handed over by the host: a URL, or base64 data plus MIME type."""

    url: Optional[str] = None
    data: Optional[str] = None
    mime_type: Optional[str] = None
    file_name: Optional[str] = None

    @model_validator(mode="after")
    def validate_source(self):
        if not self.url and not self.data:
            raise ValueError("media input needs either url or data")
        return self

    @classmethod
    def coerce(cls, raw: Any) -> "MediaInput":
        if isinstance(raw, MediaInput):
            return raw
        if isinstance(raw, str):
            raw = raw.strip()
            if not raw:
                raise InputValidationError("media input is empty")
            if raw.startswith("data:"):
                return cls.from_data_url(raw)
            return cls(url=raw)
        if isinstance(raw, dict):
            try:
                return cls.model_validate(raw)
            except ValidationError as e:
                raise InputValidationError(f"invalid media input: {e.errors()[0]['msg']}") from e
        raise InputValidationError(f"unsupported media input type: {type(raw).__name__}")

    @classmethod
    def from_data_url(cls, data_url: str) -> "MediaInput":
        header, sep, payload = data_url.partition(",")
        if not sep or not header.endswith(";base64"):
            raise InputValidationError("data URL must be base64 encoded")
        mime_type = header[len("data:"):-len(";base64")] or None
        return cls(data=payload, mime_type=mime_type)

    def to_request_value(self, kind: MediaKind) -> str:
        """URL as-is (validated) or ``data:<mime>;base64,<data>``."""
        if self.data:
            check_mime_kind(self.mime_type, kind)
            try:
                base64.b64decode(self.data, validate=True)
            except (binascii.Error, ValueError) as e:
                raise InputValidationError(f"No usable {kind} data: payload is not valid base64") from e
            mime = self.mime_type or f"{kind}/*"
            return f"data:{mime};base64,{self.data}"
        return validate_url(self.url or "")


class RunOptions(BaseModel):
    wait: Optional[bool] = None
    max_retries: Optional[int] = Field(default=None, ge=1)
    retry_interval_ms: Optional[int] = Field(default=None, ge=0)
    continue_on_fail: Optional[bool] = None


class RunAdapterRequest(RunOptions):
    items: List[Dict[str, Any]] = Field(default_factory=lambda: [{}])


class TaskStatusOutput(BaseModel):
    code: int = 200
    data: Optional[Dict[str, Any]] = None
    message: str = "success"


class FileUploadInput(BaseModel):
    file: Optional[MediaInput] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_data: Optional[str] = None

    @model_validator(mode="after")
    def validate_source(self):
        if not (self.file or self.file_url or (self.file_name and self.file_data)):
            raise ValueError("provide file, file_url, or file_name with file_data")
        return self


class ChatImageInput(BaseModel):
    model: str = "gpt-4o-image-preview"
    prompt: str
    aspect_ratio: str = "1:1"
    width: int = 1024
    height: int = 1024
    image_style: str = "none"
    image: Optional[MediaInput] = None
    previous_messages: Optional[Any] = None


class ChatImageOutput(BaseModel):
    prompt: str
    status: Literal["completed", "failed"]
    progress: int = 0
    progress_display: str = "0%"
    image_url: Optional[str] = None
    processed_content: Optional[str] = None
    error: Optional[Dict[str, str]] = None
    messages: List[Dict[str, Any]] = Field(default_factory=list)
    original_response: str = ""
