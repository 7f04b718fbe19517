"""Reassembly and inspection of the chat endpoint's streamed (SSE) bodies.

Everything here is a pure function of the raw response text.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterator, Optional

_MARKDOWN_IMAGE = re.compile(r"!\[.*?\]\((.*?)\)")
_JSON_IMAGE_KEY = re.compile(r'"image(?:_url|Url|URL)"\s*:\s*"(https?://[^"]+)"')
_IMAGE_URL = re.compile(r"https?://\S+\.(?:png|jpe?g|gif|webp|bmp)", re.IGNORECASE)
_PERCENT = re.compile(r"(\d{1,3}(?:\.\d+)?)\s*%")
_REASON = re.compile(r"Reason: (.*?)(?:\n|$)", re.IGNORECASE)
_SUGGESTION = re.compile(r"Suggestion: (.*?)(?:\n|$)", re.IGNORECASE)


def iter_sse_payloads(raw: str) -> Iterator[Dict[str, Any]]:
    """Yield each ``data:`` chunk that parses as a JSON object; others are skipped."""
    for chunk in raw.replace("\r\n", "\n").split("\n\n"):
        chunk = chunk.strip()
        if not chunk.startswith("data:"):
            continue
        payload = chunk[len("data:"):].strip()
        if not payload or payload == "[DONE]":
            continue
        try:
            parsed = json.loads(payload)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            yield parsed


def _delta_content(chunk: Dict[str, Any]) -> Optional[str]:
    choices = chunk.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0] if isinstance(choices[0], dict) else {}
    delta = first.get("delta") or {}
    content = delta.get("content") if isinstance(delta, dict) else None
    return content if isinstance(content, str) else None


def process_streamed_response(raw: str) -> str:
    return "".join(c for c in (_delta_content(p) for p in iter_sse_payloads(raw)) if c)


def extract_image_url(content: str) -> Optional[str]:
    """
    Find the generated image URL in either reassembled content or a raw stream.

    Tries, in order: markdown image syntax, an ``image_url``-style JSON key,
    a bare image URL, and finally each SSE chunk's delta content.
    """
    m = _MARKDOWN_IMAGE.search(content)
    if m:
        return m.group(1)
    m = _JSON_IMAGE_KEY.search(content)
    if m:
        return m.group(1)
    m = _IMAGE_URL.search(content)
    if m:
        return m.group(0)
    for payload in iter_sse_payloads(content):
        delta = _delta_content(payload)
        if delta:
            m = _IMAGE_URL.search(delta)
            if m:
                return m.group(0)
    return None


def is_generation_failed(content: str) -> bool:
    return "Generation failed" in content or "Failure reason" in content


def extract_failure_details(content: str) -> Dict[str, str]:
    reason = _REASON.search(content)
    suggestion = _SUGGESTION.search(content)
    return {
        "reason": reason.group(1) if reason else "Unknown reason",
        "suggestion": suggestion.group(1) if suggestion else "",
    }


def extract_progress_percentage(raw: str) -> int:
    """Highest progress percentage reported in the stream, 0 when none is."""
    content = process_streamed_response(raw) or raw
    best = 0.0
    for m in _PERCENT.finditer(content):
        value = float(m.group(1))
        if value <= 100 and value > best:
            best = value
    return int(best)
