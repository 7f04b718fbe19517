from __future__ import annotations

import copy
import json
from typing import Any, Dict, Mapping, Optional

from mediaflow.adapters.constants import CUSTOM, HEADER_VALUES, parse_dimensions
from mediaflow.adapters.contracts import MediaInput
from mediaflow.adapters.dsl import AdapterSpec, FieldSpec, WhenEquals
from mediaflow.core.errors import InputValidationError

MEDIA_KINDS = ("image", "video", "audio")
DEFAULT_SIZE = 1024


# -----------------------
# helpers
# -----------------------

def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _param_value(spec: AdapterSpec, params: Mapping[str, Any], name: str) -> Any:
    value = params.get(name)
    if value is None:
        return spec.field(name).default
    return value


def _when_matches(spec: AdapterSpec, f: FieldSpec, params: Mapping[str, Any]) -> bool:
    if f.when is None:
        return True
    val = _param_value(spec, params, f.when.param)
    if isinstance(f.when, WhenEquals):
        return val == f.when.equals
    steer = spec.field(f.when.param)
    if steer.kind == "boolean" and val is not None:
        return _as_bool(steer, val)
    return bool(val)


def _set_path(body: Dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    node = body
    for key in parts[:-1]:
        node = node.setdefault(key, {})
    node[parts[-1]] = value


def _as_int(f: FieldSpec, raw: Any) -> int:
    if isinstance(raw, bool):
        raise InputValidationError(f"Parameter '{f.name}' must be an integer")
    try:
        num = float(raw)
    except (TypeError, ValueError):
        raise InputValidationError(f"Parameter '{f.name}' must be an integer") from None
    if not num.is_integer():
        raise InputValidationError(f"Parameter '{f.name}' must be an integer")
    return int(num)


def _as_number(f: FieldSpec, raw: Any) -> float | int:
    if isinstance(raw, bool):
        raise InputValidationError(f"Parameter '{f.name}' must be a number")
    if isinstance(raw, (int, float)):
        return raw
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise InputValidationError(f"Parameter '{f.name}' must be a number") from None


def _as_bool(f: FieldSpec, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().lower() in ("true", "1", "yes", "on"):
        return True
    if isinstance(raw, str) and raw.strip().lower() in ("false", "0", "no", "off", ""):
        return False
    if isinstance(raw, int):
        return bool(raw)
    raise InputValidationError(f"Parameter '{f.name}' must be a boolean")


def _as_json(f: FieldSpec, raw: Any) -> Any:
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise InputValidationError(f"Parameter '{f.name}' must be valid JSON") from None


def _as_image_list(f: FieldSpec, raw: Any) -> list:
    items = raw if isinstance(raw, list) else [raw]
    if len(items) < f.min_items:
        raise InputValidationError(f"'{f.name}' requires at least {f.min_items} image(s)")
    if f.max_items is not None and len(items) > f.max_items:
        raise InputValidationError(f"'{f.name}' supports a maximum of {f.max_items} images")
    return [{f.item_key: MediaInput.coerce(item).to_request_value("image")} for item in items]


def coerce_value(f: FieldSpec, raw: Any) -> Any:
    if f.kind == "string":
        value: Any = str(raw)
    elif f.kind == "integer":
        value = _as_int(f, raw)
    elif f.kind == "number":
        value = _as_number(f, raw)
    elif f.kind == "boolean":
        value = _as_bool(f, raw)
    elif f.kind == "json":
        value = _as_json(f, raw)
    elif f.kind in MEDIA_KINDS:
        value = MediaInput.coerce(raw).to_request_value(f.kind)
    elif f.kind == "image_list":
        value = _as_image_list(f, raw)
    else:
        value = str(raw)

    if f.choices is not None and value not in f.choices:
        raise InputValidationError(f"Parameter '{f.name}' must be one of {f.choices}, got {value!r}")
    if f.minimum is not None and isinstance(value, (int, float)) and value < f.minimum:
        raise InputValidationError(f"Parameter '{f.name}' must be >= {f.minimum}")
    if f.maximum is not None and isinstance(value, (int, float)) and value > f.maximum:
        raise InputValidationError(f"Parameter '{f.name}' must be <= {f.maximum}")
    return value


def resolve_dimensions(value: Any, params: Mapping[str, Any]) -> Dict[str, int]:
    """Aspect-ratio option -> width/height. ``custom`` reads ``width``/``height``."""
    if value == CUSTOM:
        return {
            key: _as_int(FieldSpec(name=key, kind="integer"), params.get(key) or DEFAULT_SIZE)
            for key in ("width", "height")
        }
    if _is_empty(value) or value in HEADER_VALUES:
        return {"width": DEFAULT_SIZE, "height": DEFAULT_SIZE}
    dims = parse_dimensions(value)
    if dims is None:
        raise InputValidationError(f"Invalid aspect ratio {value!r}, expected WIDTH:HEIGHT")
    return {"width": dims[0], "height": dims[1]}


def _omitted(f: FieldSpec, value: Any) -> bool:
    if f.omit == "empty":
        return _is_empty(value)
    if f.omit == "falsy":
        return not value
    return False


def _check_alternatives(spec: AdapterSpec, params: Mapping[str, Any]) -> None:
    for group in spec.require_one_of:
        if all(_is_empty(_param_value(spec, params, name)) for name in group):
            raise InputValidationError(f"One of {', '.join(group)} is required")


# -----------------------
# entrypoint
# -----------------------

def build_task_body(spec: AdapterSpec, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Map user params onto ``{model, task_type, input, config?}`` for ``POST /api/v1/task``."""
    params = dict(params or {})
    _check_alternatives(spec, params)

    body: Dict[str, Any] = {"model": spec.model, "task_type": spec.task_type, "input": {}}
    if spec.config is not None:
        body["config"] = copy.deepcopy(spec.config)

    for f in spec.fields:
        if not _when_matches(spec, f, params):
            continue

        raw = _param_value(spec, params, f.name)
        if f.kind == "dimensions":
            for key, dim in resolve_dimensions(raw, params).items():
                _set_path(body, f"{f.target}.{key}", dim)
            continue

        if _is_empty(raw):
            if f.required:
                raise InputValidationError(f"Parameter '{f.name}' is required")
            value = raw
        else:
            value = coerce_value(f, raw)

        if f.name == spec.model_param and not _is_empty(value):
            body["model"] = value
        if f.name == spec.task_type_param and not _is_empty(value):
            body["task_type"] = value

        if f.target is None or _omitted(f, value):
            continue
        _set_path(body, f.target, value)
        parent = f.target.rsplit(".", 1)[0]
        for key, const in f.siblings.items():
            _set_path(body, f"{parent}.{key}", const)

    return body
