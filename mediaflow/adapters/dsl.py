from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class WhenEquals(BaseModel):
    param: str
    equals: Any


class WhenTruthy(BaseModel):
    param: str


FieldKind = Literal[
    "string",
    "integer",
    "number",
    "boolean",
    "json",
    "image",
    "video",
    "audio",
    "image_list",
    "dimensions",
]

OmitRule = Literal["never", "empty", "falsy"]


class FieldSpec(BaseModel):
    name: str
    kind: FieldKind = "string"
    # dotted path in the request body; None means the param only steers the adapter
    target: Optional[str] = None
    required: bool = False
    default: Any = None
    choices: Optional[List[Any]] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_items: int = 0
    max_items: Optional[int] = None
    item_key: str = "image_url"
    # constants written next to the target whenever the value is written
    siblings: Dict[str, Any] = Field(default_factory=dict)
    omit: OmitRule = "never"
    when: Optional[WhenEquals | WhenTruthy] = None
    description: str = ""

    @model_validator(mode="after")
    def validate_field(self):
        if self.target is not None and not (
            self.target in ("input", "config") or self.target.startswith(("input.", "config."))
        ):
            raise ValueError(f"field {self.name}: target must live under input or config")
        if self.kind == "dimensions" and self.target is None:
            raise ValueError(f"field {self.name}: dimensions field needs a target")
        if self.default is not None and self.choices is not None and self.default not in self.choices:
            raise ValueError(f"field {self.name}: default not among choices")
        return self


class AdapterSpec(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    name: str
    display_name: str
    description: str = ""
    family: str = ""
    model: str
    task_type: str
    # params whose value replaces model / task_type (must be declared fields)
    model_param: Optional[str] = None
    task_type_param: Optional[str] = None
    fields: List[FieldSpec] = Field(default_factory=list)
    config: Optional[Dict[str, Any]] = None
    require_one_of: List[List[str]] = Field(default_factory=list)
    wait_default: bool = False
    max_retries: int = 20
    retry_interval_ms: int = 3000

    @model_validator(mode="after")
    def validate_adapter(self):
        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            raise ValueError(f"adapter {self.name}: duplicate field names")

        known = set(names)
        for ref in (self.model_param, self.task_type_param):
            if ref is not None and ref not in known:
                raise ValueError(f"adapter {self.name}: unknown field {ref}")
        for group in self.require_one_of:
            missing = [n for n in group if n not in known]
            if missing:
                raise ValueError(f"adapter {self.name}: require_one_of names unknown fields {missing}")
        for f in self.fields:
            if f.when is not None and f.when.param not in known:
                raise ValueError(f"adapter {self.name}: field {f.name} depends on unknown {f.when.param}")

        if self.max_retries < 1:
            raise ValueError(f"adapter {self.name}: max_retries must be >= 1")
        return self

    def field(self, name: str) -> FieldSpec:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(f"adapter {self.name} has no field {name}")

    def summary(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "family": self.family,
            "model": self.model,
            "task_type": self.task_type,
        }
