from __future__ import annotations
from typing import Dict, Iterable, List

from mediaflow.adapters.catalog import ALL_ADAPTERS
from mediaflow.adapters.dsl import AdapterSpec


class AdapterRegistry:
    def __init__(self) -> None:
        self._adapters: Dict[str, AdapterSpec] = {}

    def register(self, spec: AdapterSpec) -> None:
        if spec.name in self._adapters:
            raise ValueError(f"adapter already registered: {spec.name}")
        self._adapters[spec.name] = spec

    def get(self, name: str) -> AdapterSpec:
        if name not in self._adapters:
            raise KeyError(f"adapter not registered: {name}")
        return self._adapters[name]

    def names(self) -> List[str]:
        return sorted(self._adapters)

    def all(self) -> List[AdapterSpec]:
        return [self._adapters[n] for n in self.names()]

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)


def build_adapter_registry(specs: Iterable[AdapterSpec] = ALL_ADAPTERS) -> AdapterRegistry:
    reg = AdapterRegistry()
    for spec in specs:
        reg.register(spec)
    return reg
