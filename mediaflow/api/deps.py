from __future__ import annotations

from typing import AsyncIterator

from fastapi import HTTPException

from mediaflow.adapters.registry import AdapterRegistry, build_adapter_registry
from mediaflow.client.dispatcher import Dispatcher
from mediaflow.core.errors import InputValidationError

# Built once; adapter specs are immutable declarations.
adapter_registry = build_adapter_registry()


def get_registry() -> AdapterRegistry:
    return adapter_registry


async def get_dispatcher() -> AsyncIterator[Dispatcher]:
    try:
        dispatcher = Dispatcher()
    except InputValidationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    try:
        yield dispatcher
    finally:
        await dispatcher.close()
