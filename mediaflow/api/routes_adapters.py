from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from mediaflow.adapters.contracts import RunAdapterRequest
from mediaflow.adapters.dsl import AdapterSpec
from mediaflow.adapters.registry import AdapterRegistry
from mediaflow.api.deps import get_dispatcher, get_registry
from mediaflow.api.errors import to_http_error
from mediaflow.api.schemas_adapters import AdapterSummary, RunAdapterResponse
from mediaflow.client.dispatcher import Dispatcher
from mediaflow.core.errors import MediaflowError
from mediaflow.runtime.runner import run_items


router = APIRouter(prefix="/adapters", tags=["adapters"])


def _lookup(registry: AdapterRegistry, name: str) -> AdapterSpec:
    try:
        return registry.get(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"adapter not found: {name}")


@router.get("", response_model=list[AdapterSummary])
def list_adapters(registry: AdapterRegistry = Depends(get_registry)):
    return [AdapterSummary(**spec.summary()) for spec in registry.all()]


@router.get("/{name}", response_model=AdapterSpec)
def get_adapter(name: str, registry: AdapterRegistry = Depends(get_registry)):
    return _lookup(registry, name)


@router.post("/{name}/run", response_model=RunAdapterResponse)
async def run_adapter_endpoint(
    name: str,
    req: RunAdapterRequest,
    registry: AdapterRegistry = Depends(get_registry),
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    """
    Run every item through the adapter, in order.

    With ``continue_on_fail`` a failing item shows up as ``{"error": ...}``
    in ``results``; otherwise the first failure maps onto an HTTP error.
    """
    spec = _lookup(registry, name)
    try:
        results = await run_items(
            dispatcher,
            spec,
            req.items,
            continue_on_fail=req.continue_on_fail,
            wait=req.wait,
            max_retries=req.max_retries,
            retry_interval_ms=req.retry_interval_ms,
        )
    except MediaflowError as e:
        raise to_http_error(e)
    return RunAdapterResponse(adapter=spec.name, results=results)
