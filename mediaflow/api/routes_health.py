from fastapi import APIRouter, Depends

from mediaflow.adapters.registry import AdapterRegistry
from mediaflow.api.deps import get_registry
from mediaflow.core.config import settings

router = APIRouter(tags=["health"])

@router.get("/")
def root():
    return {"service": "mediaflow", "version": "0.1.0", "env": settings.app_env}

@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/ready")
def ready(registry: AdapterRegistry = Depends(get_registry)):
    # no outbound call: readiness only means we could dispatch if asked
    has_key = bool(settings.api_key)
    return {"ready": has_key and len(registry) > 0, "api_key": has_key, "adapters": len(registry)}
