from __future__ import annotations

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI  # noqa: E402
from mediaflow.api.routes_adapters import router as adapters_router  # noqa: E402
from mediaflow.api.routes_health import router as health_router  # noqa: E402
from mediaflow.api.routes_tasks import router as tasks_router  # noqa: E402
from mediaflow.core.config import settings  # noqa: E402
from mediaflow.core.logging_utils import setup_logging  # noqa: E402


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="mediaflow", version="0.1.0")
    app.include_router(health_router)
    app.include_router(adapters_router)
    app.include_router(tasks_router)
    return app


app = create_app()
