from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

try:
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
except Exception:  # pragma: no cover - optional dependency resolution
    FastAPIInstrumentor = None

from apps.api.errors import register_error_handlers
from apps.api.observability import init_observability
from apps.api.routes.diagnostics import router as diagnostics_router
from apps.api.routes.feeds import router as feeds_router
from apps.api.routes.newsletter import router as newsletter_router
from apps.api.routes.subscribers import router as subscribers_router
from apps.api.scheduler import start_scheduler
from apps.api.services import Services, build_services
from packages.core.config import load_settings
from packages.core.logging_config import configure_logging


logger = logging.getLogger("feedletter.api")


def create_app(services: Optional[Services] = None) -> FastAPI:
    app = FastAPI(title="Feedletter API")
    app.state.services = services
    app.state.scheduler = None
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if FastAPIInstrumentor is not None:
        FastAPIInstrumentor.instrument_app(app)
    else:
        logger.warning(
            "OpenTelemetry instrumentation not available. "
            "Install observability dependencies to enable tracing."
        )
    register_error_handlers(app)
    app.include_router(feeds_router)
    app.include_router(subscribers_router)
    app.include_router(newsletter_router)
    app.include_router(diagnostics_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.on_event("startup")
    def _startup() -> None:
        if app.state.services is None:
            app.state.services = build_services(load_settings())
        settings = app.state.services.settings
        if not settings.scheduler_enabled or app.state.scheduler is not None:
            return
        app.state.scheduler = start_scheduler(app.state.services)

    @app.on_event("shutdown")
    def _shutdown() -> None:
        if app.state.scheduler is not None:
            app.state.scheduler.shutdown(wait=False)
            app.state.scheduler = None

    return app


configure_logging()

init_observability()
app = create_app()
