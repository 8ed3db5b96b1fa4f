from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from floorops.api.error_handling import register_exception_handlers
from floorops.api.middleware.access_log import AccessLogMiddleware
from floorops.api.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from floorops.api.routes.billing import router as billing_router
from floorops.api.routes.health import router as health_router
from floorops.api.routes.kitchen import router as kitchen_router
from floorops.api.routes.metrics import router as metrics_router
from floorops.api.routes.orders import router as orders_router
from floorops.api.routes.reservations import router as reservations_router
from floorops.api.routes.tables import router as tables_router
from floorops.api.routes.tax_settings import router as tax_settings_router
from floorops.infrastructure.observability.logging_config import configure_logging
from floorops.infrastructure.observability.otel import configure_otel

ROUTERS = (
    health_router,
    metrics_router,
    tables_router,
    orders_router,
    kitchen_router,
    billing_router,
    reservations_router,
    tax_settings_router,
)


def _cors_allow_origins() -> list[str]:
    # Dev/test: any origin, no credentials
    if os.getenv("APP_ENV", "dev").lower() in {"dev", "test"}:
        return ["*"]

    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="FloorOps", version="0.1.0")
    register_exception_handlers(app)
    for router in ROUTERS:
        app.include_router(router)

    # Added innermost first: CORS sees the request before the request id is assigned.
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    configure_otel(app)
    return app


app = create_app()
