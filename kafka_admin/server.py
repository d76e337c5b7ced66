# kafka_admin/server.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kafka_admin.api.routers import api_router
from kafka_admin.coordinator import KafkaAdminCoordinator
from kafka_admin.core.config import Settings, get_settings
from kafka_admin.core.errors import install_exception_handlers
from kafka_admin.core.log import setup_logging


def create_app(
    settings: Optional[Settings] = None,
    coordinator: Optional[KafkaAdminCoordinator] = None,
) -> FastAPI:
    """Build the admin API. Settings are resolved at startup, not at import."""

    # Lifespan handler replaces @app.on_event("startup"/"shutdown")
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = settings or (coordinator.settings if coordinator else get_settings())
        setup_logging(cfg.log_level)
        app.state.coordinator = coordinator or KafkaAdminCoordinator(cfg)
        try:
            yield
        finally:
            app.state.coordinator.close()

    app = FastAPI(
        title="Kafka Admin Coordinator API",
        version="1.0.0",
        lifespan=lifespan,
        openapi_url="/api/v1/openapi.json",
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
    )

    allow_origins = (settings.cors_allow_origins if settings else None) or [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("kafka_admin.server:app", host="0.0.0.0", port=8000)
