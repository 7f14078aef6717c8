from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from core.config import get_settings
from core.db import init_db
from core.logging_config import (
    monotonic_ms,
    new_request_id,
    request_log_fields,
    reset_request_id,
    set_request_id,
    setup_logging,
)
from core.services.wearables.sahha import SahhaClient

logger = logging.getLogger(__name__)


def create_app(sahha_client: Optional[SahhaClient] = None) -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db()
        owns_client = False
        if app.state.sahha_client is None and settings.sahha_configured:
            app.state.sahha_client = SahhaClient.from_settings(settings)
            owns_client = True
        logger.info(
            "app_started",
            extra={"app_env": settings.app_env, "sahha_configured": app.state.sahha_client is not None},
        )
        try:
            yield
        finally:
            if owns_client:
                app.state.sahha_client.close()

    app = FastAPI(title="Athlete Health Insights API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.sahha_client = sahha_client
    app.include_router(router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context_and_logging(request: Request, call_next: Callable) -> Response:
        header_name = settings.request_id_header_name or "X-Request-ID"
        request_id = (request.headers.get(header_name) or "").strip() or new_request_id()
        token = set_request_id(request_id)
        started_ms = monotonic_ms()
        client_ip = getattr(request.client, "host", None)
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "http_request_error",
                extra=request_log_fields(
                    method=request.method,
                    path=request.url.path,
                    status_code=500,
                    duration_ms=monotonic_ms() - started_ms,
                    client_ip=client_ip,
                ),
            )
            raise
        else:
            response.headers[header_name] = request_id
            logger.info(
                "http_request",
                extra=request_log_fields(
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=monotonic_ms() - started_ms,
                    client_ip=client_ip,
                ),
            )
            return response
        finally:
            reset_request_id(token)

    return app


app = create_app()
