from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from recruitflow.api.routes import router as api_router
from recruitflow.config import get_settings
from recruitflow.db.init import init_database
from recruitflow.errors import RecruitFlowError
from recruitflow.logging_config import configure_logging

logger = logging.getLogger(__name__)


def describe_validation_errors(errors: Sequence[dict[str, Any]]) -> str:
    """Flatten request validation errors into one client-facing message."""
    parts = []
    for error in errors:
        # drop the "body" / "query" prefix, keep the field path
        field = ".".join(str(item) for item in error.get("loc", ())[1:]) or "request"
        parts.append(f"Invalid {field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def _startup() -> None:
        init_database()

    @app.exception_handler(RecruitFlowError)
    async def recruitflow_error_handler(request: Request, exc: RecruitFlowError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Request failed path=%s error=%s", request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": describe_validation_errors(exc.errors())})

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(api_router)
    return app
