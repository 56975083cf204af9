"""FastAPI application factory for kubediscovery.

Usage::

    from kubediscovery.api.app import create_app

    app = create_app(store=store, schema_provider=provider)

The factory is used by both the production bootstrap
(``kubediscovery.app``) and unit tests.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from kubediscovery.api.routes import router
from kubediscovery.api.schemas import ErrorResponse
from kubediscovery.query import CompositionQueryService
from kubediscovery.schema.provider import SchemaProvider
from kubediscovery.store.composition_store import CompositionStore

_log = structlog.get_logger(component="api.app")

API_PREFIX = "/apis/kubediscovery.cloudark.io/v1"


def create_app(store: CompositionStore, schema_provider: SchemaProvider) -> FastAPI:
    """Create and configure the kubediscovery FastAPI application.

    Args:
        store:           CompositionStore read by every query.
        schema_provider: Provider whose current snapshot resolves kind names.

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from kubediscovery import __version__

    app = FastAPI(
        title="kubediscovery",
        summary="Kubernetes resource composition API",
        version=__version__,
        docs_url=f"{API_PREFIX}/docs",
        redoc_url=None,
        openapi_url=f"{API_PREFIX}/openapi.json",
    )

    app.state.store = store
    app.state.schema_provider = schema_provider
    app.state.query_service = CompositionQueryService(store, schema_provider)

    app.include_router(router, prefix=API_PREFIX)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        _request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        first_msg = str(errors[0].get("msg", "")) if errors else ""
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error="INVALID_QUERY", detail=first_msg).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                detail="An unexpected error occurred.",
            ).model_dump(),
        )

    return app
