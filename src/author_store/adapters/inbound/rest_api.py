"""REST API adapter for the author store.

This module provides a FastAPI application over an IndexedStore. The store
handle is passed to create_app() and captured by the route handlers; there
is no module-level store.

Endpoints:
    GET /healthcheck - Liveness probe (plain text)
    POST /authors - Insert or replace an author
    GET /authors - List authors by id, optionally filtered by subject

Usage:
    from author_store.adapters.inbound.rest_api import create_app
    from author_store.application import build_schema
    from author_store.domain.services import IndexedStore

    app = create_app(IndexedStore(build_schema()))
    # Run with uvicorn: uvicorn app:app --host 0.0.0.0 --port 8080

References:
    - FastAPI documentation: https://fastapi.tiangolo.com/
"""

from __future__ import annotations

import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from author_store import __version__
from author_store.application import AuthorService, build_schema
from author_store.domain.entities import Author
from author_store.domain.services import IndexedStore
from author_store.domain.value_objects import UINT64_MAX, SchemaError, StoreError
from author_store.infrastructure import (
    MetricsRegistry,
    bind_request_context,
    clear_request_context,
    get_config,
    get_logger,
    setup_logging,
    setup_metrics,
    setup_tracing,
    trace_span,
)
from author_store.ports.inbound import Store

HEALTHCHECK_BODY = "Current I'm alive\n"
UNMATCHED_ROUTE = "unmatched"

logger = get_logger(__name__)


class AuthorRequest(BaseModel):
    """Request body for creating or replacing an author."""

    model_config = ConfigDict(strict=True)

    id: int = Field(..., ge=0, le=UINT64_MAX, description="Author id (primary key)")
    name: str = Field(..., description="Author name")
    subjects: list[str] = Field(default_factory=list, description="Subjects, each indexed")

    def to_author(self) -> Author:
        return Author(id=self.id, name=self.name, subjects=self.subjects)


class AuthorResponse(BaseModel):
    """A stored author."""

    id: int = Field(..., description="Author id")
    name: str = Field(..., description="Author name")
    subjects: list[str] = Field(default_factory=list, description="Subjects")

    @classmethod
    def from_author(cls, author: Author) -> AuthorResponse:
        return cls(**author.to_dict())


class ErrorResponse(BaseModel):
    """Response model for failed requests."""

    detail: str = Field(..., description="Error message")


def _route_label(request: Request) -> str:
    """Route template the request matched, so metric labels stay bounded."""
    route = request.scope.get("route")
    return getattr(route, "path", UNMATCHED_ROUTE)


def create_app(store: Store, metrics: MetricsRegistry | None = None) -> FastAPI:
    """Create a FastAPI application over a store.

    Args:
        store: The store every request handler uses.
        metrics: Optional metrics registry for request counts.

    Returns:
        A configured FastAPI application.
    """
    service = AuthorService(store)

    app = FastAPI(
        title="Author Store API",
        description="Create and list authors held in an in-memory indexed store",
        version=__version__,
    )
    app.state.store = store

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        bind_request_context(request_id=str(uuid.uuid4()), path=request.url.path)
        try:
            response = await call_next(request)
        finally:
            clear_request_context("request_id", "path")
        if metrics is not None:
            metrics.http_requests_total.labels(
                route=_route_label(request), status_code=str(response.status_code)
            ).inc()
        return response

    @app.exception_handler(RequestValidationError)
    async def malformed_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("request_rejected", path=request.url.path, errors=len(exc.errors()))
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(detail="Malformed request body").model_dump(),
        )

    @app.exception_handler(StoreError)
    async def store_failure(request: Request, exc: StoreError) -> JSONResponse:
        logger.error(
            "store_operation_failed",
            path=request.url.path,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(detail=str(exc)).model_dump(),
        )

    # Handlers are sync so FastAPI runs them in its threadpool; a write
    # may block on the store's write lock.

    @app.get("/healthcheck", response_class=PlainTextResponse, tags=["Health"])
    def healthcheck() -> str:
        """Liveness probe."""
        return HEALTHCHECK_BODY

    @app.post(
        "/authors",
        response_model=AuthorResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
        tags=["Authors"],
    )
    def create_author(request: AuthorRequest) -> AuthorResponse:
        """Insert or replace an author by id and echo the stored record."""
        with trace_span("authors.create", {"author.id": request.id}):
            author = service.save_author(request.to_author())
        return AuthorResponse.from_author(author)

    @app.get(
        "/authors",
        response_model=list[AuthorResponse],
        responses={500: {"model": ErrorResponse}},
        tags=["Authors"],
    )
    def list_authors(subject: str | None = None) -> list[AuthorResponse]:
        """List authors in id order; with subject, only authors covering it."""
        with trace_span("authors.list", {"authors.subject": subject or ""}):
            if subject is None:
                authors = service.list_authors()
            else:
                authors = service.authors_by_subject(subject)
        return [AuthorResponse.from_author(author) for author in authors]

    return app


def run_server(
    store: Store,
    host: str = "0.0.0.0",
    port: int = 8080,
    metrics: MetricsRegistry | None = None,
) -> None:
    """Run the REST API server.

    Args:
        store: The store to serve.
        host: Host to bind to.
        port: Port to bind to.
        metrics: Optional metrics registry.
    """
    import uvicorn

    app = create_app(store, metrics)
    uvicorn.run(app, host=host, port=port, log_config=None)


def main() -> None:
    """Console entry point: configure, build the store, serve."""
    config = get_config()
    observability = config.observability

    setup_logging(
        observability.log_level,
        observability.log_format,
        service_name=observability.otel_service_name,
    )
    setup_tracing(observability.otel_service_name, observability.otel_endpoint)

    metrics = None
    if config.server.metrics_enabled:
        metrics = setup_metrics(config.server.metrics_port)

    try:
        schema = build_schema()
    except SchemaError as e:
        logger.critical("schema_invalid", error=str(e))
        raise

    store = IndexedStore(
        schema,
        write_lock_timeout=config.store.write_lock_timeout_seconds,
        metrics=metrics,
    )

    logger.info(
        "server_starting",
        host=config.server.host,
        port=config.server.port,
        tables=list(schema.table_names),
    )
    run_server(store, config.server.host, config.server.port, metrics)


if __name__ == "__main__":
    main()
