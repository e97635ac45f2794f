"""Inbound adapters for the author store.

Inbound adapters handle incoming requests and convert them to
store operations.

Exports:
    REST API:
        - create_app: Create a FastAPI application over a store
        - run_server: Run the REST API server
        - main: Console entry point
        - AuthorRequest, AuthorResponse: Request/response models
"""

from author_store.adapters.inbound.rest_api import (
    AuthorRequest,
    AuthorResponse,
    create_app,
    main,
    run_server,
)

__all__ = [
    "create_app",
    "run_server",
    "main",
    "AuthorRequest",
    "AuthorResponse",
]
