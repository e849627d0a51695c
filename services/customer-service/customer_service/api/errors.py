"""Central translation of domain errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..domain.errors import CustomerServiceError

logger = logging.getLogger(__name__)


async def handle_service_error(request: Request, exc: CustomerServiceError) -> JSONResponse:
    """Render a domain error as ``{"detail": message}`` with its status code."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CustomerServiceError, handle_service_error)
