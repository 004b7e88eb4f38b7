"""Error responses for Scribe.

Blog pages render the ``error.html`` template; the admin API and health
endpoints answer with a JSON ``{"code", "text"}`` body.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from scribe.api.templating import templates
from scribe.integrations.base import IntegrationError

logger = logging.getLogger(__name__)

JSON_PATH_PREFIXES = ("/admin", "/health", "/metrics")


class ScribeError(HTTPException):
    """Base exception for Scribe errors."""

    def __init__(self, status_code: int, code: str, text: str):
        self.code = code
        self.text = text
        super().__init__(status_code=status_code, detail=text)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "text": self.text}


class NotFoundError(ScribeError):
    """Resource not found (404)."""

    def __init__(self, resource_type: str, identifier: str):
        super().__init__(
            status_code=404,
            code="NotFound",
            text=f"{resource_type} '{identifier}' not found",
        )


class BadRequestError(ScribeError):
    """Invalid request (400)."""

    def __init__(self, text: str):
        super().__init__(status_code=400, code="BadRequest", text=text)


class UnauthorizedError(ScribeError):
    """Missing or invalid credentials (401)."""

    def __init__(self, text: str = "Invalid or missing admin token"):
        super().__init__(status_code=401, code="Unauthorized", text=text)
        self.headers = {"WWW-Authenticate": "Bearer"}


class UpstreamError(ScribeError):
    """An outbound service failed (502)."""

    def __init__(self, service: str):
        super().__init__(
            status_code=502,
            code="BadGateway",
            text=f"The {service} service is unavailable, please try again later",
        )


class InternalServerError(ScribeError):
    """Internal server error (500)."""

    def __init__(self, text: str = "An unexpected error occurred"):
        super().__init__(status_code=500, code="InternalServerError", text=text)


def wants_json(request: Request) -> bool:
    """Whether errors for ``request`` should be JSON rather than HTML."""
    return request.url.path.startswith(JSON_PATH_PREFIXES)


def render_error(request: Request, error: ScribeError) -> Response:
    """Render ``error`` in the format the request's area of the site uses."""
    if wants_json(request):
        return ORJSONResponse(
            status_code=error.status_code,
            content=error.to_dict(),
            headers=error.headers,
        )
    return templates.TemplateResponse(
        request,
        "error.html",
        {"message": error.text, "status": error.status_code},
        status_code=error.status_code,
        headers=error.headers,
    )


async def scribe_exception_handler(request: Request, exc: ScribeError) -> Response:
    """Exception handler for Scribe errors."""
    return render_error(request, exc)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Exception handler for framework errors such as unmatched routes."""
    error = ScribeError(
        status_code=exc.status_code,
        code=HTTPStatus(exc.status_code).phrase.replace(" ", ""),
        text=str(exc.detail),
    )
    error.headers = exc.headers
    return render_error(request, error)


async def integration_exception_handler(request: Request, exc: IntegrationError) -> Response:
    """Exception handler for failed outbound calls."""
    logger.error("Integration %s failed: %s", exc.service, exc.detail)
    return render_error(request, UpstreamError(exc.service))


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Exception handler for unexpected errors."""
    logger.exception("Unhandled error for %s %s", request.method, request.url.path)
    return render_error(request, InternalServerError())
