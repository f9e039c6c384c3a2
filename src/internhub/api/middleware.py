"""FastAPI middleware for request tracing, error handling, and CORS.

Middleware stack (applied bottom-up):
    1. RequestIDMiddleware - injects X-Request-ID into every request/response
    2. ErrorHandlerMiddleware - catches domain exceptions -> error envelopes
    3. CORSMiddleware - browser clients of the marketplace frontend

Request body/query validation errors never reach the middleware (FastAPI
handles them inside the router), so they get an exception handler instead.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from internhub.domain.exceptions import (
    ConflictError,
    ForbiddenError,
    InternHubError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from internhub.logging_config import bind_request_context, get_logger
from internhub.schemas.common import Envelope

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

    from internhub.config import Settings

logger = get_logger(__name__)


def error_response(status_code: int, message: str, code: str) -> JSONResponse:
    """Build an error envelope response."""
    body = Envelope[None](status="error", message=message, code=code)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


# ---------------------------------------------------------------------------
# 1. Request ID Middleware
# ---------------------------------------------------------------------------
class RequestIDMiddleware(BaseHTTPMiddleware):
    """Inject a unique X-Request-ID into every request for log correlation."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Use client-provided ID or generate one
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

        # Bind to structlog context for all log entries in this request
        bind_request_context(request_id, request.method, request.url.path)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


# ---------------------------------------------------------------------------
# 2. Error Handler Middleware
# ---------------------------------------------------------------------------
class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catch domain exceptions and return error envelopes."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except ValidationError as exc:
            logger.info("request.invalid", error=exc.message)
            return error_response(400, exc.message, exc.code)
        except UnauthenticatedError as exc:
            logger.info("auth.unauthenticated", error=exc.message)
            return error_response(401, exc.message, exc.code)
        except ForbiddenError as exc:
            logger.warning("auth.forbidden", error=exc.message)
            return error_response(403, exc.message, exc.code)
        except NotFoundError as exc:
            logger.info("resource.not_found", error=exc.message, code=exc.code)
            return error_response(404, exc.message, exc.code)
        except ConflictError as exc:
            logger.warning("state.conflict", error=exc.message, code=exc.code)
            return error_response(409, exc.message, exc.code)
        except InternHubError as exc:
            logger.error("domain.error", error=exc.message, code=exc.code)
            return error_response(400, exc.message, exc.code)
        except Exception as exc:
            logger.exception("unhandled.error", error=str(exc))
            return error_response(500, "An unexpected error occurred", "INTERNAL_ERROR")


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Map pydantic request validation failures to a 400 envelope."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    message = "; ".join(problems) or "Invalid request"
    logger.info("request.invalid", error=message)
    return error_response(400, message, "VALIDATION_ERROR")


# ---------------------------------------------------------------------------
# Setup function
# ---------------------------------------------------------------------------
def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware and exception handlers on the FastAPI application.

    Order matters - middleware is applied bottom-up, so the last added
    middleware runs first.
    """
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # CORS (innermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Error handling
    app.add_middleware(ErrorHandlerMiddleware)

    # Request ID (outermost)
    app.add_middleware(RequestIDMiddleware)
