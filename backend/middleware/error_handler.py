"""
Error handling middleware for The Blacklist backend.

Turns exceptions escaping a route into JSON error bodies, or into an HTML
error fragment when the request came from HTMX.  The response still passes
through CORSMiddleware, so error responses carry CORS headers.
"""

import logging
import traceback

from fastapi import FastAPI, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from exceptions import BlacklistException
from rendering import render_error, wants_fragment

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong"


def error_response(request: Request, exc: Exception) -> Response:
    """Build the response for an exception raised while serving request."""
    fragment = wants_fragment(request.headers)

    if isinstance(exc, BlacklistException):
        if fragment:
            return HTMLResponse(render_error(exc.message), status_code=exc.status_code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    if fragment:
        return HTMLResponse(render_error(GENERIC_ERROR_MESSAGE), status_code=500)
    return JSONResponse(status_code=500, content={"error": GENERIC_ERROR_MESSAGE})


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Catches any exception raised by a route handler.

    Must be added AFTER CORSMiddleware in the middleware stack (so it runs
    BEFORE CORSMiddleware in the request flow).
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except BlacklistException as exc:
            logger.warning(
                f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}"
            )
            return error_response(request, exc)
        except Exception as exc:
            error_msg = str(exc) if str(exc) else "(no message)"
            logger.error(
                f"Unhandled exception in request {request.method} {request.url.path}: "
                f"{type(exc).__name__}: {error_msg}"
            )
            logger.debug(f"Full traceback:\n{traceback.format_exc()}")
            return error_response(request, exc)


def add_error_handlers(app: FastAPI) -> None:
    """
    Register exception handlers for domain errors.

    Exception handlers run inside the routing layer, so domain errors never
    reach the middleware as raw exceptions.  The middleware stays as the
    catch-all for everything else.
    """

    @app.exception_handler(BlacklistException)
    async def blacklist_exception_handler(request: Request, exc: BlacklistException):
        logger.warning(
            f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}"
        )
        return error_response(request, exc)
