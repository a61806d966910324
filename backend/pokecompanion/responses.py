"""
PokéCompanion Backend: Error Response Bodies
=============================================

What:  Builds the JSON error body shared by the exception handlers and the
       rate limiting middleware:
           {"error": ..., "message": ..., "details"?: ..., "request_id": ...}
How:   The request id comes from the request context var while
       RequestIDMiddleware is active, and from request.state or the incoming
       X-Request-ID header in handlers that run outside it (the catch-all
       500 handler runs in Starlette's ServerErrorMiddleware).
"""

from typing import Optional

from starlette.requests import Request
from starlette.responses import JSONResponse

from pokecompanion.exceptions import PokeCompanionError
from pokecompanion.middleware.request_id import request_id_var


def request_id_for(request: Request) -> str:
    return (
        request_id_var.get("")
        or getattr(request.state, "request_id", "")
        or request.headers.get("X-Request-ID", "")
    )


def error_response(
    request: Request,
    status_code: int,
    error: str,
    exc: PokeCompanionError,
    include_details: bool = False,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = {
        "error": error,
        "message": exc.message,
        "request_id": request_id_for(request),
    }
    if include_details and exc.context:
        content["details"] = exc.context
    return JSONResponse(status_code=status_code, content=content, headers=headers)
