# src/nicorag_gateway/app/core/errors.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

_log = logging.getLogger("nicorag.errors")


# ------------------------
# Taxonomy
# ------------------------
class GatewayError(StarletteHTTPException):
    """
    HTTPException with a machine-readable `code`.
    Rendered as {"error": code, "detail": detail} by install_error_handlers().
    """
    code = "server_error"
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = "", status_code: Optional[int] = None):
        super().__init__(status_code=status_code or self.status_code_default, detail=detail)


class BadRequest(GatewayError):
    code = "bad_request"
    status_code_default = status.HTTP_400_BAD_REQUEST


class Unauthorized(GatewayError):
    code = "unauthorized"
    status_code_default = status.HTTP_401_UNAUTHORIZED


class CorsBlocked(GatewayError):
    code = "cors_blocked"
    status_code_default = status.HTTP_403_FORBIDDEN


class MethodNotAllowed(GatewayError):
    code = "method_not_allowed"
    status_code_default = status.HTTP_405_METHOD_NOT_ALLOWED


class PayloadTooLarge(GatewayError):
    code = "payload_too_large"
    status_code_default = 413


class AuthExchangeError(GatewayError):
    """The identity provider rejected the on-behalf-of exchange."""
    code = "auth_exchange_failed"
    status_code_default = status.HTTP_502_BAD_GATEWAY


class GraphError(GatewayError):
    """Microsoft Graph answered with a non-success status."""
    code = "graph_error"
    status_code_default = status.HTTP_502_BAD_GATEWAY


class UpstreamError(GatewayError):
    """
    The completion provider answered with a non-success status.
    `body` is the raw response text (may not be JSON).
    """
    code = "upstream_error"
    status_code_default = status.HTTP_502_BAD_GATEWAY

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(detail=body, status_code=status_code)
        self.body = body


class UpstreamNotConfigured(GatewayError):
    code = "not_configured"
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR


# Codes for HTTPExceptions raised by Starlette/FastAPI themselves
_CODES_BY_STATUS = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
}


def error_body(code: str, detail: str) -> dict:
    return {"error": code, "detail": detail}


# ------------------------
# Handlers
# ------------------------
async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = getattr(exc, "code", None) or _CODES_BY_STATUS.get(exc.status_code, "server_error")
    detail = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and not isinstance(exc, GatewayError):
        detail = request.url.path
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(code, str(detail) if detail is not None else ""),
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    _log.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("unhandled", str(exc) or exc.__class__.__name__),
    )


def install_error_handlers(app: FastAPI) -> None:
    """Render every error as the {error, detail} envelope."""
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
