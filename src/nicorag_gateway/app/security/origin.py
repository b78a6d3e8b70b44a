# src/nicorag_gateway/app/security/origin.py
from __future__ import annotations

import logging
from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from nicorag_gateway.app.core.config import USER_TOKEN_HEADER
from nicorag_gateway.app.core.errors import CorsBlocked, error_body

_log = logging.getLogger("nicorag.cors")

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = f"Content-Type, Authorization, {USER_TOKEN_HEADER}"


class OriginGate:
    """
    Allow-list check for the browser `Origin` header.

      - no Origin (curl, server-to-server)  -> always allowed
      - non-empty allow-list                -> membership
      - empty allow-list                    -> allow all if `allow_all_when_empty`
                                               (permissive mode), else deny all
    """
    def __init__(self, allowed_origins: Iterable[str], allow_all_when_empty: bool = True):
        self.allowed = frozenset(o for o in allowed_origins if o)
        self.allow_all_when_empty = allow_all_when_empty

    @property
    def permissive(self) -> bool:
        return not self.allowed and self.allow_all_when_empty

    def allows(self, origin: Optional[str]) -> bool:
        if not origin:
            return True
        if self.permissive:
            return True
        return origin in self.allowed

    def check(self, origin: Optional[str]) -> None:
        if not self.allows(origin):
            raise CorsBlocked(f"CORS: origin blocked: {origin}")

    def allow_origin_value(self, origin: str) -> str:
        return "*" if self.permissive else origin


class OriginGateMiddleware(BaseHTTPMiddleware):
    """
    Applies the gate to every route, answers preflight (OPTIONS on any path)
    with 204, and adds CORS response headers for allowed browser origins.
    """
    def __init__(self, app: ASGIApp, gate: OriginGate):
        super().__init__(app)
        self.gate = gate

    def _cors_headers(self, origin: Optional[str]) -> dict:
        if not origin:
            return {}
        return {
            "Access-Control-Allow-Origin": self.gate.allow_origin_value(origin),
            "Vary": "Origin",
        }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        origin = request.headers.get("origin")
        try:
            self.gate.check(origin)
        except CorsBlocked as ex:
            _log.warning("%s (%s %s)", ex.detail, request.method, request.url.path)
            return JSONResponse(status_code=ex.status_code, content=error_body(ex.code, ex.detail))

        if request.method == "OPTIONS":
            headers = {
                **self._cors_headers(origin),
                "Access-Control-Allow-Methods": ALLOW_METHODS,
                "Access-Control-Allow-Headers": ALLOW_HEADERS,
            }
            return Response(status_code=204, headers=headers)

        response = await call_next(request)
        for k, v in self._cors_headers(origin).items():
            response.headers[k] = v
        return response
