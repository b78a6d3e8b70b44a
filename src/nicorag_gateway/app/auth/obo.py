# src/nicorag_gateway/app/auth/obo.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
import jwt

from nicorag_gateway.app.core.config import Settings
from nicorag_gateway.app.core.errors import AuthExchangeError
from nicorag_gateway.app.core.trace import auth_trace

_log = logging.getLogger("nicorag.auth.obo")

OBO_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"


def _unverified_claims(token: str) -> Dict[str, Any]:
    """Peek at the assertion's claims for tracing only (no signature check)."""
    try:
        return jwt.decode(token, options={"verify_signature": False, "verify_aud": False})
    except jwt.PyJWTError:
        return {}


class OnBehalfOfClient:
    """
    Confidential-client OBO exchange against Entra ID.

    Trades the caller's access token (the assertion) plus the gateway's own
    client credential for a token scoped to Microsoft Graph. Nothing is
    cached: every call is a fresh round trip to the token endpoint.
    """
    def __init__(self, settings: Settings):
        self.tenant_id = settings.tenant_id
        self.client_id = settings.client_id
        self._client_secret = settings.client_secret
        self.scope = settings.graph_scope
        self.timeout = settings.upstream_timeout_sec
        self.token_endpoint = f"{settings.authority_host}/{settings.tenant_id}/oauth2/v2.0/token"
        self.trace = settings.auth_trace

    def _trace(self, event: str, **kv: Any) -> None:
        auth_trace(event, enabled=self.trace, **kv)

    @property
    def configured(self) -> bool:
        return bool(self.tenant_id and self.client_id and self._client_secret)

    async def exchange(self, user_token: str, client: Optional[httpx.AsyncClient] = None) -> str:
        """Return a Graph access token for the user behind `user_token`."""
        if not self.configured:
            raise AuthExchangeError("OBO not configured (TENANT_ID/API_CLIENT_ID/API_CLIENT_SECRET)")
        if not user_token:
            raise AuthExchangeError("OBO failed: empty user token")

        peek = _unverified_claims(user_token)
        self._trace("obo.exchange.begin", tenant=self.tenant_id,
                    aud=peek.get("aud"), tid=peek.get("tid"), scope=self.scope)

        data = {
            "grant_type": OBO_GRANT_TYPE,
            "client_id": self.client_id,
            "client_secret": self._client_secret,
            "assertion": user_token,
            "scope": self.scope,
            "requested_token_use": "on_behalf_of",
        }

        own = client or httpx.AsyncClient(timeout=self.timeout)
        try:
            tr = await own.post(self.token_endpoint, data=data, headers={"Accept": "application/json"})
        except httpx.TimeoutException:
            self._trace("obo.exchange.timeout")
            raise AuthExchangeError("OBO failed: token endpoint timed out")
        except httpx.HTTPError as ex:
            self._trace("obo.exchange.transport_error", err=str(ex))
            raise AuthExchangeError(f"OBO failed: {ex}")
        finally:
            if client is None:
                await own.aclose()

        try:
            tok = tr.json()
        except ValueError:
            tok = {}
        if not isinstance(tok, dict):
            tok = {}

        if tr.status_code != 200:
            err = tok.get("error") or tr.status_code
            lines = (tok.get("error_description") or tr.text or "").splitlines()
            desc = lines[0][:300] if lines else ""
            self._trace("obo.exchange.rejected", status=tr.status_code, error=err)
            raise AuthExchangeError(f"OBO failed: {err} {desc}".strip())

        access = tok.get("access_token")
        if not access:
            self._trace("obo.exchange.no_token", status=tr.status_code)
            raise AuthExchangeError("OBO failed: no access_token in token response")

        self._trace("obo.exchange.ok", expires_in=tok.get("expires_in"))
        return access
