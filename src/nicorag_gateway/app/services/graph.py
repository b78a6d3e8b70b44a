# src/nicorag_gateway/app/services/graph.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from nicorag_gateway.app.core.config import Settings
from nicorag_gateway.app.core.errors import GraphError


@dataclass(frozen=True)
class ProfileRecord:
    display_name: str
    mail: str


def profile_from_me(me: Dict[str, Any]) -> ProfileRecord:
    """displayName + mail (fallback userPrincipalName); "?" when absent."""
    return ProfileRecord(
        display_name=me.get("displayName") or "?",
        mail=me.get("mail") or me.get("userPrincipalName") or "?",
    )


class GraphClient:
    """Reads the signed-in user's `/me` resource with a Graph token."""

    def __init__(self, settings: Settings):
        self.me_url = f"{settings.graph_base_url}/me"
        self.timeout = settings.upstream_timeout_sec

    async def get_me(self, graph_token: str, client: Optional[httpx.AsyncClient] = None) -> httpx.Response:
        """One authenticated GET; the raw response is returned whatever its status."""
        own = client or httpx.AsyncClient(timeout=self.timeout)
        try:
            return await own.get(self.me_url, headers={"Authorization": f"Bearer {graph_token}"})
        finally:
            if client is None:
                await own.aclose()

    async def fetch_profile(self, graph_token: str) -> ProfileRecord:
        r = await self.get_me(graph_token)
        if r.status_code >= 300:
            raise GraphError(f"Graph /me returned {r.status_code}: {r.text[:300]}", status_code=r.status_code)
        try:
            me = r.json()
        except ValueError:
            raise GraphError("Graph /me returned a non-JSON body")
        if not isinstance(me, dict):
            raise GraphError("Graph /me returned an unexpected payload")
        return profile_from_me(me)
