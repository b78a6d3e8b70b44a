# src/nicorag_gateway/app/api/routes/graph.py
from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import Response

from nicorag_gateway.app.auth.deps import get_graph_client, get_obo_client, require_user_token
from nicorag_gateway.app.auth.obo import OnBehalfOfClient
from nicorag_gateway.app.core.errors import GraphError
from nicorag_gateway.app.services.graph import GraphClient

router = APIRouter(tags=["graph"])


@router.get("/graph/me")
async def graph_me(
    user_token: str = Depends(require_user_token()),
    obo: OnBehalfOfClient = Depends(get_obo_client),
    graph: GraphClient = Depends(get_graph_client),
) -> Response:
    """
    Proxy Microsoft Graph /me for the calling user (OBO).
    Graph's status code and body are returned verbatim.
    """
    graph_token = await obo.exchange(user_token)
    try:
        r = await graph.get_me(graph_token)
    except httpx.HTTPError as ex:
        raise GraphError(f"Graph /me request failed: {ex}")
    return Response(
        content=r.content,
        status_code=r.status_code,
        media_type=r.headers.get("content-type", "application/json"),
    )
