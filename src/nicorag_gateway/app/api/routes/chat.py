# src/nicorag_gateway/app/api/routes/chat.py
from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from nicorag_gateway.adapters.azure_openai import AzureOpenAIClient
from nicorag_gateway.app.auth.deps import (
    get_completion_client,
    get_graph_client,
    get_obo_client,
    get_settings,
    read_user_token,
)
from nicorag_gateway.app.auth.obo import OnBehalfOfClient
from nicorag_gateway.app.core.config import Settings
from nicorag_gateway.app.core.errors import (
    BadRequest,
    GatewayError,
    MethodNotAllowed,
    PayloadTooLarge,
    Unauthorized,
    error_body,
)
from nicorag_gateway.app.services.chat import (
    apply_profile,
    build_messages,
    completion_options,
    to_chat_response,
)
from nicorag_gateway.app.services.graph import GraphClient
from nicorag_gateway.app.services.profile import lookup_profile
from nicorag_gateway.models import ChatRequest, ChatResponse

logger = logging.getLogger("nicorag.chat")

router = APIRouter(tags=["chat"])


async def _read_chat_request(request: Request, max_bytes: int) -> ChatRequest:
    raw = await request.body()
    if len(raw) > max_bytes:
        raise PayloadTooLarge(f"Body exceeds {max_bytes} bytes.")
    try:
        data = json.loads(raw or b"{}")
    except ValueError:
        raise BadRequest("Body must be valid JSON.")
    if not isinstance(data, dict):
        raise BadRequest("Body must be a JSON object.")
    try:
        return ChatRequest.model_validate(data)
    except ValidationError as ex:
        first = ex.errors()[0]
        loc = ".".join(str(p) for p in first.get("loc", ()))
        raise BadRequest(f"{loc}: {first.get('msg')}" if loc else str(first.get("msg")))


# POST /chat: { message } OR { messages: [{role, content}, ...] }
@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: Request,
    settings: Settings = Depends(get_settings),
    completion: AzureOpenAIClient = Depends(get_completion_client),
    obo: OnBehalfOfClient = Depends(get_obo_client),
    graph: GraphClient = Depends(get_graph_client),
):
    try:
        # 1) Validate + 2) normalize
        req = await _read_chat_request(request, settings.max_body_bytes)
        messages = build_messages(req)

        # 3) Optional profile enrichment (best-effort)
        if req.include_profile:
            user_token = read_user_token(request)
            if not user_token:
                raise Unauthorized("Missing user token for includeProfile")
            result = await lookup_profile(user_token, obo, graph)
            messages = apply_profile(messages, result)

        # 4) Complete
        data = await completion.complete(messages, **completion_options(req))

        # 5) Respond
        return to_chat_response(data, fallback_model=settings.aoai_deployment)

    except GatewayError:
        raise
    except Exception as ex:
        logger.exception("CHAT error")
        return JSONResponse(status_code=500, content=error_body("unhandled", str(ex) or ex.__class__.__name__))


# Guard for /chat: POST (above) and OPTIONS (origin middleware) only
@router.api_route("/chat", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def chat_method_guard():
    raise MethodNotAllowed("Use POST /chat")
