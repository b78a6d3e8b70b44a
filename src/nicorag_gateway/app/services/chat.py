# src/nicorag_gateway/app/services/chat.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from nicorag_gateway.app.core.errors import BadRequest
from nicorag_gateway.app.services.profile import ProfileResult, profile_system_message
from nicorag_gateway.models import AssistantMessage, ChatRequest, ChatResponse

_log = logging.getLogger("nicorag.chat")


def build_messages(req: ChatRequest) -> List[Dict[str, str]]:
    """
    Validate + normalize the inbound conversation.

    - non-empty `messages` wins; otherwise `message` becomes one user turn
    - at least one turn must carry non-blank content
    - `system` (if given) is prepended as the first turn
    """
    if req.messages:
        msgs = [{"role": m.role, "content": m.content or ""} for m in req.messages]
    else:
        msgs = [{"role": "user", "content": (req.message or "").strip()}]

    if not any((m.get("content") or "").strip() for m in msgs):
        raise BadRequest("Empty message.")

    if req.system and req.system.strip():
        msgs = [{"role": "system", "content": req.system}, *msgs]
    return msgs


def apply_profile(messages: List[Dict[str, str]], result: ProfileResult) -> List[Dict[str, str]]:
    """Prepend the profile system message on success; leave `messages` untouched otherwise."""
    if not result.ok:
        _log.warning("includeProfile failed, continuing without profile: %s", result.error)
        return messages
    return [profile_system_message(result.profile), *messages]


def completion_options(req: ChatRequest) -> Dict[str, Any]:
    return {"temperature": req.temperature, "max_tokens": req.max_tokens}


def to_chat_response(data: Dict[str, Any], fallback_model: Optional[str]) -> ChatResponse:
    """Reshape a provider completion into the front-end envelope (first choice only)."""
    choices = data.get("choices") or [{}]
    msg = (choices[0] or {}).get("message") or {}
    return ChatResponse(
        model=data.get("model") or fallback_model or "",
        usage=data.get("usage") or None,
        message=AssistantMessage(content=msg.get("content") or ""),
    )
