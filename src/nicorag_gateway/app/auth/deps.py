# src/nicorag_gateway/app/auth/deps.py
from __future__ import annotations
from typing import Optional
from fastapi import Request

from nicorag_gateway.adapters.azure_openai import AzureOpenAIClient
from nicorag_gateway.app.auth.obo import OnBehalfOfClient
from nicorag_gateway.app.core.config import USER_TOKEN_HEADER, Settings
from nicorag_gateway.app.core.errors import Unauthorized
from nicorag_gateway.app.services.graph import GraphClient

# --- Service objects (built once by create_app, stored on app.state) ---

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_completion_client(request: Request) -> AzureOpenAIClient:
    return request.app.state.completion

def get_obo_client(request: Request) -> OnBehalfOfClient:
    return request.app.state.obo

def get_graph_client(request: Request) -> GraphClient:
    return request.app.state.graph

# --- User token (Easy Auth header) ---

def read_user_token(request: Request) -> Optional[str]:
    tok = (request.headers.get(USER_TOKEN_HEADER) or "").strip()
    return tok or None

def require_user_token(detail: str = f"Missing user token ({USER_TOKEN_HEADER})"):
    """
    Factory that returns a FastAPI dependency yielding the caller's token.
    The token is only checked for presence; Entra ID validates it during OBO.
    """
    async def _dep(request: Request) -> str:
        tok = read_user_token(request)
        if not tok:
            raise Unauthorized(detail)
        return tok
    return _dep
