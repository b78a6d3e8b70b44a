# src/nicorag_gateway/models.py
from __future__ import annotations
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]

class ChatMessage(BaseModel):
    role: Role
    content: Optional[str] = ""  # null is treated as empty

class ChatRequest(BaseModel):
    """
    POST /chat body: either `message` (free text) or `messages` (ordered turns).
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message: Optional[str] = None
    messages: Optional[List[ChatMessage]] = None
    include_profile: bool = Field(False, alias="includeProfile")  # inject Graph profile as system msg
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    system: Optional[str] = None

class AssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str

class ChatResponse(BaseModel):
    model: str
    usage: Optional[Dict[str, Any]] = None
    message: AssistantMessage

class ErrorEnvelope(BaseModel):
    error: str
    detail: str

class DiagResponse(BaseModel):
    hasEndpoint: bool
    hasKey: bool
    deployment: Optional[str] = None
    runtimeVersion: str
