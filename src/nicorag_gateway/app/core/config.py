# src/nicorag_gateway/app/core/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

_log = logging.getLogger("nicorag.config")

_TRUE = ("1", "true", "yes", "on")

# Header injected by App Service Easy Auth with the caller's Entra ID access token
USER_TOKEN_HEADER = "x-ms-token-aad-access-token"


# --- Env helpers -------------------------------------------------------------

def _str(env: Mapping[str, str], name: str, default: str = "") -> str:
    return (env.get(name, default) or "").strip()


def _bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = (env.get(name) or "").strip().lower()
    if not raw:
        return default
    return raw in _TRUE


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _str(env, name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        _log.warning("invalid %s=%r, using default %s", name, raw, default)
        return default


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _str(env, name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        _log.warning("invalid %s=%r, using default %s", name, raw, default)
        return default


def _origins(raw: str) -> Tuple[str, ...]:
    return tuple(o.strip() for o in raw.split(",") if o.strip())


# --- Settings ----------------------------------------------------------------

@dataclass(frozen=True)
class Settings:
    """
    Immutable gateway configuration, read once at startup.

    Handlers receive it through `app.state.settings`; nothing below the
    app factory reads the environment.
    """
    port: int = 8080
    host: str = "0.0.0.0"

    # CORS
    allowed_origins: Tuple[str, ...] = ()
    cors_allow_all_when_empty: bool = True

    # Entra ID (OBO)
    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = field(default="", repr=False)
    authority_host: str = "https://login.microsoftonline.com"

    # Microsoft Graph
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    graph_scope: str = "https://graph.microsoft.com/.default"

    # Azure OpenAI
    aoai_endpoint: str = ""
    aoai_key: str = field(default="", repr=False)
    aoai_deployment: str = "gpt-chat"
    aoai_api_version: str = "2024-06-01"
    aoai_temperature: float = 0.2
    aoai_max_tokens: int = 800

    # Misc
    upstream_timeout_sec: float = 30.0
    max_body_bytes: int = 1024 * 1024
    log_level: str = "INFO"
    auth_trace: bool = False

    def __post_init__(self) -> None:
        # frozen: go through object.__setattr__ to normalize
        object.__setattr__(self, "aoai_endpoint", self.aoai_endpoint.rstrip("/"))
        object.__setattr__(self, "authority_host", self.authority_host.rstrip("/"))
        object.__setattr__(self, "graph_base_url", self.graph_base_url.rstrip("/"))
        object.__setattr__(self, "allowed_origins", tuple(self.allowed_origins))

    @property
    def has_obo_credentials(self) -> bool:
        return bool(self.tenant_id and self.client_id and self.client_secret)

    @property
    def has_completion_config(self) -> bool:
        return bool(self.aoai_endpoint and self.aoai_key)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build `Settings` from environment variables (defaults from `Settings`)."""
    env = os.environ if environ is None else environ
    d = Settings()
    return Settings(
        port=_int(env, "PORT", d.port),
        host=_str(env, "HOST", d.host) or d.host,
        allowed_origins=_origins(_str(env, "ALLOWED_ORIGINS")),
        cors_allow_all_when_empty=_bool(env, "CORS_ALLOW_ALL_WHEN_EMPTY", d.cors_allow_all_when_empty),
        tenant_id=_str(env, "TENANT_ID"),
        client_id=_str(env, "API_CLIENT_ID"),
        client_secret=_str(env, "API_CLIENT_SECRET"),
        authority_host=_str(env, "AUTHORITY_HOST", d.authority_host) or d.authority_host,
        graph_base_url=_str(env, "GRAPH_BASE_URL", d.graph_base_url) or d.graph_base_url,
        graph_scope=_str(env, "GRAPH_SCOPE", d.graph_scope) or d.graph_scope,
        aoai_endpoint=_str(env, "AOAI_ENDPOINT"),
        aoai_key=_str(env, "AOAI_KEY"),
        aoai_deployment=_str(env, "AOAI_DEPLOYMENT", d.aoai_deployment) or d.aoai_deployment,
        aoai_api_version=_str(env, "AOAI_API_VERSION", d.aoai_api_version) or d.aoai_api_version,
        aoai_temperature=_float(env, "AOAI_TEMPERATURE", d.aoai_temperature),
        aoai_max_tokens=_int(env, "AOAI_MAX_TOKENS", d.aoai_max_tokens),
        upstream_timeout_sec=_float(env, "UPSTREAM_TIMEOUT_SEC", d.upstream_timeout_sec),
        max_body_bytes=_int(env, "MAX_BODY_BYTES", d.max_body_bytes),
        log_level=(_str(env, "LOG_LEVEL", d.log_level) or d.log_level).upper(),
        auth_trace=_bool(env, "AUTH_TRACE", d.auth_trace),
    )
