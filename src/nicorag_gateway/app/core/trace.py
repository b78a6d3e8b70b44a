# src/nicorag_gateway/app/core/trace.py
from __future__ import annotations
import logging
import time
from typing import Any, Mapping

_log = logging.getLogger("nicorag.auth")

def _fmt_kv(d: Mapping[str, Any]) -> str:
    return " ".join(f"{k}={d[k]}" for k in d)

def auth_trace(event: str, enabled: bool = False, **kv: Any) -> None:
    """
    Emit a single-line structured log ONLY when `enabled` (Settings.auth_trace).
    Example:
      [auth] obo.exchange.begin ts=... tenant=contoso aud=api://nico-rag
    """
    if not enabled:
        return
    kv2 = {"ts": int(time.time()), **kv}
    _log.info("[auth] %s %s", event, _fmt_kv(kv2))
