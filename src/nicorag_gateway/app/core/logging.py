# src/nicorag_gateway/app/core/logging.py
from __future__ import annotations
import logging
from typing import Optional

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR":    logging.ERROR,
    "WARNING":  logging.WARNING,
    "WARN":     logging.WARNING,
    "INFO":     logging.INFO,
    "DEBUG":    logging.DEBUG,
    "NOTSET":   logging.NOTSET,
}

def level_from_name(name: Optional[str], default: str = "INFO") -> int:
    val = (name or default).strip().upper()
    return _LEVELS.get(val, _LEVELS[default])

def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging once. Idempotent.
    `level` comes from Settings.log_level (LOG_LEVEL, default INFO).
    """
    root = logging.getLogger()
    lvl = level_from_name(level)
    if root.handlers:
        # already configured (pytest, uvicorn, etc.)
        root.setLevel(lvl)
        return

    fmt = "%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s %(message)s"
    datefmt = "%Y-%m-%dT%H:%M:%S"

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))

    root.setLevel(lvl)
    root.addHandler(handler)
