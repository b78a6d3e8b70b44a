# src/nicorag_gateway/app/main.py
import logging
import platform
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.responses import PlainTextResponse

from nicorag_gateway.adapters.azure_openai import AzureOpenAIClient
from nicorag_gateway.app.api.routes.chat import router as chat_router
from nicorag_gateway.app.api.routes.graph import router as graph_router
from nicorag_gateway.app.auth.deps import get_settings
from nicorag_gateway.app.auth.obo import OnBehalfOfClient
from nicorag_gateway.app.core.config import Settings, load_settings
from nicorag_gateway.app.core.errors import install_error_handlers
from nicorag_gateway.app.core.logging import setup_logging
from nicorag_gateway.app.security.origin import OriginGate, OriginGateMiddleware
from nicorag_gateway.app.services.graph import GraphClient
from nicorag_gateway.models import DiagResponse

log = logging.getLogger("nicorag.main")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the gateway. `settings` defaults to the environment (after .env).
    Service objects are created once here and shared read-only by requests.
    """
    if settings is None:
        # Load .env before reading the environment
        load_dotenv()
        settings = load_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        log.info(
            "API listening on %s:%s origins=%s endpoint=%s deployment=%s api_version=%s aoai=%s obo=%s",
            settings.host, settings.port, list(settings.allowed_origins) or "<any>",
            settings.aoai_endpoint or "<unset>", settings.aoai_deployment,
            settings.aoai_api_version, settings.has_completion_config, settings.has_obo_credentials,
        )
        yield

    app = FastAPI(title="NICO-RAG Gateway", version="0.1.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.completion = AzureOpenAIClient(settings)
    app.state.obo = OnBehalfOfClient(settings)
    app.state.graph = GraphClient(settings)

    gate = OriginGate(settings.allowed_origins, settings.cors_allow_all_when_empty)
    app.add_middleware(OriginGateMiddleware, gate=gate)
    install_error_handlers(app)

    # 1) Liveness (open)
    @app.get("/health", response_class=PlainTextResponse)
    def health():
        return "ok"

    @app.get("/ping", response_class=PlainTextResponse)
    def ping():
        return "pong"

    # 1.5) Root: reachability check behind Easy Auth
    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "API OK (Easy Auth)"

    # 1.75) Diag: presence of AOAI settings, never the key itself
    @app.get("/diag", response_model=DiagResponse)
    def diag(cfg: Settings = Depends(get_settings)):
        return DiagResponse(
            hasEndpoint=bool(cfg.aoai_endpoint),
            hasKey=bool(cfg.aoai_key),
            deployment=cfg.aoai_deployment or None,
            runtimeVersion=f"python {platform.python_version()}",
        )

    # 2) Graph proxy + chat
    app.include_router(graph_router)
    app.include_router(chat_router)
    return app


app = create_app()
