# src/nicorag_gateway/__main__.py
import uvicorn
from dotenv import load_dotenv

from nicorag_gateway.app.core.config import load_settings

_UVICORN_LEVELS = ("critical", "error", "warning", "info", "debug")


def main():
    load_dotenv()
    settings = load_settings()
    level = settings.log_level.lower()
    uvicorn.run(
        "nicorag_gateway.app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=level if level in _UVICORN_LEVELS else "info",
    )


if __name__ == "__main__":
    main()
