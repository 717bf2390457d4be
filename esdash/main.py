import os
import logging
import tomllib  # Python 3.11 stdlib for TOML parsing
from fastapi import FastAPI
from importlib.metadata import PackageNotFoundError, version as pkg_version
from contextlib import asynccontextmanager
from pathlib import Path

import esdash.core.config as config
from esdash.core.config import log_settings
from esdash.core.logging import setup_logging, user_logging_middleware
from esdash.api.v1.router import api_router
from esdash.container import container

logger = logging.getLogger("esdash.startup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Log configuration at startup (SecretStr fields are masked)
    log_settings()
    container.init_datasource()
    yield
    # Waits for pending legacy-record cleanups before closing the HTTP client
    await container.shutdown()


PKG_NAME = "esdash"


def resolve_version() -> str:
    """Resolve application version.

    Resolution order:
    1. Installed distribution metadata (importlib.metadata)
    2. pyproject.toml [project].version (when running from source tree w/out install)
    3. APP_VERSION env var
    4. Ultimate hardcoded fallback
    """
    try:
        return pkg_version(PKG_NAME)
    except PackageNotFoundError:
        pass

    pyproject_path = Path(__file__).resolve().parent.parent / "pyproject.toml"
    if pyproject_path.is_file():
        with pyproject_path.open("rb") as f:
            data = tomllib.load(f)
        ver = data.get("project", {}).get("version")
        if isinstance(ver, str) and ver.strip():
            return ver.strip()

    return os.getenv("APP_VERSION", "0.0.0+unknown")


APP_VERSION = resolve_version()


def create_app() -> FastAPI:
    setup_logging(config.settings.LOG_LEVEL)
    app = FastAPI(
        title="Elasticsearch Dashboard Store",
        version=APP_VERSION,
        lifespan=lifespan,
        openapi_url=f"{config.settings.API_PREFIX}/openapi.json",
        docs_url=f"{config.settings.API_PREFIX}/docs",
        redoc_url=f"{config.settings.API_PREFIX}/redoc",
    )

    @app.get("/healthz")
    async def _healthz() -> dict[str, str]:
        """Liveness probe; does not touch Elasticsearch."""
        return {"status": "ok"}

    # Inject the front-end user into log lines for every request
    user_logging_middleware(app)

    app.include_router(api_router, prefix=config.settings.API_PREFIX)

    _ = (_healthz,)
    return app


app = create_app()
