import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .analyzer import ImageAnalyzer
from .config import AppConfig
from .db import Store
from .middleware import RateLimiter, rate_limit_middleware, security_headers_middleware
from .models import HealthResponse
from .routes import router
from .security import (
    enforce_local_binding,
    get_cors_config,
    log_security_status,
    validate_binding_config,
)

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def configure_logging(config: AppConfig):
    logging.basicConfig(
        level=getattr(logging, str(config.get("server.log_level", "info")).upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def create_app(
    config: Optional[AppConfig] = None,
    store: Optional[Store] = None,
    analyzer: Optional[ImageAnalyzer] = None,
) -> FastAPI:
    """Build the service. Collaborators not passed in are created from config."""
    config = config or AppConfig()
    configure_logging(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("[api] Starting Cromatizate adaptation service")

        safe_host = enforce_local_binding(config)
        if not validate_binding_config(config):
            logger.error("[api] Security configuration validation failed")
            raise RuntimeError("Security configuration validation failed")
        log_security_status(config)

        for warning in config.validate_config()["warnings"]:
            logger.warning(f"[config] {warning}")

        logger.info(f"[api] Server configured for {safe_host}:{config.get('server.port')}")
        yield
        logger.info("[api] Shutting down Cromatizate adaptation service")

    app = FastAPI(
        title="Cromatizate",
        description="Visual content adaptation for color-vision deficiencies",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.store = store or Store(config.get("storage.db_path", "cromatizate.db"))
    app.state.analyzer = analyzer or ImageAnalyzer.from_config(config)
    app.state.rate_limiter = RateLimiter()

    cors_config = get_cors_config(config)
    if cors_config["allow_origins"]:
        app.add_middleware(CORSMiddleware, **cors_config)
        logger.info("[api] CORS enabled with configuration")

    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(rate_limit_middleware)

    app.include_router(router, prefix="/api")

    @app.get("/healthz", response_model=HealthResponse)
    async def health_check():
        """Liveness plus a store ping"""
        store_ok = app.state.store.ping()
        return HealthResponse(ok=store_ok, version=__version__, services={"store": store_ok})

    return app
