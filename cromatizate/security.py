import logging
import os
from typing import Any, Dict

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_TOKEN = "default-admin-token-change-me"
LOCAL_HOSTS = ["127.0.0.1", "localhost", "::1"]

# Security scheme
security = HTTPBearer()


def get_admin_token(config: AppConfig) -> str:
    """Get admin token from environment or config"""
    token = os.getenv(config.get("security.admin_token_env") or "ADMIN_TOKEN")
    if not token:
        token = config.get("security.default_token")
        if not token:
            logger.warning("[security] No admin token configured, using fallback")
            token = DEFAULT_ADMIN_TOKEN
    return token


async def get_current_operator(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """Validate Bearer token for ontology writes"""
    admin_token = get_admin_token(request.app.state.config)

    if credentials.credentials != admin_token:
        token_preview = (
            credentials.credentials[:8] + "..."
            if len(credentials.credentials) > 8
            else "[SHORT]"
        )
        logger.warning(f"[security] Invalid token attempt: {token_preview}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return "admin"


def get_cors_config(config: AppConfig) -> Dict[str, Any]:
    """Get CORS configuration; everything empty when disabled"""
    if not config.get("security.cors.enabled", False):
        logger.info("[security] CORS disabled - no cross-origin requests allowed")
        return {
            "allow_origins": [],
            "allow_credentials": False,
            "allow_methods": [],
            "allow_headers": [],
            "expose_headers": [],
            "max_age": 86400,
        }

    allowed_origins = list(config.get("security.cors.allow_origins") or [])
    logger.info(f"[security] CORS enabled for origins: {allowed_origins}")

    return {
        "allow_origins": allowed_origins,
        "allow_credentials": config.get("security.cors.allow_credentials", True),
        "allow_methods": config.get("security.cors.allow_methods", ["GET", "POST", "PUT"]),
        "allow_headers": config.get("security.cors.allow_headers", ["*"]),
        "expose_headers": config.get("security.cors.expose_headers", []),
        "max_age": config.get("security.cors.max_age", 86400),
    }


def validate_binding_config(config: AppConfig) -> bool:
    """Validate that binding configuration is local unless explicitly opened"""
    host = config.get("server.host", "127.0.0.1")
    allow_external = config.get("server.allow_external_bind", False)

    if not allow_external and host not in LOCAL_HOSTS:
        logger.error(
            f"[security] External binding not allowed but host is {host}"
        )
        return False

    if allow_external and host in ["0.0.0.0", "::"]:
        logger.warning(
            "[security] External binding enabled - server will be accessible from any IP"
        )

    logger.info(
        f"[security] Server binding validated: {host} (external: {allow_external})"
    )
    return True


def enforce_local_binding(config: AppConfig) -> str:
    """Host the server may bind to; forced to loopback unless external bind is allowed"""
    host = config.get("server.host", "127.0.0.1")
    if config.get("server.allow_external_bind", False):
        return host

    safe_host = "127.0.0.1"
    if host not in LOCAL_HOSTS:
        logger.warning(f"[security] Forcing local binding from {host} to {safe_host}")
        config.config["server"]["host"] = safe_host
        return safe_host
    return host


def get_security_summary(config: AppConfig) -> Dict[str, Any]:
    """Get a security summary for logging (no secrets)"""
    token_env = config.get("security.admin_token_env") or "ADMIN_TOKEN"
    return {
        "cors_enabled": config.get("security.cors.enabled", False),
        "rate_limiting_enabled": config.get("security.rate_limiting.enabled", True),
        "security_headers_enabled": config.get("security.security_headers.enabled", True),
        "binding_host": config.get("server.host", "127.0.0.1"),
        "admin_token_set": bool(os.getenv(token_env)),
        "local_binding_enforced": not config.get("server.allow_external_bind", False),
    }


def log_security_status(config: AppConfig):
    """Log current security configuration status"""
    summary = get_security_summary(config)

    logger.info("[security] Security configuration:")
    logger.info(f"[security]   Local binding enforced: {summary['local_binding_enforced']}")
    logger.info(f"[security]   Binding host: {summary['binding_host']}")
    logger.info(f"[security]   CORS enabled: {summary['cors_enabled']}")
    logger.info(f"[security]   Rate limiting: {summary['rate_limiting_enabled']}")
    logger.info(f"[security]   Security headers: {summary['security_headers_enabled']}")
    logger.info(
        f"[security]   Admin token: {'Set' if summary['admin_token_set'] else 'Using default'}"
    )

    if not summary["admin_token_set"]:
        logger.warning(
            "[security] WARNING: Using default admin token - change this in production"
        )
