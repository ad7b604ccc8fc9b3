"""Visitor identity resolution for request handlers"""

import logging
from typing import Optional

from fastapi import HTTPException, Request, status

from .config import AppConfig
from .db import Store
from .models import Visitor

logger = logging.getLogger(__name__)

MISSING_IDENTITY = (
    "visitor id is required. Provide it in the visitor_id cookie, "
    "the x-user-id header, or the request body"
)


def resolve_visitor_id(
    request: Request,
    config: AppConfig,
    body_user_id: Optional[str] = None,
) -> Optional[str]:
    """Visitor id from cookie, legacy cookie, header, then body; None when absent"""
    candidates = (
        request.cookies.get(config.get("identity.cookie", "visitor_id")),
        request.cookies.get(config.get("identity.legacy_cookie", "user_id")),
        request.headers.get(config.get("identity.header", "x-user-id")),
        body_user_id,
    )
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


def require_visitor_id(
    request: Request,
    config: AppConfig,
    body_user_id: Optional[str] = None,
) -> str:
    visitor_id = resolve_visitor_id(request, config, body_user_id)
    if not visitor_id:
        logger.info(f"[api] Rejected {request.method} {request.url.path}: no visitor id")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_IDENTITY
        )
    return visitor_id


def ensure_visitor(
    request: Request,
    config: AppConfig,
    store: Store,
    body_user_id: Optional[str] = None,
) -> Visitor:
    """Resolve the visitor id and make sure the row exists"""
    return store.ensure_visitor(require_visitor_id(request, config, body_user_id))
