"""Shared-password authentication for the admin dashboard."""
from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from .config import Settings, get_settings
from .errors import Unauthorized

ADMIN_TOKEN_HEADER = "x-admin-token"
admin_token_scheme = APIKeyHeader(name=ADMIN_TOKEN_HEADER, auto_error=False)

logger = logging.getLogger(__name__)


def check_admin_token(token: Optional[str], expected: Optional[str]) -> None:
    """Raise :class:`Unauthorized` unless ``token`` equals the admin password.

    An unset password rejects every token.
    """

    if not token or not expected:
        raise Unauthorized()
    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise Unauthorized()


def verify_admin_token(
    token: Optional[str] = Depends(admin_token_scheme),
    settings: Settings = Depends(get_settings),
) -> None:
    try:
        check_admin_token(token, settings.admin_password)
    except Unauthorized as exc:
        logger.warning("Rejected stats request with %s admin token", "invalid" if token else "missing")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.detail) from exc
