from __future__ import annotations

import secrets
from dataclasses import dataclass

from fastapi import HTTPException, status

from hippo_bridge.config import AppConfig
from hippo_bridge.schemas import DirectiveRequest


@dataclass(frozen=True)
class AuthContext:
    credential: str


def _is_allowed(value: str, allowed: list[str]) -> bool:
    for item in allowed:
        if secrets.compare_digest(value, item):
            return True
    return False


def require_token(body: DirectiveRequest, config: AppConfig) -> AuthContext:
    """Presence check on `header.token`, narrowed to an allow-list when one is configured."""
    token = (body.header.token or "").strip()
    if token and (not config.auth_tokens or _is_allowed(token, config.auth_tokens)):
        return AuthContext(credential=token)

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "unauthorized", "message": "Missing or invalid header.token"},
    )
