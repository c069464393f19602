"""
Viewer resolution.

Works out who is asking (and in which locale) from the request. Guests
are a normal outcome here, not an error: whether a guest may translate is
decided later by the translator settings.
"""

from __future__ import annotations

import logging

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from babelpost.config import Settings, get_settings
from babelpost.core.models import Viewer
from babelpost.core.utils import normalize_locale

logger = logging.getLogger(__name__)

# Optional bearer (doesn't fail if no token)
optional_bearer = HTTPBearer(auto_error=False)


class TokenError(Exception):
    """Token is invalid, expired or malformed."""
    pass


def decode_viewer_token(token: str, settings: Settings) -> dict:
    """
    Decode a JWT issued by the host platform.
    
    Claims used: `sub` (user id), `staff` (bool), `locale` (optional).
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}") from e
    return payload


def parse_accept_language(header: str | None) -> str | None:
    """First language in an Accept-Language header, in platform form."""
    if not header:
        return None
    
    best: tuple[float, str] | None = None
    for part in header.split(","):
        tag, _, params = part.strip().partition(";")
        tag = tag.strip()
        if not tag or tag == "*":
            continue
        quality = 1.0
        if params.strip().startswith("q="):
            try:
                quality = float(params.strip()[2:])
            except ValueError:
                quality = 0.0
        if best is None or quality > best[0]:
            best = (quality, tag)
    
    return normalize_locale(best[1]) if best else None


def _dev_token_viewer(token: str) -> tuple[str, bool] | None:
    """Dev tokens: "user_<id>" or "staff_<id>". Never accepted in production."""
    if token.startswith("staff_"):
        return token, True
    if token.startswith("user_"):
        return token, False
    return None


def resolve_viewer(
    token: str | None,
    accept_language: str | None,
    settings: Settings,
) -> Viewer:
    """Build a Viewer from an optional bearer token and the request locale."""
    header_locale = parse_accept_language(accept_language)
    
    if not token:
        return Viewer.guest(locale=header_locale or "en")
    
    try:
        claims = decode_viewer_token(token, settings)
        return Viewer(
            user_id=str(claims["sub"]),
            is_staff=bool(claims.get("staff", False)),
            locale=normalize_locale(claims.get("locale") or header_locale),
        )
    except TokenError as e:
        if not settings.is_production:
            dev = _dev_token_viewer(token)
            if dev:
                user_id, is_staff = dev
                return Viewer(user_id=user_id, is_staff=is_staff, locale=header_locale or "en")
        logger.info(f"Treating request as guest: {e}")
    
    return Viewer.guest(locale=header_locale or "en")


async def get_viewer(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
) -> Viewer:
    """FastAPI dependency returning the current viewer (possibly a guest)."""
    return resolve_viewer(
        credentials.credentials if credentials else None,
        request.headers.get("accept-language"),
        get_settings(),
    )
