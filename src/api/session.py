from __future__ import annotations

from typing import Mapping, Optional

from fastapi import Response

from .settings import Settings

TOKEN_COOKIE = "token"


# PUBLIC_INTERFACE
def extract_token(cookies: Mapping[str, str], headers: Mapping[str, str]) -> Optional[str]:
    """
    Locate the session token for a request.

    Lookup order:
    1. a non-empty `token` cookie;
    2. an `Authorization: Bearer <token>` header (scheme is case-insensitive);
    3. otherwise None.

    Args:
        cookies: request cookies (name -> value).
        headers: request headers. Starlette's Headers mapping is case-insensitive;
            plain dicts are matched on 'Authorization' or 'authorization'.
    """
    cookie_token = cookies.get(TOKEN_COOKIE)
    if cookie_token:
        return cookie_token

    auth_header = headers.get("authorization") or headers.get("Authorization")
    if not auth_header:
        return None

    parts = auth_header.split(" ")
    if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1]:
        return parts[1]
    return None


def _samesite(settings: Settings) -> str:
    # Browsers drop SameSite=None cookies that are not Secure
    return "none" if settings.cookie_secure else "lax"


# PUBLIC_INTERFACE
def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """Attach the session token as an http-only cookie living as long as the token."""
    response.set_cookie(
        key=TOKEN_COOKIE,
        value=token,
        max_age=settings.token_ttl_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=_samesite(settings),
        path="/",
    )


# PUBLIC_INTERFACE
def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=TOKEN_COOKIE,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite=_samesite(settings),
    )
