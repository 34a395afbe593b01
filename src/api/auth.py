from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from fastapi import Request

from .errors import NoTokenError, UnauthenticatedError
from .session import extract_token
from .tokens import TokenClaims, TokenError, TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedContext:
    """Identity attached to a request admitted by the gate."""

    email: str
    claims: TokenClaims


# PUBLIC_INTERFACE
class AuthGate:
    """
    Admit or reject requests to protected operations.

    Steps:
    - extract a token from the cookie, falling back to the Bearer header;
    - no token: NoTokenError (401);
    - token fails verification for any reason: UnauthenticatedError (401);
    - otherwise return the verified identity.
    """

    def __init__(self, tokens: TokenService) -> None:
        self.tokens = tokens

    def authorize(self, cookies: Mapping[str, str], headers: Mapping[str, str]) -> AuthenticatedContext:
        token = extract_token(cookies, headers)
        if token is None:
            raise NoTokenError()
        try:
            claims = self.tokens.verify(token)
        except TokenError as e:
            logger.info("Token rejected (%s): %s", type(e).__name__, e)
            raise UnauthenticatedError() from e
        return AuthenticatedContext(email=claims.email, claims=claims)


# PUBLIC_INTERFACE
def require_user(request: Request) -> AuthenticatedContext:
    """
    FastAPI dependency enforcing a valid session token.

    Usage:
        router = APIRouter(dependencies=[Depends(require_user)])

    On success the identity is stored on `request.state.user`; on failure the
    gate's 401 error propagates and the handler never runs.
    """
    gate: AuthGate = request.app.state.auth_gate
    context = gate.authorize(request.cookies, request.headers)
    request.state.user = context
    return context

