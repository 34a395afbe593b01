from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ..accounts import AccountService
from ..dependencies import get_accounts, get_app_settings
from ..schemas import AuthResponse, Credentials, ErrorResponse, MessageResponse
from ..session import clear_session_cookie, set_session_cookie
from ..settings import Settings

router = APIRouter(tags=["auth"])


# PUBLIC_INTERFACE
@router.post(
    "/signup",
    response_model=AuthResponse,
    summary="Sign up",
    description="Register a new user and start a session. The token is returned and set as the `token` cookie.",
    responses={
        200: {"description": "User registered"},
        400: {"model": ErrorResponse, "description": "Missing email or password"},
        409: {"model": ErrorResponse, "description": "User already exists"},
    },
)
def signup(
    payload: Credentials,
    response: Response,
    accounts: AccountService = Depends(get_accounts),
    settings: Settings = Depends(get_app_settings),
) -> AuthResponse:
    """
    Register a user with email and password.
    """
    token = accounts.signup(payload.email, payload.password)
    set_session_cookie(response, token, settings)
    return AuthResponse(success=True, msg="User registered successfully", token=token)


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in",
    description="Check credentials and start a session. The token is returned and set as the `token` cookie.",
    responses={
        200: {"description": "Logged in"},
        400: {"model": ErrorResponse, "description": "Missing email or password"},
        404: {"model": ErrorResponse, "description": "User not found or wrong password"},
    },
)
def login(
    payload: Credentials,
    response: Response,
    accounts: AccountService = Depends(get_accounts),
    settings: Settings = Depends(get_app_settings),
) -> AuthResponse:
    """
    Authenticate an existing user.
    """
    token = accounts.login(payload.email, payload.password)
    set_session_cookie(response, token, settings)
    return AuthResponse(success=True, msg="Logged In successfully", token=token)


# PUBLIC_INTERFACE
@router.post(
    "/logout",
    response_model=MessageResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Log out",
    description="Clear the session cookie. Tokens are stateless, so a copied token stays valid until it expires.",
)
def logout(response: Response, settings: Settings = Depends(get_app_settings)) -> MessageResponse:
    """
    End the cookie session.
    """
    clear_session_cookie(response, settings)
    return MessageResponse(success=True, msg="Logged out")
