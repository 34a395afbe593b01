from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .accounts import AccountService
from .auth import AuthGate
from .errors import install_exception_handlers
from .passwords import PasswordHasher
from .repositories import Store, create_store
from .routers import auth as auth_router
from .routers import tasks as tasks_router
from .schemas import MessageResponse
from .settings import Settings, get_settings
from .tokens import TokenService

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "auth", "description": "Signup, login and logout. Issue and clear the session token."},
    {
        "name": "tasks",
        "description": "CRUD operations on tasks. Require a session token (cookie or Bearer header).",
    },
]


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Explicit settings; read from the environment when omitted.
        store: Explicit store; built from settings when omitted.

    The store is opened when the app starts and closed when it shuts down.
    Settings, store, token service, auth gate and account service are kept
    on `app.state` and reach handlers through dependencies.

    Raises:
        ConfigurationError: if settings are read from the environment and
            JWT_SECRET is missing.
    """
    settings = settings or get_settings()
    store = store or create_store(settings)
    tokens = TokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(days=settings.token_ttl_days),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Opening %s store", store.name)
        store.open()
        try:
            yield
        finally:
            store.close()
            logger.info("Closed %s store", store.name)

    app = FastAPI(
        title="Task Backend",
        description="Authenticated task-list API: signup/login with signed session tokens and task CRUD.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.tokens = tokens
    app.state.auth_gate = AuthGate(tokens)
    app.state.accounts = AccountService(store, tokens, PasswordHasher(rounds=settings.bcrypt_rounds))

    # Configure CORS based on settings (CORS_ALLOW_ORIGINS + CLIENT_URL)
    allow_all = settings.cors_allow_origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "PUT", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    install_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/", response_model=MessageResponse, summary="Health Check", tags=["health"])
    def health_check(request: Request) -> MessageResponse:
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and the active backend.
        """
        current: Store = request.app.state.store
        healthy = current.ping()
        return MessageResponse(
            success=healthy,
            msg="Healthy" if healthy else "Store unreachable",
            backend=current.name,
        )

    app.include_router(auth_router.router)
    app.include_router(tasks_router.router)
    return app


app = create_app()
