from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or unparsable."""


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' or 'mongo' (default: 'mongo' when MONGO_URI is set, else 'memory')
    - MONGO_URI: MongoDB connection string. Default 'mongodb://localhost:27017'
    - DB_NAME: database holding the users and tasks collections. Default 'task_manager'
    - TASKS_COLLECTION: name of the tasks collection. Default 'tasks'
    - JWT_SECRET: signing secret for session tokens (required, no default)
    - JWT_ALGORITHM: HMAC algorithm used to sign tokens. Default 'HS256'
    - TOKEN_TTL_DAYS: token and cookie lifetime in days. Default 5
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins, or '*'
    - CLIENT_URL: deployed frontend origin, appended to the allowed origins
    - ENVIRONMENT: 'development' (default) or 'production'; NODE_ENV is used when unset
    - COOKIE_SECURE: 'true' to mark the session cookie Secure (default: true in production)
    - BCRYPT_ROUNDS: bcrypt cost factor. Default 12
    - HOST / PORT: bind address for `python -m src.api`. Default 0.0.0.0:3200
    - LOG_LEVEL: root log level. Default 'INFO'
    """

    persistence_backend: str
    mongo_uri: str
    mongo_db_name: str
    tasks_collection: str
    jwt_secret: str
    jwt_algorithm: str
    token_ttl_days: int
    cors_allow_origins: List[str]
    environment: str
    cookie_secure: bool
    bcrypt_rounds: int
    host: str
    port: int
    log_level: str

    @property
    def token_ttl_seconds(self) -> int:
        return self.token_ttl_days * 24 * 60 * 60


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default)).strip()
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def _parse_origins(origins_value: str, client_url: str = "") -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins, plus an optional CLIENT_URL
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    origins = [o.strip() for o in value.split(",") if o.strip()]
    client = client_url.strip()
    if client and client not in origins:
        origins.append(client)
    return origins


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """
    Return application settings loaded from environment variables.

    A local .env file is read first without overriding variables that are
    already set in the process environment.

    Raises:
        ConfigurationError: if JWT_SECRET is missing or a numeric value is invalid.
    """
    load_dotenv(override=False)

    mongo_uri_env = os.getenv("MONGO_URI", "").strip()
    backend = _get_env("PERSISTENCE_BACKEND", "mongo" if mongo_uri_env else "memory").strip().lower()
    if backend not in {"memory", "mongo"}:
        # Fallback to memory if unsupported
        backend = "memory"

    secret = os.getenv("JWT_SECRET", "").strip()
    if not secret:
        raise ConfigurationError("JWT_SECRET must be set to sign session tokens")

    environment = _get_env("ENVIRONMENT", _get_env("NODE_ENV", "development")).strip().lower()
    cookie_secure = _parse_bool(_get_env("COOKIE_SECURE", ""), environment == "production")

    ttl_days = _parse_int("TOKEN_TTL_DAYS", 5)
    if ttl_days <= 0:
        raise ConfigurationError("TOKEN_TTL_DAYS must be positive")

    return Settings(
        persistence_backend=backend,
        mongo_uri=mongo_uri_env or "mongodb://localhost:27017",
        mongo_db_name=_get_env("DB_NAME", "task_manager").strip(),
        tasks_collection=_get_env("TASKS_COLLECTION", "tasks").strip(),
        jwt_secret=secret,
        jwt_algorithm=_get_env("JWT_ALGORITHM", "HS256").strip(),
        token_ttl_days=ttl_days,
        cors_allow_origins=_parse_origins(
            _get_env("CORS_ALLOW_ORIGINS", "http://localhost:5173,http://localhost:3000"),
            os.getenv("CLIENT_URL", ""),
        ),
        environment=environment,
        cookie_secure=cookie_secure,
        bcrypt_rounds=_parse_int("BCRYPT_ROUNDS", 12),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int("PORT", 3200),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
