"""Entry point for running the service via `python -m src.api`."""
from __future__ import annotations

import logging

import uvicorn

from .logging_setup import setup_logging
from .settings import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info(
        "Starting task backend on %s:%d (backend=%s, environment=%s)",
        settings.host,
        settings.port,
        settings.persistence_backend,
        settings.environment,
    )
    # log_config=None keeps uvicorn's loggers on our root handler
    uvicorn.run("src.api.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
