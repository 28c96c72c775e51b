"""Entry point for the CMS API server."""

import sys

import structlog
import uvicorn

from cms.app import create_app
from cms.config import Settings
from cms.errors import ConfigurationError
from cms.logging import configure_logging

logger = structlog.get_logger()


def main() -> None:
    """Entry point for python -m cms.

    Exits with status 1 when required configuration is missing, before
    the server starts accepting requests.
    """
    settings = Settings()
    configure_logging(debug=settings.debug)

    try:
        app = create_app(settings)
    except ConfigurationError as e:
        logger.error("startup_failed", error=str(e))
        sys.exit(1)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
    )


if __name__ == "__main__":
    main()
