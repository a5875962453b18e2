"""
Catdex — Server Entry Point
=============================

Usage:
    DATABASE_URL=postgresql+psycopg2://... python -m catdex

Exits with status 1 when DATABASE_URL is missing, when the database cannot
be reached, or when TLS is configured and the certificate or key fail to load.
"""

import logging
import ssl
import sys

import uvicorn
from pydantic import ValidationError as SettingsError

from catdex.config import Settings
from catdex.exceptions import CatdexError, ConfigurationError
from catdex.main import create_app, setup_logging

logger = logging.getLogger("catdex")


def check_tls(settings: Settings) -> None:
    """Load the certificate chain once so a bad pair fails before binding."""
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    try:
        context.load_cert_chain(settings.tls_cert_file, settings.tls_key_file)
    except (OSError, ssl.SSLError) as e:
        raise ConfigurationError(f"Cannot load TLS certificate/key: {e}") from e


def main() -> int:
    try:
        settings = Settings()
    except SettingsError as e:
        setup_logging()
        logger.error("Invalid configuration: %s", e)
        return 1

    setup_logging(settings.log_level)

    try:
        if settings.tls_enabled:
            check_tls(settings)
        app = create_app(settings)
        # Built eagerly so an unreachable database is a startup failure
        app.state.pool.ping()
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except CatdexError as e:
        logger.error("Failed to create DB connection pool: %s | Context: %s", e.message, e.context)
        return 1

    scheme = "https" if settings.tls_enabled else "http"
    logger.info("Listening on %s://%s:%d", scheme, settings.host, settings.port)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        ssl_certfile=settings.tls_cert_file,
        ssl_keyfile=settings.tls_key_file,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
