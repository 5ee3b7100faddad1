"""
Configuration du logging et du error tracking, conditionnée par ENVIRONMENT
"""
import logging
import sys
from logging.handlers import RotatingFileHandler

import sentry_sdk

from mototrack.core.settings import Settings

logger = logging.getLogger(__name__)


def init_sentry(settings: Settings) -> bool:
    """Initialise Sentry uniquement si SENTRY_DSN est configure."""
    if not settings.SENTRY_DSN:
        return False
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        send_default_pii=False,
    )
    return True


def configure_logging(settings: Settings, log_file: str = "mototrack.log") -> None:
    """Configure le logging racine : JSON en production, texte + fichier tournant sinon."""
    log_level = getattr(logging, settings.LOG_LEVEL, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)

    if settings.ENVIRONMENT == "production":
        from pythonjsonlogger import jsonlogger
        handler.setFormatter(jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        ))
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))

    handlers: list[logging.Handler] = [handler]
    if settings.ENVIRONMENT != "production" and log_file:
        handlers.append(RotatingFileHandler(
            log_file, maxBytes=5_000_000, backupCount=3,
        ))

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True,
    )

    # En production, réduire le bruit des modules tiers
    if settings.ENVIRONMENT == "production":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)

    logger.debug(f"Logging configuré (level={settings.LOG_LEVEL}, env={settings.ENVIRONMENT})")
