"""
Structured logging configuration using loguru.

The stdout sink's level comes from ``LOG_LEVEL`` when set, otherwise from the
environment: DEBUG in development, WARNING under test, INFO elsewhere.
Production also writes a rotating file at ``LOG_FILE``.
"""
import sys
from loguru import logger
from eventdesk.core.config import Settings, settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

ENVIRONMENT_LEVELS = {
    "development": "DEBUG",
    "test": "WARNING",
}


def console_level(config: Settings) -> str:
    if config.LOG_LEVEL:
        return config.LOG_LEVEL.upper()
    return ENVIRONMENT_LEVELS.get(config.ENVIRONMENT, "INFO")


def configure_logging(config: Settings = settings) -> None:
    """Replace loguru's default handler with the sinks for ``config``."""
    logger.remove()
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=console_level(config), colorize=True)

    if config.ENVIRONMENT == "production":
        logger.add(
            config.LOG_FILE,
            rotation="500 MB",
            retention="10 days",
            compression="zip",
            format=FILE_FORMAT,
            level="INFO",
        )


configure_logging()

__all__ = ["logger", "configure_logging"]
