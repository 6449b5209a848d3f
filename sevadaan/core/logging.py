# sevadaan/core/logging.py

import sys

from loguru import logger

from sevadaan.core.config import Settings


# ------------------------------------------------------------
# LOGURU CONFIGURATION
# ------------------------------------------------------------
def configure_logging(settings: Settings) -> None:
    logger.remove()
    logger.add(
        sys.stdout,
        level=settings.LOG_LEVEL.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
               "<level>{level}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
               "<level>{message}</level>",
        colorize=True,
        backtrace=True,
        # variable values in tracebacks can leak secrets
        diagnose=settings.is_dev,
    )
