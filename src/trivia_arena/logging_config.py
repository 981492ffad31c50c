"""structlog setup for the CLI."""
import logging

import structlog


def configure_logging(level: int = logging.INFO) -> None:
    """Send structured, ISO-timestamped log lines through stdlib logging."""
    logging.basicConfig(level=level)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
