"""Structured logging for the Mozza ledger.

Events go to stderr so command output on stdout stays machine readable.
"""

import logging
import sys

import structlog

from mozza_ledger.config.settings import Settings, get_settings


def configure_logging(settings: Settings | None = None, verbose: bool = False) -> None:
    """Route structlog through stdlib logging on stderr.

    Args:
        settings: Source of ``LOG_LEVEL`` and ``LOG_FORMAT``. Defaults to the
            cached settings.
        verbose: Force DEBUG regardless of ``LOG_LEVEL``.
    """
    settings = settings or get_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    if settings.log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
