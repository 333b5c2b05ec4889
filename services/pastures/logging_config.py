"""
Logging setup for the pasture CLI.

structlog events are routed through the standard library so that messages
from google-auth and gcloud-aio share one handler. Progress goes to stdout,
rendered for a terminal unless ``json_logs`` is set (for CI pipelines that
collect the output).
"""

import logging
import sys

import structlog
from structlog.types import Processor

# Third-party loggers that are chatty at INFO and below
_QUIET_LOGGERS = ("asyncio", "urllib3", "google", "gcloud", "aiohttp")


def _renderer(json_logs: bool) -> Processor:
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(json_logs: bool = False, log_level: str = "INFO") -> None:
    """Route structlog and stdlib logging to a single stdout handler.

    Safe to call more than once; the previous handler is replaced.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(json_logs),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
