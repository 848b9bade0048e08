"""structlog setup.

Every event carries the service name and environment. JSON output renders
tracebacks as a string field; the console renderer prints them itself.
"""

import logging

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from samarpan.config import Settings

SERVICE_NAME = "samarpan-api"

# Third-party loggers that are chatty at INFO.
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "httpx")


def _service_context(environment: str) -> Processor:
    def add_service(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("env", environment)
        return event_dict

    return add_service


def build_processors(settings: Settings) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_context(settings.environment),
    ]
    if settings.log_format == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def setup_logging(settings: Settings) -> None:
    structlog.configure(
        processors=build_processors(settings),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    # uvicorn.access repeats the request_completed line from RequestIdMiddleware.
    quiet_level = logging.INFO if settings.debug else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
