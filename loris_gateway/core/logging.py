import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from loris_gateway.core.config import Settings, get_settings

# Request correlation id, set by the HTTP middleware
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

REDACTED = "***"

# Lower-cased keys whose values never reach the logs
SENSITIVE_KEYS = {
    "authorization",
    "authorizationtoken",
    "access_token",
    "password",
    "passkey",
    "consumer_secret",
    "application_key",
}


def redact(value: Any) -> Any:
    """Return a copy of ``value`` with credential-bearing entries masked."""
    if isinstance(value, dict):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    return value


class StructuredLogFormatter(logging.Formatter):
    """
    One JSON object per record.

    Records logged with ``extra={"data": {...}}`` get that mapping under the
    ``data`` key, with credentials masked.
    """

    def __init__(self, service: str, environment: str):
        super().__init__()
        self.service = service
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "env": self.environment,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        corr_id = getattr(record, "correlation_id", None) or correlation_id.get()
        if corr_id and corr_id != "-":
            entry["correlation_id"] = corr_id

        data = getattr(record, "data", None)
        if isinstance(data, dict) and data:
            entry["data"] = redact(data)

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


class CorrelationIdFilter(logging.Filter):
    """Stamps every record with the current correlation id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id.get() or "-"
        return True


class ExtraDataFilter(logging.Filter):
    """Merges fixed per-logger context into each record's ``data``."""

    def __init__(self, extra: Dict[str, Any]):
        super().__init__()
        self.extra = extra

    def filter(self, record: logging.LogRecord) -> bool:
        data = getattr(record, "data", None)
        record.data = {**self.extra, **data} if isinstance(data, dict) else dict(self.extra)
        return True


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Install the root handler.

    JSON output when ENABLE_STRUCTURED_LOGGING is set, a single-line console
    format otherwise. Safe to call more than once.
    """
    settings = settings or get_settings()
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    if settings.ENABLE_STRUCTURED_LOGGING:
        handler.setFormatter(StructuredLogFormatter(settings.PROJECT_NAME, settings.ENV))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s [%(correlation_id)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
    root_logger.addHandler(handler)

    # Per-request access lines come from the gateway middleware instead
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str, **extra: Any) -> logging.Logger:
    """
    Get a module logger.

    Args:
        name: Logger name, typically ``__name__``
        **extra: Fixed context added to the ``data`` of every record

    Returns:
        logging.Logger
    """
    logger = logging.getLogger(name)
    if extra:
        logger.addFilter(ExtraDataFilter(extra))
    return logger


def set_correlation_id(corr_id: Optional[str] = None) -> str:
    """Set (or generate) the correlation id for the current context."""
    corr_id = corr_id or str(uuid.uuid4())
    correlation_id.set(corr_id)
    return corr_id
