"""Logging setup and request-scoped loggers."""

import logging
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    """Make ``request_id`` (and ``user_id``) available on every record.

    Records logged outside a request get ``-`` so the shared format string
    never fails.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        if not hasattr(record, "user_id"):
            record.user_id = "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service.

    Safe to call more than once; the request id filter is attached to each
    root handler only once.
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level.upper())
    for handler in root.handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps request fields onto every record."""

    def process(self, msg: Any, kwargs: dict[str, Any]) -> tuple[Any, dict[str, Any]]:
        extra = dict(self.extra)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def request_logger(logger: logging.Logger, request_id: str, user_id: str | None = None) -> RequestLoggerAdapter:
    """Wrap ``logger`` so records carry the request id and, once known, the user id."""
    return RequestLoggerAdapter(logger, {"request_id": request_id, "user_id": user_id or "-"})
