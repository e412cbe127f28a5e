import logging
import json
import os
from typing import Any, Dict
from opentelemetry.trace import get_current_span


SENSITIVE_KEYS = {
    "password", "password_hash", "token", "access_token", "refresh_token",
    "email", "payment_details", "shipping_address",
}


def current_request_id() -> str:
    try:
        from flask import g
        rid = getattr(g, "request_id", None)
        return rid or "n/a"
    except Exception:
        return "n/a"


def current_user_id() -> str:
    try:
        from flask import g
        return getattr(g, "user_id", None) or "anonymous"
    except Exception:
        return "anonymous"


class RequestContextFilter(logging.Filter):
    """Stamp request id and authenticated user id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id()
        record.user_id = current_user_id()
        return True


def current_trace_ids():
    try:
        span = get_current_span()
        ctx = span.get_span_context() if span else None
        if not ctx or not ctx.is_valid:
            return "n/a", "n/a"
        return format(ctx.trace_id, "032x"), format(ctx.span_id, "016x")
    except Exception:
        return "n/a", "n/a"


class TraceIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        trace_id, span_id = current_trace_ids()
        record.trace_id = trace_id
        record.span_id = span_id
        return True


def _mask(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: ("[REDACTED]" if key in SENSITIVE_KEYS else _mask(item))
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_mask(item) for item in value]
    return value


class MaskingFilter(logging.Filter):
    """Redact sensitive keys from dict messages, except DEBUG outside production."""

    def filter(self, record: logging.LogRecord) -> bool:
        env = os.getenv("APP_ENV", "development").lower()
        if record.levelno == logging.DEBUG and env != "production":
            return True
        if isinstance(record.msg, dict):
            record.msg = _mask(record.msg)
        if isinstance(record.args, dict):
            record.args = _mask(record.args)
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        base = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "request_id": getattr(record, "request_id", "n/a"),
            "user_id": getattr(record, "user_id", "anonymous"),
            "trace_id": getattr(record, "trace_id", "n/a"),
            "span_id": getattr(record, "span_id", "n/a"),
        }
        if isinstance(record.msg, dict):
            base.update(record.msg)
        else:
            base["message"] = record.getMessage()
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, default=str)


def _resolve_level(app) -> int:
    level_name = os.getenv("LOG_LEVEL")
    if level_name:
        return getattr(logging, level_name.upper(), logging.INFO)
    return logging.DEBUG if app.config.get("DEBUG") else logging.INFO


def configure_logging(app) -> None:
    datefmt = "%Y-%m-%dT%H:%M:%S%z"
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter(datefmt=datefmt))
    handler.addFilter(RequestContextFilter())
    handler.addFilter(TraceIdFilter())
    handler.addFilter(MaskingFilter())

    level = _resolve_level(app)
    # Records from "app" and its module loggers reach the JSON handler via root only
    app.logger.handlers.clear()
    app.logger.setLevel(level)

    root = logging.getLogger()
    if not any(isinstance(h.formatter, JsonFormatter) for h in root.handlers):
        root.addHandler(handler)
    root.setLevel(level)

    for name in ("werkzeug", "celery"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        lg.handlers.clear()
        lg.addHandler(handler)
        lg.propagate = False
    # SQL echo stays opt-in
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if os.getenv("SQL_ECHO") == "1" else logging.WARNING
    )
