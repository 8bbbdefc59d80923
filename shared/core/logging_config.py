"""
Structured JSON logging for the commerce-ops service.

Every record is emitted as one JSON object carrying the service identity,
the request trace context (request id, correlation id, acting admin) and
any ``extra_fields`` passed by the caller. Provider secrets and bearer
tokens are masked before a record reaches a handler.
"""

import logging
import logging.handlers
import re
import sys
import json
import time
import traceback
import uuid
from datetime import datetime
from typing import Any, Dict, Optional
from contextvars import ContextVar
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

# Context variables for request tracking
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

# Health probes are polled constantly; they are logged at DEBUG only
QUIET_PATHS = ('/health', '/metrics')


class StructuredFormatter(logging.Formatter):
    """JSON formatter: one object per line, ELK/CloudWatch friendly."""

    def __init__(self, service: str = 'commerce-ops', environment: str = 'development', version: str = '1.0.0'):
        super().__init__()
        self.service = service
        self.environment = environment
        self.version = version

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "@timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service,
            "environment": self.environment,
            "version": self.version,
        }

        trace_context = _trace_context()
        if trace_context:
            log_obj["trace"] = trace_context

        log_obj["location"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
            "module": record.module
        }

        if record.exc_info and record.exc_info[0] is not None:
            log_obj["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "stacktrace": traceback.format_exception(*record.exc_info)
            }

        if hasattr(record, 'extra_fields'):
            log_obj["custom"] = record.extra_fields

        if hasattr(record, 'duration_ms'):
            log_obj["performance"] = {"duration_ms": record.duration_ms}

        return json.dumps(log_obj, default=str)


def _trace_context() -> Optional[Dict[str, Any]]:
    context = {
        "request_id": request_id_var.get(),
        "correlation_id": correlation_id_var.get(),
        "user_id": user_id_var.get(),
    }
    context = {k: v for k, v in context.items() if v}
    return context or None


class SecurityFilter(logging.Filter):
    """Mask provider secrets and credentials in messages and extra fields."""

    SENSITIVE_KEYS = {
        'password', 'token', 'api_key', 'secret', 'authorization', 'cookie',
        'stripe_secret_key', 'stripe_webhook_secret', 'shippo_api_key', 'resend_api_key', 'jwt_secret',
    }
    PATTERNS = [
        re.compile(r'\b(sk|rk)_(live|test)_[A-Za-z0-9]+'),
        re.compile(r'\bwhsec_[A-Za-z0-9]+'),
        re.compile(r'\bshippo_(live|test)_[A-Za-z0-9]+'),
        re.compile(r'\bre_[A-Za-z0-9]{16,}'),
        re.compile(r'(?i)(bearer|shippotoken)\s+[A-Za-z0-9._\-]+'),
    ]
    MASK = '***REDACTED***'

    def _scrub(self, text: str) -> str:
        for pattern in self.PATTERNS:
            text = pattern.sub(self.MASK, text)
        return text

    def _scrub_fields(self, value):
        if isinstance(value, dict):
            return {
                k: self.MASK if str(k).lower() in self.SENSITIVE_KEYS else self._scrub_fields(v)
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple)):
            return [self._scrub_fields(v) for v in value]
        if isinstance(value, str):
            return self._scrub(value)
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        scrubbed = self._scrub(message)
        if scrubbed != message:
            record.msg = scrubbed
            record.args = ()
        if hasattr(record, 'extra_fields'):
            record.extra_fields = self._scrub_fields(record.extra_fields)
        return True


class PerformanceFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if hasattr(record, 'duration'):
            record.duration_ms = record.duration * 1000
        return True


def setup_logging(
    service_name: str,
    level: str = "INFO",
    environment: str = "development",
    version: str = "1.0.0",
    log_file: Optional[str] = None
) -> None:
    """
    Install the JSON formatter and filters on the root logger.

    Args:
        service_name: Name reported in every record
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        environment: Deployment environment reported in every record
        version: Service version reported in every record
        log_file: Optional path for a rotating file handler
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = []

    formatter = StructuredFormatter(service_name, environment, version)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.handlers.RotatingFileHandler(log_file, maxBytes=10485760, backupCount=5))
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(PerformanceFilter())
        handler.addFilter(SecurityFilter())
        root_logger.addHandler(handler)

    logging.getLogger('uvicorn').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)

    root_logger.info(
        "Logging initialized",
        extra={'extra_fields': {'service': service_name, 'level': level, 'file': bool(log_file)}}
    )


class LoggerAdapter(logging.LoggerAdapter):
    """Adds the current request's trace ids to every record."""

    def process(self, msg, kwargs):
        extra = kwargs.get('extra') or {}
        for key, var in (('request_id', request_id_var), ('correlation_id', correlation_id_var),
                         ('user_id', user_id_var)):
            value = var.get()
            if value:
                extra[key] = value
        kwargs['extra'] = extra
        return msg, kwargs


def get_logger(name: str) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name), {})


def set_request_context(
    request_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
    user_id: Optional[str] = None
) -> None:
    """Bind trace ids for the rest of the current request."""
    if request_id:
        request_id_var.set(request_id)
    if correlation_id:
        correlation_id_var.set(correlation_id)
    if user_id:
        user_id_var.set(user_id)


def generate_request_id() -> str:
    return str(uuid.uuid4())


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs start, completion and failure of each request with its duration.
    Echoes X-Request-ID and X-Correlation-ID on the response.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get('X-Request-ID') or generate_request_id()
        correlation_id = request.headers.get('X-Correlation-ID') or request_id
        tokens = [request_id_var.set(request_id), correlation_id_var.set(correlation_id), user_id_var.set(None)]

        logger = get_logger(__name__)
        path = request.url.path
        log = logger.debug if path.startswith(QUIET_PATHS) else logger.info
        log(
            f"Request started: {request.method} {path}",
            extra={'extra_fields': {
                'method': request.method,
                'path': path,
                'client_host': request.client.host if request.client else None
            }}
        )

        start_time = time.time()
        try:
            response = await call_next(request)
            log(
                f"Request completed: {request.method} {path}",
                extra={'extra_fields': {
                    'method': request.method,
                    'path': path,
                    'status_code': response.status_code,
                    'duration_ms': (time.time() - start_time) * 1000
                }}
            )
        except Exception:
            logger.error(
                f"Request failed: {request.method} {path}",
                exc_info=True,
                extra={'extra_fields': {
                    'method': request.method,
                    'path': path,
                    'duration_ms': (time.time() - start_time) * 1000
                }}
            )
            raise
        finally:
            for var, token in zip((request_id_var, correlation_id_var, user_id_var), tokens):
                var.reset(token)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Correlation-ID"] = correlation_id
        return response
