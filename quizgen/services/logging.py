"""
Structured logging configuration.

Every log line is one JSON object. Request fields (request_id, method, path)
are bound once per HTTP request, and the generator binds question_type while
a type is being generated, so model, parser and repair events carry both
without passing them around.
"""
import functools
import logging
import sys
import time
import uuid

import structlog


def configure_logging(level: int = logging.INFO):
    """Configure structured logging"""

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            # Vietnamese prompt and question text stays readable in the output
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    for noisy in ("sqlalchemy", "httpx", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def bind_request_context(request) -> str:
    """Start a fresh log context for an HTTP request and return its id."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )
    return request_id


def log_performance(operation: str):
    """Log duration and outcome of a generation step."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = structlog.get_logger("performance")
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "operation_failed",
                    operation=operation,
                    duration_ms=round((time.perf_counter() - started) * 1000, 1),
                    error=str(e),
                )
                raise
            logger.info(
                "operation_completed",
                operation=operation,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
                result_count=len(result) if isinstance(result, list) else None,
            )
            return result
        return wrapper
    return decorator


def log_api_request(request, response=None, error=None):
    """Log the start, completion or domain failure of an API request"""
    logger = structlog.get_logger("api")
    client_ip = request.client.host if request.client else "unknown"

    if response is not None:
        logger.info(
            "api_request_completed",
            client_ip=client_ip,
            status_code=response.status_code,
            duration_ms=getattr(response, "duration_ms", None),
        )
    elif error is not None:
        logger.warning(
            "api_request_rejected" if error.status_code < 500 else "api_request_failed",
            client_ip=client_ip,
            status_code=error.status_code,
            error=error.message,
            error_kind=type(error).__name__,
        )
    else:
        logger.info("api_request_started", client_ip=client_ip)
